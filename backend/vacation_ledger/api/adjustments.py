# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from vacation_ledger.api.deps import LedgerAdminDep
from vacation_ledger.db import SessionDep
from vacation_ledger.schemas.adjustment import AdjustmentListResponse, AdjustmentResult, CreateAdjustmentRequest
from vacation_ledger.services import adjustment as adjustment_service

adjustment_router = APIRouter(
    prefix="/adjustments",
    tags=["balances"],
)


@adjustment_router.post("", response_model=AdjustmentResult, status_code=status.HTTP_201_CREATED)
async def create_adjustment(
    payload: CreateAdjustmentRequest,
    session: SessionDep,
    auth: LedgerAdminDep,
) -> AdjustmentResult:
    """Override a period's accrued days and record who did it and why."""
    return await adjustment_service.record_adjustment(
        session,
        payload.employee_id,
        payload.accrual_year,
        payload.new_accrued_days,
        payload.reason,
        auth.email,
        payload.adjustment_type,
    )


@adjustment_router.get("", response_model=AdjustmentListResponse)
async def list_adjustments(
    session: SessionDep,
    auth: LedgerAdminDep,
    employee_id: uuid.UUID | None = Query(default=None),
) -> AdjustmentListResponse:
    """Adjustment history, newest first."""
    return await adjustment_service.list_adjustments(session, employee_id)
