# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query

from vacation_ledger.api.deps import AuthDep
from vacation_ledger.db import SessionDep
from vacation_ledger.models.enums import ConsumptionKind
from vacation_ledger.schemas.balance import (
    AvailableBalanceResponse,
    AvailableCashOutResponse,
    BalanceOverviewResponse,
    ConsumeRequest,
    ConsumptionResult,
    RequestConsumptionsResponse,
    ReversalResult,
)
from vacation_ledger.services import consumption as consumption_service

employee_balance_router = APIRouter(
    prefix="/employees/{employee_id}",
    tags=["balances"],
)

consumption_router = APIRouter(
    prefix="/consumptions",
    tags=["balances"],
)

balances_router = APIRouter(
    prefix="/balances",
    tags=["balances"],
)


@balances_router.get("", response_model=BalanceOverviewResponse)
async def list_balances(
    session: SessionDep,
    auth: AuthDep,
    employee_id: uuid.UUID | None = Query(default=None),
    cost_center: str | None = Query(default=None),
) -> BalanceOverviewResponse:
    """Per-period ledger of active employees, with the consumption records behind each total."""
    return await consumption_service.list_balances(session, employee_id=employee_id, cost_center=cost_center)


@employee_balance_router.get("/balance", response_model=AvailableBalanceResponse)
async def get_available_balance(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> AvailableBalanceResponse:
    """Days available for leave, per period and in total."""
    return await consumption_service.get_available_balance(session, employee_id)


@employee_balance_router.get("/cash-out-balance", response_model=AvailableCashOutResponse)
async def get_available_cash_out(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> AvailableCashOutResponse:
    """Days that may still be cashed out, per period and in total."""
    return await consumption_service.get_available_cash_out(session, employee_id)


@consumption_router.post("/leave", response_model=ConsumptionResult)
async def consume_leave(
    payload: ConsumeRequest,
    session: SessionDep,
    auth: AuthDep,
) -> ConsumptionResult:
    """Consume days for an approved leave request, oldest period first."""
    return await consumption_service.consume_vacation_fifo(
        session, payload.employee_id, payload.request_id, payload.total_days
    )


@consumption_router.post("/cash-out", response_model=ConsumptionResult)
async def consume_cash_out(
    payload: ConsumeRequest,
    session: SessionDep,
    auth: AuthDep,
) -> ConsumptionResult:
    """Consume days for an approved cash-out request, honouring the per-period cap."""
    return await consumption_service.consume_cash_out_fifo(
        session, payload.employee_id, payload.request_id, payload.total_days
    )


@consumption_router.get("/{request_id}", response_model=RequestConsumptionsResponse)
async def get_request_consumptions(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> RequestConsumptionsResponse:
    """Consumption records a request currently holds."""
    return await consumption_service.list_request_consumptions(session, request_id)


@consumption_router.delete("/{request_id}", response_model=ReversalResult)
async def reverse_consumption(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    kind: ConsumptionKind | None = Query(default=None),
) -> ReversalResult:
    """Restore every day a withdrawn request consumed. Safe to repeat."""
    return await consumption_service.reverse_consumption(session, request_id, kind)
