# ruff: noqa: B008, TC003
"""API endpoint for recalculating every employee's accruals."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Query

from vacation_ledger.api.deps import LedgerAdminDep
from vacation_ledger.db import SessionDep
from vacation_ledger.schemas.accrual import AccrualRunResponse
from vacation_ledger.services.accrual import recalculate_all_accruals

accruals_router = APIRouter(
    prefix="/accruals",
    tags=["accruals"],
)


@accruals_router.post("/recalculate", response_model=AccrualRunResponse)
async def trigger_recalculation(
    session: SessionDep,
    auth: LedgerAdminDep,
    as_of: date | None = Query(default=None),
) -> AccrualRunResponse:
    """Recalculate accruals for every active employee (HR roles only).

    Same job the worker runs daily; useful for backfills.
    """
    result = await recalculate_all_accruals(session, as_of)
    return AccrualRunResponse(as_of=result.as_of, processed=result.processed, errors=result.errors)
