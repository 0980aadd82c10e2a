# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Query

from vacation_ledger.api.deps import AuthDep
from vacation_ledger.db import SessionDep
from vacation_ledger.schemas.report import MonthlyReportResponse, OverdueAlertResponse
from vacation_ledger.services import report as report_service

reports_router = APIRouter(
    prefix="/reports",
    tags=["reports"],
)


@reports_router.get("/monthly", response_model=MonthlyReportResponse)
async def get_monthly_report(
    session: SessionDep,
    auth: AuthDep,
    month: str | None = Query(default=None, pattern=r"^\d{4}-(0[1-9]|1[0-2])$", description="YYYY-MM"),
) -> MonthlyReportResponse:
    """Balances and movements per supervisor for a month (default: previous month)."""
    if month is None:
        year, month_number = report_service.default_report_month()
    else:
        year, month_number = (int(part) for part in month.split("-"))
    return await report_service.generate_monthly_report(session, year, month_number)


@reports_router.get("/overdue", response_model=OverdueAlertResponse)
async def get_overdue_alert(
    session: SessionDep,
    auth: AuthDep,
    as_of: date | None = Query(default=None),
) -> OverdueAlertResponse:
    """Periods still holding days long after they ended, per supervisor."""
    return await report_service.generate_overdue_alert(session, as_of)
