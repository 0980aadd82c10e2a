"""Reporting service: monthly ledger reconstruction and overdue balance alerts.

Both reports are read-only. They trust the stored ledger rows, consumptions
and adjustments as ground truth and only filter and group them.
"""

from __future__ import annotations

import calendar
import logging
from collections import defaultdict
from datetime import UTC, date, datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from vacation_ledger.config import get_settings
from vacation_ledger.models.accrual import VacationAccrual
from vacation_ledger.models.adjustment import BalanceAdjustment
from vacation_ledger.models.base import now_utc
from vacation_ledger.models.consumption import VacationConsumption
from vacation_ledger.models.employee import Employee
from vacation_ledger.models.enums import AdjustmentType, ConsumptionKind
from vacation_ledger.schemas.report import (
    AccrualMovement,
    AdjustmentMovement,
    ConsumptionMovement,
    EmployeeMonthlyReport,
    MonthlyReportResponse,
    MonthMovements,
    OverdueAlertResponse,
    OverdueEmployeeDetail,
    OverduePeriodDetail,
    OverdueSupervisorGroup,
    PeriodBalanceDetail,
    SupervisorReport,
)
from vacation_ledger.services.accrual import accrued_as_of

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Month helpers
# ---------------------------------------------------------------------------


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """Return (first day, last day) of a calendar month."""
    _, days_in_month = calendar.monthrange(year, month)
    return date(year, month, 1), date(year, month, days_in_month)


def default_report_month(today: date | None = None) -> tuple[int, int]:
    """The month before ``today``: reports are generated for the month just closed."""
    today = today or date.today()
    if today.month == 1:
        return today.year - 1, 12
    return today.year, today.month - 1


def format_month_label(year: int, month: int) -> str:
    return f"{calendar.month_name[month]} {year}"


def shift_months(value: date, months: int) -> date:
    """Move a date by whole months, clamping the day to the target month's length."""
    index = value.year * 12 + value.month - 1 + months
    year, month = divmod(index, 12)
    _, days_in_month = calendar.monthrange(year, month + 1)
    return date(year, month + 1, min(value.day, days_in_month))


def _utc_midnight(value: date) -> datetime:
    return datetime(value.year, value.month, value.day, tzinfo=UTC)


def accrual_increment_for_month(
    start: date,
    end: date,
    year: int,
    month: int,
    *,
    monthly_rate: float,
    max_days: float,
) -> tuple[float, float]:
    """Return (accrued before the month, accrued at month end) for one period.

    Both values come from the same month-counting rule used by recalculation,
    evaluated on the last day of the previous month and on the last day of the
    target month. Periods not started by month end, or finished before it
    began, report no growth.
    """
    month_start, month_end = month_bounds(year, month)
    if start > month_end or end <= month_start:
        return 0.0, 0.0

    before = accrued_as_of(start, end, month_start - timedelta(days=1), monthly_rate=monthly_rate, max_days=max_days)
    after = accrued_as_of(start, end, month_end, monthly_rate=monthly_rate, max_days=max_days)
    return before, after


# ---------------------------------------------------------------------------
# Monthly report
# ---------------------------------------------------------------------------


async def _load_month_consumptions(
    session: AsyncSession,
    employee_ids: list[uuid.UUID],
    month_start: date,
    next_month_start: date,
) -> dict[uuid.UUID, list[tuple[VacationConsumption, int]]]:
    """Consumptions recorded in the month, keyed by employee, with their period year."""
    result = await session.execute(
        select(VacationConsumption, col(VacationAccrual.employee_id), col(VacationAccrual.accrual_year))
        .join(VacationAccrual, col(VacationConsumption.accrual_id) == col(VacationAccrual.id))
        .where(
            col(VacationAccrual.employee_id).in_(employee_ids),
            col(VacationConsumption.consumed_at) >= _utc_midnight(month_start),
            col(VacationConsumption.consumed_at) < _utc_midnight(next_month_start),
        )
        .order_by(col(VacationConsumption.consumed_at), col(VacationAccrual.accrual_year))
    )
    grouped: dict[uuid.UUID, list[tuple[VacationConsumption, int]]] = defaultdict(list)
    for consumption, employee_id, accrual_year in result.all():
        grouped[employee_id].append((consumption, accrual_year))
    return grouped


async def _load_month_adjustments(
    session: AsyncSession,
    employee_ids: list[uuid.UUID],
    month_start: date,
    next_month_start: date,
) -> dict[uuid.UUID, list[BalanceAdjustment]]:
    result = await session.execute(
        select(BalanceAdjustment)
        .where(
            col(BalanceAdjustment.employee_id).in_(employee_ids),
            col(BalanceAdjustment.created_at) >= _utc_midnight(month_start),
            col(BalanceAdjustment.created_at) < _utc_midnight(next_month_start),
        )
        .order_by(col(BalanceAdjustment.created_at))
    )
    grouped: dict[uuid.UUID, list[BalanceAdjustment]] = defaultdict(list)
    for adjustment in result.scalars().all():
        grouped[adjustment.employee_id].append(adjustment)
    return grouped


async def generate_monthly_report(
    session: AsyncSession,
    year: int,
    month: int,
) -> MonthlyReportResponse:
    """Per-supervisor report of balances and movements for one calendar month.

    Covers every employee employed at any point during the month. Employees
    with neither period data nor movements are left out, and so are
    supervisors left without employees. Supervisors are matched by email,
    case-insensitively.
    """
    settings = get_settings()
    month_start, month_end = month_bounds(year, month)
    next_month_start = month_end + timedelta(days=1)

    employees_result = await session.execute(
        select(Employee)
        .where(Employee.employed_between(month_start, month_end))
        .order_by(col(Employee.full_name))
    )
    employees = list(employees_result.scalars().all())
    employee_ids = [e.id for e in employees]

    accruals_result = await session.execute(
        select(VacationAccrual)
        .where(
            col(VacationAccrual.employee_id).in_(employee_ids),
            col(VacationAccrual.accrual_start_date) <= month_end,
        )
        .order_by(col(VacationAccrual.accrual_year))
    )
    accruals_by_employee: dict[uuid.UUID, list[VacationAccrual]] = defaultdict(list)
    for accrual in accruals_result.scalars().all():
        accruals_by_employee[accrual.employee_id].append(accrual)

    consumptions = await _load_month_consumptions(session, employee_ids, month_start, next_month_start)
    adjustments = await _load_month_adjustments(session, employee_ids, month_start, next_month_start)

    supervisors: dict[str, SupervisorReport] = {}
    for employee in employees:
        periods = accruals_by_employee.get(employee.id, [])

        leave_taken: list[ConsumptionMovement] = []
        cash_outs: list[ConsumptionMovement] = []
        for consumption, accrual_year in consumptions.get(employee.id, []):
            movement = ConsumptionMovement(
                request_id=consumption.request_id,
                accrual_year=accrual_year,
                days_consumed=consumption.days_consumed,
                consumed_at=consumption.consumed_at,
            )
            match ConsumptionKind(consumption.origin_kind):
                case ConsumptionKind.LEAVE:
                    leave_taken.append(movement)
                case ConsumptionKind.CASH_OUT:
                    cash_outs.append(movement)

        increments: list[AccrualMovement] = []
        for period in periods:
            before, after = accrual_increment_for_month(
                period.accrual_start_date,
                period.accrual_end_date,
                year,
                month,
                monthly_rate=settings.monthly_rate_days,
                max_days=settings.max_days_per_period,
            )
            increment = max(0.0, after - before)
            if increment > 0:
                increments.append(
                    AccrualMovement(
                        accrual_year=period.accrual_year,
                        previous_accrued=before,
                        current_accrued=after,
                        increment=increment,
                    )
                )

        movements = MonthMovements(
            leave_taken=leave_taken,
            cash_outs=cash_outs,
            adjustments=[
                AdjustmentMovement(
                    adjustment_type=AdjustmentType(a.adjustment_type),
                    accrual_year=a.accrual_year,
                    days_delta=a.days_delta,
                    reason=a.reason,
                    adjusted_by=a.adjusted_by,
                )
                for a in adjustments.get(employee.id, [])
            ],
            accrual_increments=increments,
        )

        if not periods and movements.is_empty:
            continue

        key = employee.supervisor_email.lower()
        if key not in supervisors:
            supervisors[key] = SupervisorReport(
                supervisor_email=employee.supervisor_email,
                supervisor_name=employee.supervisor_name,
                employees=[],
            )
        supervisors[key].employees.append(
            EmployeeMonthlyReport(
                employee_id=employee.id,
                employee_code=employee.employee_code,
                full_name=employee.full_name,
                email=employee.email,
                cost_center=employee.cost_center,
                balance_by_period=[
                    PeriodBalanceDetail(
                        accrual_year=p.accrual_year,
                        total_days_accrued=p.total_days_accrued,
                        total_days_consumed=p.total_days_consumed,
                        remaining_balance=p.remaining_balance,
                    )
                    for p in periods
                ],
                movements=movements,
            )
        )

    report_month = f"{year:04d}-{month:02d}"
    logger.info("Monthly report generated for %s: %d supervisors", report_month, len(supervisors))
    return MonthlyReportResponse(
        report_month=report_month,
        report_month_label=format_month_label(year, month),
        generated_at=now_utc(),
        supervisors=list(supervisors.values()),
    )


# ---------------------------------------------------------------------------
# Overdue balance alert
# ---------------------------------------------------------------------------


async def generate_overdue_alert(
    session: AsyncSession,
    as_of: date | None = None,
) -> OverdueAlertResponse:
    """Active employees holding days in periods that ended too long ago, by supervisor.

    A period is overdue once its end date lies more than ``overdue_after_months``
    before ``as_of`` and it still has a positive balance.
    """
    as_of = as_of or date.today()
    grace_months = get_settings().overdue_after_months
    cutoff = shift_months(as_of, -grace_months)

    result = await session.execute(
        select(VacationAccrual, Employee)
        .join(Employee, col(VacationAccrual.employee_id) == col(Employee.id))
        .where(
            col(VacationAccrual.accrual_end_date) < cutoff,
            col(VacationAccrual.remaining_balance) > 0,
            col(Employee.termination_date).is_(None),
        )
        .order_by(col(Employee.full_name), col(VacationAccrual.accrual_year))
    )

    groups: dict[str, OverdueSupervisorGroup] = {}
    details: dict[uuid.UUID, OverdueEmployeeDetail] = {}
    for accrual, employee in result.all():
        key = employee.supervisor_email.lower()
        group = groups.get(key)
        if group is None:
            group = OverdueSupervisorGroup(
                supervisor_email=employee.supervisor_email,
                supervisor_name=employee.supervisor_name,
                total_overdue_days=0.0,
                employees=[],
            )
            groups[key] = group

        detail = details.get(employee.id)
        if detail is None:
            detail = OverdueEmployeeDetail(
                employee_id=employee.id,
                employee_code=employee.employee_code,
                full_name=employee.full_name,
                email=employee.email,
                cost_center=employee.cost_center,
                total_overdue_days=0.0,
                overdue_periods=[],
            )
            details[employee.id] = detail
            group.employees.append(detail)

        end = accrual.accrual_end_date
        months_overdue = max(0, (as_of.year - end.year) * 12 + as_of.month - end.month - grace_months)
        detail.overdue_periods.append(
            OverduePeriodDetail(
                accrual_year=accrual.accrual_year,
                accrual_end_date=end,
                remaining_balance=accrual.remaining_balance,
                months_overdue=months_overdue,
            )
        )
        detail.total_overdue_days += accrual.remaining_balance
        group.total_overdue_days += accrual.remaining_balance

    supervisors = list(groups.values())
    total_days = sum(g.total_overdue_days for g in supervisors)
    logger.info("Overdue alert as of %s: %d employees, %s days", as_of, len(details), total_days)
    return OverdueAlertResponse(
        generated_at=now_utc(),
        cutoff_date=cutoff,
        total_overdue_employees=len(details),
        total_overdue_days=total_days,
        supervisors=supervisors,
    )
