"""Accrual engine: pure per-period accrual math and ledger recalculation."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from vacation_ledger.config import get_settings
from vacation_ledger.models.accrual import VacationAccrual, round_days
from vacation_ledger.models.employee import Employee
from vacation_ledger.services.employee import lock_employee

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

MONTHLY_RATE = 2.5
MAX_DAYS_PER_PERIOD = 30.0
MONTHS_PER_PERIOD = 12

# ---------------------------------------------------------------------------
# Result dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PeriodAccrual:
    """Time-based accrual of one yearly period as of a given date."""

    accrual_year: int
    start_date: date
    end_date: date
    months_accrued: int
    total_days_accrued: float


@dataclass
class AccrualRunResult:
    """Summary of a recalculate-all run."""

    as_of: date
    processed: int = 0
    errors: int = 0


# ---------------------------------------------------------------------------
# Pure computation helpers (no DB)
# ---------------------------------------------------------------------------


def anniversary(hire_date: date, year: int) -> date:
    """Return the hire-date anniversary in ``year``.

    A 29 February hire date falls back to 28 February in non-leap years.
    """
    try:
        return hire_date.replace(year=year)
    except ValueError:
        return date(year, 2, 28)


def period_window(hire_date: date, year: int) -> tuple[date, date]:
    """Return (start, end) of the accrual period opened in ``year``.

    The first period starts on the hire date itself; every period ends on the
    following anniversary.
    """
    start = hire_date if year == hire_date.year else anniversary(hire_date, year)
    return start, anniversary(hire_date, year + 1)


def months_elapsed(start: date, end: date, as_of: date) -> int:
    """Whole calendar months accrued in the window [start, end) as of ``as_of``.

    Day-of-month is ignored; the count is clamped to [0, 12].
    """
    if as_of >= end:
        return MONTHS_PER_PERIOD
    if as_of < start:
        return 0
    months = (as_of.year - start.year) * 12 + as_of.month - start.month
    return max(0, min(MONTHS_PER_PERIOD, months))


def days_for_months(
    months: int,
    *,
    monthly_rate: float = MONTHLY_RATE,
    max_days: float = MAX_DAYS_PER_PERIOD,
) -> float:
    """Convert elapsed months to accrued days, capped per period."""
    return min(max_days, months * monthly_rate)


def accrued_as_of(
    start: date,
    end: date,
    as_of: date,
    *,
    monthly_rate: float = MONTHLY_RATE,
    max_days: float = MAX_DAYS_PER_PERIOD,
) -> float:
    """Days accrued in the window [start, end) as of ``as_of``."""
    return days_for_months(months_elapsed(start, end, as_of), monthly_rate=monthly_rate, max_days=max_days)


def compute_period_accruals(
    hire_date: date,
    as_of: date,
    *,
    monthly_rate: float = MONTHLY_RATE,
    max_days: float = MAX_DAYS_PER_PERIOD,
) -> list[PeriodAccrual]:
    """Compute one PeriodAccrual per year from the hire year to ``as_of.year``."""
    periods: list[PeriodAccrual] = []
    for year in range(hire_date.year, as_of.year + 1):
        start, end = period_window(hire_date, year)
        months = months_elapsed(start, end, as_of)
        periods.append(
            PeriodAccrual(
                accrual_year=year,
                start_date=start,
                end_date=end,
                months_accrued=months,
                total_days_accrued=days_for_months(months, monthly_rate=monthly_rate, max_days=max_days),
            )
        )
    return periods


# ---------------------------------------------------------------------------
# DB-backed operations
# ---------------------------------------------------------------------------


async def _upsert_periods(
    session: AsyncSession,
    employee: Employee,
    as_of: date,
) -> list[VacationAccrual]:
    """Upsert ledger rows for every period up to ``as_of``. Consumed totals are preserved."""
    settings = get_settings()
    computed = compute_period_accruals(
        employee.hire_date,
        as_of,
        monthly_rate=settings.monthly_rate_days,
        max_days=settings.max_days_per_period,
    )

    result = await session.execute(
        select(VacationAccrual).where(col(VacationAccrual.employee_id) == employee.id).with_for_update()
    )
    existing = {row.accrual_year: row for row in result.scalars().all()}

    rows: list[VacationAccrual] = []
    for period in computed:
        row = existing.get(period.accrual_year)
        if row is None:
            row = VacationAccrual(
                employee_id=employee.id,
                accrual_year=period.accrual_year,
                accrual_start_date=period.start_date,
                accrual_end_date=period.end_date,
                monthly_rate=settings.monthly_rate_days,
                months_accrued=period.months_accrued,
                total_days_accrued=period.total_days_accrued,
                total_days_consumed=0.0,
                remaining_balance=period.total_days_accrued,
            )
            session.add(row)
        else:
            row.months_accrued = period.months_accrued
            row.total_days_accrued = period.total_days_accrued
            row.remaining_balance = round_days(period.total_days_accrued - row.total_days_consumed)
        rows.append(row)

    await session.flush()
    return rows


async def recalculate_accruals(
    session: AsyncSession,
    employee_id: uuid.UUID,
    as_of: date | None = None,
) -> list[VacationAccrual]:
    """Recompute every accrual period of an employee as of a date (default today).

    Idempotent: running it twice for the same date leaves the ledger unchanged.
    Consumption history is never altered.
    """
    if as_of is None:
        as_of = date.today()

    employee = await lock_employee(session, employee_id)
    rows = await _upsert_periods(session, employee, as_of)
    await session.commit()

    logger.info("Recalculated %d accrual periods for employee=%s as_of=%s", len(rows), employee_id, as_of)
    return sorted(rows, key=lambda r: r.accrual_year)


async def recalculate_all_accruals(
    session: AsyncSession,
    as_of: date | None = None,
) -> AccrualRunResult:
    """Recalculate accruals for every employee not terminated before ``as_of``.

    Each employee is committed separately so one failure does not block the rest.
    """
    if as_of is None:
        as_of = date.today()

    result = AccrualRunResult(as_of=as_of)
    employees_result = await session.execute(
        select(col(Employee.id)).where(Employee.employed_between(as_of, as_of))
    )
    employee_ids = list(employees_result.scalars().all())

    for employee_id in employee_ids:
        result.processed += 1
        try:
            await recalculate_accruals(session, employee_id, as_of)
        except Exception:
            logger.exception("Error recalculating accruals for employee=%s", employee_id)
            await session.rollback()
            result.errors += 1

    return result


async def list_accruals(session: AsyncSession, employee_id: uuid.UUID) -> list[VacationAccrual]:
    """Return an employee's ledger rows, oldest period first."""
    result = await session.execute(
        select(VacationAccrual)
        .where(col(VacationAccrual.employee_id) == employee_id)
        .order_by(col(VacationAccrual.accrual_year))
    )
    return list(result.scalars().all())
