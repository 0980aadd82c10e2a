"""Consumption engine: FIFO allocation of vacation days across accrual periods.

Leave and cash-out requests both draw from the oldest period with balance
first. Cash-outs are additionally capped per period. Every mutating operation
locks the employee row, applies all allocations and commits once, so a call
either lands completely or not at all.
"""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from vacation_ledger.config import get_settings
from vacation_ledger.models.accrual import VacationAccrual, round_days
from vacation_ledger.models.base import now_utc
from vacation_ledger.models.consumption import VacationConsumption
from vacation_ledger.models.employee import Employee
from vacation_ledger.models.enums import ConsumptionKind
from vacation_ledger.schemas.balance import (
    Allocation,
    AvailableBalanceResponse,
    AvailableCashOutResponse,
    BalanceOverviewResponse,
    ConsumptionRecord,
    ConsumptionResult,
    EmployeeBalance,
    PeriodBalance,
    PeriodCashOut,
    PeriodLedger,
    RequestConsumptionsResponse,
    ReversalResult,
)
from vacation_ledger.services.employee import get_employee_or_404, lock_employee, lock_employees

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

# Returns how many days a period may give up for the current request.
CeilingFn = Callable[[VacationAccrual], float]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


async def _load_periods_with_balance(
    session: AsyncSession,
    employee_id: uuid.UUID,
    *,
    for_update: bool = False,
) -> list[VacationAccrual]:
    """Ledger rows with a positive remaining balance, oldest first."""
    query = (
        select(VacationAccrual)
        .where(
            col(VacationAccrual.employee_id) == employee_id,
            col(VacationAccrual.remaining_balance) > 0,
        )
        .order_by(col(VacationAccrual.accrual_year))
    )
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query)
    return list(result.scalars().all())


async def _cash_out_used_by_accrual(
    session: AsyncSession,
    accrual_ids: Sequence[uuid.UUID],
) -> dict[uuid.UUID, float]:
    """Sum of cash-out consumptions per ledger row."""
    if not accrual_ids:
        return {}
    result = await session.execute(
        select(
            col(VacationConsumption.accrual_id),
            func.sum(col(VacationConsumption.days_consumed)),
        )
        .where(
            col(VacationConsumption.origin_kind) == ConsumptionKind.CASH_OUT.value,
            col(VacationConsumption.accrual_id).in_(accrual_ids),
        )
        .group_by(col(VacationConsumption.accrual_id))
    )
    return {accrual_id: round_days(float(total or 0)) for accrual_id, total in result.all()}


def _remaining_ceiling(period: VacationAccrual) -> float:
    return period.remaining_balance


def _cash_out_room(remaining: float, cash_out_used: float, cap: float) -> float:
    """Days a period can still give to cash-outs: min(remaining, cap - used), floored at 0."""
    return round_days(max(0.0, min(remaining, cap - cash_out_used)))


def _allocate_fifo(
    periods: Sequence[VacationAccrual],
    total_days: float,
    ceiling: CeilingFn,
) -> list[tuple[VacationAccrual, float]]:
    """Walk periods oldest first and decide how much each one gives.

    Pure planning step: no row is touched. The sum of the returned amounts is
    ``min(total_days, sum of ceilings)``.
    """
    plan: list[tuple[VacationAccrual, float]] = []
    remaining_to_satisfy = total_days
    for period in periods:
        if remaining_to_satisfy <= 0:
            break
        allocate = round_days(min(remaining_to_satisfy, ceiling(period)))
        if allocate <= 0:
            continue
        plan.append((period, allocate))
        remaining_to_satisfy = round_days(remaining_to_satisfy - allocate)
    return plan


async def _consume(
    session: AsyncSession,
    *,
    kind: ConsumptionKind,
    employee_id: uuid.UUID,
    request_id: uuid.UUID,
    total_days: float,
    consumed_at: datetime | None,
    ceiling_factory: Callable[[list[VacationAccrual]], Awaitable[CeilingFn]] | None = None,
) -> ConsumptionResult:
    """Shared FIFO consume path for both origin kinds.

    Flow:
    1. Lock the employee row
    2. Load periods with balance, oldest first
    3. Plan allocations under the per-period ceiling
    4. Apply them to the ledger rows and insert one consumption per period
    5. Commit
    """
    consumed_at = consumed_at or now_utc()

    # 1. Serialize ledger writes for this employee.
    await lock_employee(session, employee_id)

    # 2. Candidate periods.
    periods = await _load_periods_with_balance(session, employee_id, for_update=True)

    # 3. Plan.
    ceiling: CeilingFn = _remaining_ceiling if ceiling_factory is None else await ceiling_factory(periods)
    plan = _allocate_fifo(periods, total_days, ceiling) if total_days > 0 else []

    # 4. Apply.
    allocations: list[Allocation] = []
    for period, days in plan:
        period.apply_consumption(days)
        session.add(
            VacationConsumption(
                accrual_id=period.id,
                origin_kind=kind.value,
                request_id=request_id,
                days_consumed=days,
                consumed_at=consumed_at,
            )
        )
        allocations.append(Allocation(accrual_year=period.accrual_year, days_consumed=days))

    # 5. Commit.
    await session.flush()
    await session.commit()

    total_consumed = round_days(sum(a.days_consumed for a in allocations))
    shortfall = round_days(max(0.0, total_days - total_consumed))
    logger.info(
        "Consumed %s days (%s) for employee=%s request=%s across %d periods, shortfall=%s",
        total_consumed,
        kind.value,
        employee_id,
        request_id,
        len(allocations),
        shortfall,
    )
    return ConsumptionResult(
        kind=kind,
        request_id=request_id,
        allocations=allocations,
        total_consumed=total_consumed,
        shortfall=shortfall,
    )


# ---------------------------------------------------------------------------
# Read path
# ---------------------------------------------------------------------------


async def get_available_balance(
    session: AsyncSession,
    employee_id: uuid.UUID,
) -> AvailableBalanceResponse:
    """Sum of remaining balance across all periods, with the per-period breakdown."""
    await get_employee_or_404(session, employee_id)
    result = await session.execute(
        select(VacationAccrual)
        .where(col(VacationAccrual.employee_id) == employee_id)
        .order_by(col(VacationAccrual.accrual_year))
    )
    by_period = [
        PeriodBalance(
            accrual_year=a.accrual_year,
            remaining=a.remaining_balance,
            accrued=a.total_days_accrued,
            consumed=a.total_days_consumed,
        )
        for a in result.scalars().all()
    ]
    return AvailableBalanceResponse(
        total_available=round_days(sum(p.remaining for p in by_period)),
        by_period=by_period,
    )


async def get_available_cash_out(
    session: AsyncSession,
    employee_id: uuid.UUID,
) -> AvailableCashOutResponse:
    """Cash-out headroom per period with a positive balance, oldest first."""
    await get_employee_or_404(session, employee_id)
    cap = get_settings().cash_out_max_per_period

    periods = await _load_periods_with_balance(session, employee_id)
    used = await _cash_out_used_by_accrual(session, [p.id for p in periods])

    by_period = [
        PeriodCashOut(
            accrual_year=p.accrual_year,
            remaining=p.remaining_balance,
            cash_out_used=used.get(p.id, 0.0),
            cash_out_available=_cash_out_room(p.remaining_balance, used.get(p.id, 0.0), cap),
        )
        for p in periods
    ]
    return AvailableCashOutResponse(
        total_available=round_days(sum(p.cash_out_available for p in by_period)),
        by_period=by_period,
    )


def _consumption_record(consumption: VacationConsumption, accrual_year: int) -> ConsumptionRecord:
    return ConsumptionRecord(
        id=consumption.id,
        accrual_year=accrual_year,
        origin=consumption.origin,
        days_consumed=consumption.days_consumed,
        consumed_at=consumption.consumed_at,
    )


async def list_request_consumptions(
    session: AsyncSession,
    request_id: uuid.UUID,
) -> RequestConsumptionsResponse:
    """Consumption records currently held by a request, oldest first."""
    result = await session.execute(
        select(VacationConsumption, col(VacationAccrual.accrual_year))
        .join(VacationAccrual, col(VacationConsumption.accrual_id) == col(VacationAccrual.id))
        .where(col(VacationConsumption.request_id) == request_id)
        .order_by(col(VacationConsumption.consumed_at), col(VacationAccrual.accrual_year))
    )
    items = [_consumption_record(c, year) for c, year in result.all()]
    return RequestConsumptionsResponse(
        request_id=request_id,
        items=items,
        total_days=round_days(sum(i.days_consumed for i in items)),
    )


def _period_ledger(accrual: VacationAccrual, records: list[ConsumptionRecord]) -> PeriodLedger:
    leave_days = round_days(sum(r.days_consumed for r in records if r.origin.kind == ConsumptionKind.LEAVE))
    cash_out_days = round_days(sum(r.days_consumed for r in records if r.origin.kind == ConsumptionKind.CASH_OUT))
    return PeriodLedger(
        accrual_year=accrual.accrual_year,
        accrual_start_date=accrual.accrual_start_date,
        accrual_end_date=accrual.accrual_end_date,
        months_accrued=accrual.months_accrued,
        total_days_accrued=accrual.total_days_accrued,
        total_days_consumed=accrual.total_days_consumed,
        remaining_balance=accrual.remaining_balance,
        leave_days=leave_days,
        cash_out_days=cash_out_days,
        untracked_consumed=round_days(max(0.0, accrual.total_days_consumed - leave_days - cash_out_days)),
        consumptions=records,
    )


async def list_balances(
    session: AsyncSession,
    *,
    employee_id: uuid.UUID | None = None,
    cost_center: str | None = None,
) -> BalanceOverviewResponse:
    """Ledger overview of active employees with the consumption records of every period.

    Flow:
    1. Select active employees, optionally narrowed to one employee or cost center
    2. Load their periods, oldest first
    3. Load the consumption records of those periods
    4. Assemble per-period totals split by origin
    """
    # 1. Employees.
    query = select(Employee).where(col(Employee.termination_date).is_(None)).order_by(col(Employee.full_name))
    if employee_id is not None:
        query = query.where(col(Employee.id) == employee_id)
    if cost_center is not None:
        query = query.where(col(Employee.cost_center) == cost_center)
    employees = list((await session.execute(query)).scalars().all())

    # 2. Periods.
    accruals_result = await session.execute(
        select(VacationAccrual)
        .where(col(VacationAccrual.employee_id).in_([e.id for e in employees]))
        .order_by(col(VacationAccrual.accrual_year))
    )
    accruals_by_employee: dict[uuid.UUID, list[VacationAccrual]] = defaultdict(list)
    accrual_years: dict[uuid.UUID, int] = {}
    for accrual in accruals_result.scalars().all():
        accruals_by_employee[accrual.employee_id].append(accrual)
        accrual_years[accrual.id] = accrual.accrual_year

    # 3. Consumption records.
    consumptions_result = await session.execute(
        select(VacationConsumption)
        .where(col(VacationConsumption.accrual_id).in_(list(accrual_years)))
        .order_by(col(VacationConsumption.consumed_at))
    )
    records_by_accrual: dict[uuid.UUID, list[ConsumptionRecord]] = defaultdict(list)
    for consumption in consumptions_result.scalars().all():
        records_by_accrual[consumption.accrual_id].append(
            _consumption_record(consumption, accrual_years[consumption.accrual_id])
        )

    # 4. Assemble.
    items: list[EmployeeBalance] = []
    for employee in employees:
        periods = [
            _period_ledger(accrual, records_by_accrual.get(accrual.id, []))
            for accrual in accruals_by_employee.get(employee.id, [])
        ]
        items.append(
            EmployeeBalance(
                employee_id=employee.id,
                employee_code=employee.employee_code,
                full_name=employee.full_name,
                cost_center=employee.cost_center,
                total_available=round_days(sum(p.remaining_balance for p in periods)),
                periods=periods,
            )
        )
    return BalanceOverviewResponse(items=items, total=len(items))


# ---------------------------------------------------------------------------
# Write path
# ---------------------------------------------------------------------------


async def consume_vacation_fifo(
    session: AsyncSession,
    employee_id: uuid.UUID,
    request_id: uuid.UUID,
    total_days: float,
    consumed_at: datetime | None = None,
) -> ConsumptionResult:
    """Consume leave days oldest-period-first.

    Insufficient balance is not an error: whatever can be covered is consumed
    and the rest is reported as ``shortfall`` for the caller to judge.
    """
    return await _consume(
        session,
        kind=ConsumptionKind.LEAVE,
        employee_id=employee_id,
        request_id=request_id,
        total_days=total_days,
        consumed_at=consumed_at,
    )


async def consume_cash_out_fifo(
    session: AsyncSession,
    employee_id: uuid.UUID,
    request_id: uuid.UUID,
    total_days: float,
    consumed_at: datetime | None = None,
) -> ConsumptionResult:
    """Consume cash-out days oldest-period-first, honouring the per-period cash-out cap."""
    cap = get_settings().cash_out_max_per_period

    async def _cash_out_ceiling(periods: list[VacationAccrual]) -> CeilingFn:
        used = await _cash_out_used_by_accrual(session, [p.id for p in periods])
        return lambda p: _cash_out_room(p.remaining_balance, used.get(p.id, 0.0), cap)

    return await _consume(
        session,
        kind=ConsumptionKind.CASH_OUT,
        employee_id=employee_id,
        request_id=request_id,
        total_days=total_days,
        consumed_at=consumed_at,
        ceiling_factory=_cash_out_ceiling,
    )


async def reverse_consumption(
    session: AsyncSession,
    request_id: uuid.UUID,
    kind: ConsumptionKind | None = None,
) -> ReversalResult:
    """Give back every day a request consumed and delete its consumption records.

    Reversing a request that holds no records is a successful no-op.
    """
    filters = [col(VacationConsumption.request_id) == request_id]
    if kind is not None:
        filters.append(col(VacationConsumption.origin_kind) == kind.value)

    # Lock the owning employees before touching their rows.
    owners = (
        select(col(VacationAccrual.employee_id))
        .join(VacationConsumption, col(VacationConsumption.accrual_id) == col(VacationAccrual.id))
        .where(*filters)
    )
    await lock_employees(session, owners)

    result = await session.execute(select(VacationConsumption).where(*filters))
    consumptions = list(result.scalars().all())
    if not consumptions:
        return ReversalResult(request_id=request_id, records_reversed=0, days_restored=0.0)

    accrual_ids = sorted({c.accrual_id for c in consumptions})
    accruals_result = await session.execute(
        select(VacationAccrual).where(col(VacationAccrual.id).in_(accrual_ids)).with_for_update()
    )
    accruals = {a.id: a for a in accruals_result.scalars().all()}

    days_restored = 0.0
    for consumption in consumptions:
        accruals[consumption.accrual_id].apply_consumption(-consumption.days_consumed)
        days_restored = round_days(days_restored + consumption.days_consumed)
        await session.delete(consumption)

    await session.flush()
    await session.commit()

    logger.info(
        "Reversed %d consumption records (%s days) for request=%s",
        len(consumptions),
        days_restored,
        request_id,
    )
    return ReversalResult(request_id=request_id, records_reversed=len(consumptions), days_restored=days_restored)
