from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from vacation_ledger.config import get_settings
from vacation_ledger.models.accrual import VacationAccrual, round_days
from vacation_ledger.models.adjustment import BalanceAdjustment
from vacation_ledger.models.base import now_utc
from vacation_ledger.models.enums import AdjustmentType
from vacation_ledger.schemas.accrual import AccrualResponse
from vacation_ledger.schemas.adjustment import AdjustmentListResponse, AdjustmentResponse, AdjustmentResult
from vacation_ledger.services.accrual import period_window
from vacation_ledger.services.employee import lock_employee

if TYPE_CHECKING:
    import uuid
    from datetime import datetime

    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


def build_accrual_response(accrual: VacationAccrual) -> AccrualResponse:
    """Map a ledger row to its response schema."""
    return AccrualResponse(
        id=accrual.id,
        employee_id=accrual.employee_id,
        accrual_year=accrual.accrual_year,
        accrual_start_date=accrual.accrual_start_date,
        accrual_end_date=accrual.accrual_end_date,
        monthly_rate=accrual.monthly_rate,
        months_accrued=accrual.months_accrued,
        total_days_accrued=accrual.total_days_accrued,
        total_days_consumed=accrual.total_days_consumed,
        remaining_balance=accrual.remaining_balance,
        updated_at=accrual.updated_at,
    )


def build_adjustment_response(adjustment: BalanceAdjustment) -> AdjustmentResponse:
    """Map an adjustment record to its response schema."""
    return AdjustmentResponse(
        id=adjustment.id,
        employee_id=adjustment.employee_id,
        accrual_year=adjustment.accrual_year,
        adjustment_type=AdjustmentType(adjustment.adjustment_type),
        previous_value=adjustment.previous_value,
        new_value=adjustment.new_value,
        days_delta=adjustment.days_delta,
        reason=adjustment.reason,
        adjusted_by=adjustment.adjusted_by,
        created_at=adjustment.created_at,
    )


async def record_adjustment(
    session: AsyncSession,
    employee_id: uuid.UUID,
    accrual_year: int,
    new_accrued_days: float,
    reason: str,
    actor: str,
    adjustment_type: AdjustmentType = AdjustmentType.MANUAL,
    adjusted_at: datetime | None = None,
) -> AdjustmentResult:
    """Override the accrued total of one period and append an audit record.

    Flow:
    1. Lock the employee
    2. Load the period row, or create it from the hire-date anniversary
    3. Shift remaining balance by the delta, floored at 0
    4. Insert the BalanceAdjustment record
    5. Commit

    ``new_accrued_days`` and ``reason`` are validated by the caller.
    """
    monthly_rate = get_settings().monthly_rate_days

    # 1. Lock.
    employee = await lock_employee(session, employee_id)

    # 2. Find or create the period.
    result = await session.execute(
        select(VacationAccrual)
        .where(
            col(VacationAccrual.employee_id) == employee_id,
            col(VacationAccrual.accrual_year) == accrual_year,
        )
        .with_for_update()
    )
    accrual = result.scalar_one_or_none()
    months_accrued = round(new_accrued_days / monthly_rate)

    if accrual is None:
        previous_value = 0.0
        start, end = period_window(employee.hire_date, accrual_year)
        accrual = VacationAccrual(
            employee_id=employee_id,
            accrual_year=accrual_year,
            accrual_start_date=start,
            accrual_end_date=end,
            monthly_rate=monthly_rate,
            months_accrued=months_accrued,
            total_days_accrued=new_accrued_days,
            total_days_consumed=0.0,
            remaining_balance=new_accrued_days,
        )
        session.add(accrual)
    else:
        # 3. Apply the delta. A negative spill-over below zero is discarded.
        previous_value = accrual.total_days_accrued
        delta = new_accrued_days - accrual.total_days_accrued
        accrual.remaining_balance = round_days(max(0.0, accrual.remaining_balance + delta))
        accrual.total_days_accrued = new_accrued_days
        accrual.months_accrued = months_accrued

    # 4. Audit record.
    adjustment = BalanceAdjustment(
        employee_id=employee_id,
        accrual_year=accrual_year,
        adjustment_type=adjustment_type.value,
        previous_value=previous_value,
        new_value=new_accrued_days,
        days_delta=round_days(new_accrued_days - previous_value),
        reason=reason.strip(),
        adjusted_by=actor,
        created_at=adjusted_at or now_utc(),
    )
    session.add(adjustment)

    # 5. Commit.
    await session.flush()
    await session.commit()

    logger.info(
        "Adjusted employee=%s period=%d: %s -> %s days by %s (%s)",
        employee_id,
        accrual_year,
        previous_value,
        new_accrued_days,
        actor,
        adjustment_type.value,
    )
    return AdjustmentResult(
        accrual=build_accrual_response(accrual),
        adjustment=build_adjustment_response(adjustment),
    )


async def list_adjustments(
    session: AsyncSession,
    employee_id: uuid.UUID | None = None,
) -> AdjustmentListResponse:
    """Adjustment history, newest first, optionally for one employee."""
    query = select(BalanceAdjustment).order_by(col(BalanceAdjustment.created_at).desc())
    if employee_id is not None:
        query = query.where(col(BalanceAdjustment.employee_id) == employee_id)

    result = await session.execute(query)
    items = [build_adjustment_response(a) for a in result.scalars().all()]
    return AdjustmentListResponse(items=items, total=len(items))
