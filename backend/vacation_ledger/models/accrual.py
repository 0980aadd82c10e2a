# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

import sqlalchemy as sa
from sqlmodel import Field

from vacation_ledger.models.base import TimestampMixin, UUIDBase, utc_timestamp

# Day quantities are stored rounded to 4 decimals.
DAY_PRECISION = 4


def round_days(value: float) -> float:
    """Round to DAY_PRECISION decimals, folding -0.0 into 0.0."""
    return round(value, DAY_PRECISION) + 0.0


class VacationAccrual(UUIDBase, TimestampMixin, table=True):
    """Per-employee, per-year ledger row of accrued, consumed and remaining days."""

    __tablename__ = "vacation_accrual"
    __table_args__ = (
        sa.UniqueConstraint("employee_id", "accrual_year", name="uq_accrual_employee_year"),
        sa.Index("ix_accrual_employee_year", "employee_id", "accrual_year"),
    )

    employee_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("employee.id", ondelete="CASCADE"), nullable=False),
    )
    accrual_year: int
    accrual_start_date: date
    accrual_end_date: date
    monthly_rate: float
    months_accrued: int = Field(default=0)
    total_days_accrued: float = Field(default=0.0)
    total_days_consumed: float = Field(default=0.0)
    remaining_balance: float = Field(default=0.0)
    updated_at: datetime = utc_timestamp(on_update=True)

    def apply_consumption(self, days: float) -> None:
        """Move ``days`` from remaining to consumed. Negative days restore balance."""
        self.total_days_consumed = round_days(self.total_days_consumed + days)
        self.remaining_balance = round_days(self.remaining_balance - days)
