# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field

from vacation_ledger.models.base import UUIDBase, utc_timestamp
from vacation_ledger.models.enums import AdjustmentType


class BalanceAdjustment(UUIDBase, table=True):
    """Immutable audit record of a manual override of a period's accrued total."""

    __tablename__ = "balance_adjustment"
    __table_args__ = (sa.Index("ix_adjustment_employee_year", "employee_id", "accrual_year"),)

    employee_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("employee.id", ondelete="CASCADE"), nullable=False),
    )
    accrual_year: int
    adjustment_type: str = Field(default=AdjustmentType.MANUAL, max_length=50)
    previous_value: float
    new_value: float
    days_delta: float
    reason: str
    adjusted_by: str = Field(max_length=255)
    created_at: datetime = utc_timestamp(index=True)
