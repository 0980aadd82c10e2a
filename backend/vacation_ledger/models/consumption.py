# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field

from vacation_ledger.models.base import UUIDBase, utc_timestamp
from vacation_ledger.models.enums import ConsumptionKind
from vacation_ledger.schemas.origin import CashOutOrigin, LeaveOrigin, RequestOrigin


class VacationConsumption(UUIDBase, table=True):
    """Days drawn from one ledger row on behalf of one leave or cash-out request."""

    __tablename__ = "vacation_consumption"
    __table_args__ = (sa.Index("ix_consumption_origin", "origin_kind", "request_id"),)

    accrual_id: uuid.UUID = Field(
        sa_column=sa.Column(
            sa.Uuid, sa.ForeignKey("vacation_accrual.id", ondelete="CASCADE"), nullable=False, index=True
        ),
    )
    origin_kind: str = Field(max_length=20)
    request_id: uuid.UUID = Field(index=True)
    days_consumed: float
    consumed_at: datetime = utc_timestamp(index=True)

    @property
    def origin(self) -> RequestOrigin:
        """The originating request as a tagged variant."""
        match ConsumptionKind(self.origin_kind):
            case ConsumptionKind.LEAVE:
                return LeaveOrigin(request_id=self.request_id)
            case ConsumptionKind.CASH_OUT:
                return CashOutOrigin(request_id=self.request_id)
