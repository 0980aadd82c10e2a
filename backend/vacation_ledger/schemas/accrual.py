# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel


class AccrualResponse(BaseModel):
    """A single period ledger row."""

    id: uuid.UUID
    employee_id: uuid.UUID
    accrual_year: int
    accrual_start_date: date
    accrual_end_date: date
    monthly_rate: float
    months_accrued: int
    total_days_accrued: float
    total_days_consumed: float
    remaining_balance: float
    updated_at: datetime


class AccrualListResponse(BaseModel):
    """All period ledger rows of an employee, oldest first."""

    items: list[AccrualResponse]
    total: int


class AccrualRunResponse(BaseModel):
    """Response from the recalculate-all trigger."""

    as_of: date
    processed: int
    errors: int
