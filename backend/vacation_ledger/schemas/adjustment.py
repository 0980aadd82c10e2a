# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from vacation_ledger.config import get_settings
from vacation_ledger.models.enums import AdjustmentType
from vacation_ledger.schemas.accrual import AccrualResponse


class CreateAdjustmentRequest(BaseModel):
    """Request body for overriding the accrued total of one period."""

    employee_id: uuid.UUID
    accrual_year: int = Field(ge=1900, le=9999)
    new_accrued_days: float = Field(ge=0)
    reason: str = Field(max_length=1000)
    adjustment_type: AdjustmentType = AdjustmentType.MANUAL

    @field_validator("reason")
    @classmethod
    def _reason_long_enough(cls, value: str) -> str:
        value = value.strip()
        min_length = get_settings().adjustment_reason_min_length
        if len(value) < min_length:
            msg = f"reason must be at least {min_length} characters"
            raise ValueError(msg)
        return value


class AdjustmentResponse(BaseModel):
    """A single adjustment audit record."""

    id: uuid.UUID
    employee_id: uuid.UUID
    accrual_year: int
    adjustment_type: AdjustmentType
    previous_value: float
    new_value: float
    days_delta: float
    reason: str
    adjusted_by: str
    created_at: datetime


class AdjustmentResult(BaseModel):
    """The updated ledger row together with the audit record written for it."""

    accrual: AccrualResponse
    adjustment: AdjustmentResponse


class AdjustmentListResponse(BaseModel):
    """Adjustment history, newest first."""

    items: list[AdjustmentResponse]
    total: int
