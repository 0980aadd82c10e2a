# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field

from vacation_ledger.models.enums import ConsumptionKind
from vacation_ledger.schemas.origin import RequestOrigin

# ---------------------------------------------------------------------------
# Availability
# ---------------------------------------------------------------------------


class PeriodBalance(BaseModel):
    """Remaining balance of one accrual period."""

    accrual_year: int
    remaining: float
    accrued: float
    consumed: float


class AvailableBalanceResponse(BaseModel):
    """Total days available for leave, with the per-period breakdown."""

    total_available: float
    by_period: list[PeriodBalance]


class PeriodCashOut(BaseModel):
    """Cash-out headroom of one accrual period."""

    accrual_year: int
    remaining: float
    cash_out_used: float
    cash_out_available: float


class AvailableCashOutResponse(BaseModel):
    """Total days that may still be cashed out, with the per-period breakdown."""

    total_available: float
    by_period: list[PeriodCashOut]


# ---------------------------------------------------------------------------
# Consumption
# ---------------------------------------------------------------------------


class ConsumeRequest(BaseModel):
    """Request body for consuming days on behalf of an approved request."""

    employee_id: uuid.UUID
    request_id: uuid.UUID
    total_days: float = Field(gt=0)


class Allocation(BaseModel):
    """Days drawn from a single period."""

    accrual_year: int
    days_consumed: float


class ConsumptionResult(BaseModel):
    """Outcome of a FIFO allocation. ``shortfall`` is what could not be covered."""

    kind: ConsumptionKind
    request_id: uuid.UUID
    allocations: list[Allocation]
    total_consumed: float
    shortfall: float


class ReversalResult(BaseModel):
    """Outcome of reversing every consumption of a request."""

    request_id: uuid.UUID
    records_reversed: int
    days_restored: float


# ---------------------------------------------------------------------------
# Ledger overview
# ---------------------------------------------------------------------------


class ConsumptionRecord(BaseModel):
    """One consumption record with the request it belongs to."""

    id: uuid.UUID
    accrual_year: int
    origin: RequestOrigin
    days_consumed: float
    consumed_at: datetime


class RequestConsumptionsResponse(BaseModel):
    """Records currently held by one request."""

    request_id: uuid.UUID
    items: list[ConsumptionRecord]
    total_days: float


class PeriodLedger(BaseModel):
    """Totals of one period plus the consumption records behind them.

    ``untracked_consumed`` is consumed history with no record, such as
    balances loaded before the ledger existed.
    """

    accrual_year: int
    accrual_start_date: date
    accrual_end_date: date
    months_accrued: int
    total_days_accrued: float
    total_days_consumed: float
    remaining_balance: float
    leave_days: float
    cash_out_days: float
    untracked_consumed: float
    consumptions: list[ConsumptionRecord]


class EmployeeBalance(BaseModel):
    """Ledger overview of one employee."""

    employee_id: uuid.UUID
    employee_code: str
    full_name: str
    cost_center: str
    total_available: float
    periods: list[PeriodLedger]


class BalanceOverviewResponse(BaseModel):
    """Ledger overview of active employees, ordered by name."""

    items: list[EmployeeBalance]
    total: int
