# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel

from vacation_ledger.models.enums import AdjustmentType

# ---------------------------------------------------------------------------
# Monthly report
# ---------------------------------------------------------------------------


class PeriodBalanceDetail(BaseModel):
    """Ledger totals of one period as shown in a report."""

    accrual_year: int
    total_days_accrued: float
    total_days_consumed: float
    remaining_balance: float


class ConsumptionMovement(BaseModel):
    """A consumption recorded during the report month."""

    request_id: uuid.UUID
    accrual_year: int
    days_consumed: float
    consumed_at: datetime


class AdjustmentMovement(BaseModel):
    """An adjustment recorded during the report month."""

    adjustment_type: AdjustmentType
    accrual_year: int
    days_delta: float
    reason: str
    adjusted_by: str


class AccrualMovement(BaseModel):
    """Days earned in one period during the report month."""

    accrual_year: int
    previous_accrued: float
    current_accrued: float
    increment: float


class MonthMovements(BaseModel):
    """Everything that moved an employee's ledger during the month."""

    leave_taken: list[ConsumptionMovement]
    cash_outs: list[ConsumptionMovement]
    adjustments: list[AdjustmentMovement]
    accrual_increments: list[AccrualMovement]

    @property
    def is_empty(self) -> bool:
        return not (self.leave_taken or self.cash_outs or self.adjustments or self.accrual_increments)


class EmployeeMonthlyReport(BaseModel):
    """One employee's balances and movements for the month."""

    employee_id: uuid.UUID
    employee_code: str
    full_name: str
    email: str
    cost_center: str
    balance_by_period: list[PeriodBalanceDetail]
    movements: MonthMovements


class SupervisorReport(BaseModel):
    """Employees reporting to one supervisor."""

    supervisor_email: str
    supervisor_name: str
    employees: list[EmployeeMonthlyReport]


class MonthlyReportResponse(BaseModel):
    """Monthly report envelope."""

    report_month: str
    report_month_label: str
    generated_at: datetime
    supervisors: list[SupervisorReport]


# ---------------------------------------------------------------------------
# Overdue balance alert
# ---------------------------------------------------------------------------


class OverduePeriodDetail(BaseModel):
    """A period that ended long ago and still holds days."""

    accrual_year: int
    accrual_end_date: date
    remaining_balance: float
    months_overdue: int


class OverdueEmployeeDetail(BaseModel):
    """Overdue periods of one employee."""

    employee_id: uuid.UUID
    employee_code: str
    full_name: str
    email: str
    cost_center: str
    total_overdue_days: float
    overdue_periods: list[OverduePeriodDetail]


class OverdueSupervisorGroup(BaseModel):
    """Employees with overdue balances reporting to one supervisor."""

    supervisor_email: str
    supervisor_name: str
    total_overdue_days: float
    employees: list[OverdueEmployeeDetail]


class OverdueAlertResponse(BaseModel):
    """Overdue balance alert envelope."""

    generated_at: datetime
    cutoff_date: date
    total_overdue_employees: int
    total_overdue_days: float
    supervisors: list[OverdueSupervisorGroup]
