from sqlmodel import SQLModel

from vacation_ledger.models.accrual import VacationAccrual
from vacation_ledger.models.adjustment import BalanceAdjustment
from vacation_ledger.models.base import TimestampMixin, UUIDBase
from vacation_ledger.models.consumption import VacationConsumption
from vacation_ledger.models.employee import Employee
from vacation_ledger.models.enums import AdjustmentType, ConsumptionKind, UserRole

__all__ = [
    "AdjustmentType",
    "BalanceAdjustment",
    "ConsumptionKind",
    "Employee",
    "SQLModel",
    "TimestampMixin",
    "UUIDBase",
    "UserRole",
    "VacationAccrual",
    "VacationConsumption",
]
