from __future__ import annotations

import enum


class ConsumptionKind(enum.StrEnum):
    """Channel through which vacation days are consumed."""

    LEAVE = "LEAVE"
    CASH_OUT = "CASH_OUT"


class AdjustmentType(enum.StrEnum):
    """Reason category of a manual change to a period's accrued total."""

    INITIAL_LOAD = "INITIAL_LOAD"
    MANUAL = "MANUAL"
    CORRECTION = "CORRECTION"


class UserRole(enum.StrEnum):
    """Caller roles recognised by the API."""

    USER = "USER"
    SUPERVISOR = "SUPERVISOR"
    HR = "HR"
    COUNTRY_MANAGER = "COUNTRY_MANAGER"
    ADMIN = "ADMIN"


# Roles allowed to override balances and trigger ledger-wide jobs.
LEDGER_ADMIN_ROLES = frozenset({UserRole.HR, UserRole.COUNTRY_MANAGER, UserRole.ADMIN})
