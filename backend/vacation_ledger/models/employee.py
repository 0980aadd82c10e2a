# ruff: noqa: TC003
from __future__ import annotations

from datetime import date

import sqlalchemy as sa
from sqlmodel import Field, col

from vacation_ledger.models.base import TimestampMixin, UUIDBase


class Employee(UUIDBase, TimestampMixin, table=True):
    """Employee master data needed by the ledger: hire date, termination and reporting line."""

    __tablename__ = "employee"

    employee_code: str = Field(max_length=50, unique=True, index=True)
    full_name: str = Field(max_length=255)
    email: str = Field(max_length=255)
    hire_date: date
    termination_date: date | None = None
    cost_center: str = Field(default="", max_length=100)
    supervisor_name: str = Field(default="", max_length=255)
    supervisor_email: str = Field(default="", max_length=255, index=True)

    @classmethod
    def employed_between(cls, start: date, end: date) -> sa.ColumnElement[bool]:
        """SQL filter: employed at any point in [start, end]."""
        return sa.and_(
            col(cls.hire_date) <= end,
            sa.or_(col(cls.termination_date).is_(None), col(cls.termination_date) >= start),
        )
