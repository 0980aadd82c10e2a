# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field


class CreateEmployeeRequest(BaseModel):
    """Request body for registering an employee."""

    employee_code: str = Field(min_length=1, max_length=50)
    full_name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=255)
    hire_date: date
    cost_center: str = Field(default="", max_length=100)
    supervisor_name: str = Field(default="", max_length=255)
    supervisor_email: str = Field(default="", max_length=255)


class TerminateEmployeeRequest(BaseModel):
    """Request body for recording (or clearing) a termination date."""

    termination_date: date | None


class EmployeeResponse(BaseModel):
    """Response schema for an employee."""

    id: uuid.UUID
    employee_code: str
    full_name: str
    email: str
    hire_date: date
    termination_date: date | None
    cost_center: str
    supervisor_name: str
    supervisor_email: str
    created_at: datetime


class EmployeeListResponse(BaseModel):
    """List of employees."""

    items: list[EmployeeResponse]
    total: int
