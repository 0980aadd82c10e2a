# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Query, status

from vacation_ledger.api.deps import AuthDep, LedgerAdminDep
from vacation_ledger.db import SessionDep
from vacation_ledger.schemas.accrual import AccrualListResponse
from vacation_ledger.schemas.employee import (
    CreateEmployeeRequest,
    EmployeeListResponse,
    EmployeeResponse,
    TerminateEmployeeRequest,
)
from vacation_ledger.services import accrual as accrual_service
from vacation_ledger.services import employee as employee_service
from vacation_ledger.services.adjustment import build_accrual_response

employees_router = APIRouter(
    prefix="/employees",
    tags=["employees"],
)


@employees_router.post("", response_model=EmployeeResponse, status_code=status.HTTP_201_CREATED)
async def create_employee(
    payload: CreateEmployeeRequest,
    session: SessionDep,
    auth: LedgerAdminDep,
) -> EmployeeResponse:
    """Register an employee (HR roles only)."""
    return await employee_service.create_employee(session, payload)


@employees_router.get("", response_model=EmployeeListResponse)
async def list_employees(
    session: SessionDep,
    auth: AuthDep,
    active_only: bool = Query(default=False),
    cost_center: str | None = Query(default=None),
) -> EmployeeListResponse:
    """List employees ordered by name."""
    return await employee_service.list_employees(session, active_only=active_only, cost_center=cost_center)


@employees_router.get("/{employee_id}", response_model=EmployeeResponse)
async def get_employee(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> EmployeeResponse:
    """Get one employee."""
    return await employee_service.get_employee(session, employee_id)


@employees_router.patch("/{employee_id}/termination", response_model=EmployeeResponse)
async def set_termination(
    employee_id: uuid.UUID,
    payload: TerminateEmployeeRequest,
    session: SessionDep,
    auth: LedgerAdminDep,
) -> EmployeeResponse:
    """Record or clear an employee's termination date (HR roles only)."""
    return await employee_service.set_termination(session, employee_id, payload)


@employees_router.get("/{employee_id}/accruals", response_model=AccrualListResponse)
async def list_accruals(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> AccrualListResponse:
    """List the employee's accrual periods, oldest first."""
    await employee_service.get_employee_or_404(session, employee_id)
    rows = await accrual_service.list_accruals(session, employee_id)
    return AccrualListResponse(items=[build_accrual_response(r) for r in rows], total=len(rows))


@employees_router.post("/{employee_id}/accruals/recalculate", response_model=AccrualListResponse)
async def recalculate_accruals(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    as_of: date | None = Query(default=None),
) -> AccrualListResponse:
    """Recompute the employee's accrual periods as of a date (default today). Idempotent."""
    rows = await accrual_service.recalculate_accruals(session, employee_id, as_of)
    return AccrualListResponse(items=[build_accrual_response(r) for r in rows], total=len(rows))
