from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import Select, select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from vacation_ledger.exceptions import AppError, NotFoundError
from vacation_ledger.models.employee import Employee
from vacation_ledger.schemas.employee import EmployeeListResponse, EmployeeResponse

if TYPE_CHECKING:
    import uuid
    from collections.abc import Iterable

    from sqlalchemy.ext.asyncio import AsyncSession

    from vacation_ledger.schemas.employee import CreateEmployeeRequest, TerminateEmployeeRequest

logger = logging.getLogger(__name__)


def build_employee_response(employee: Employee) -> EmployeeResponse:
    """Map an employee model to its response schema."""
    return EmployeeResponse(
        id=employee.id,
        employee_code=employee.employee_code,
        full_name=employee.full_name,
        email=employee.email,
        hire_date=employee.hire_date,
        termination_date=employee.termination_date,
        cost_center=employee.cost_center,
        supervisor_name=employee.supervisor_name,
        supervisor_email=employee.supervisor_email,
        created_at=employee.created_at,
    )


async def get_employee_or_404(session: AsyncSession, employee_id: uuid.UUID) -> Employee:
    """Fetch an employee by ID. Raises NotFoundError if absent."""
    employee = await session.get(Employee, employee_id)
    if employee is None:
        raise NotFoundError("Employee not found")
    return employee


async def lock_employee(session: AsyncSession, employee_id: uuid.UUID) -> Employee:
    """Fetch an employee with a FOR UPDATE lock.

    Every ledger mutation takes this lock first, so writes to one employee's
    periods are serialized for the rest of the transaction.
    """
    result = await session.execute(
        select(Employee).where(col(Employee.id) == employee_id).with_for_update(),
    )
    employee = result.scalar_one_or_none()
    if employee is None:
        raise NotFoundError("Employee not found")
    return employee


async def lock_employees(
    session: AsyncSession,
    employee_ids: Iterable[uuid.UUID] | Select[tuple[uuid.UUID]],
) -> list[Employee]:
    """Lock several employees in id order to avoid lock-order deadlocks.

    ``employee_ids`` may be a subquery, so owners are resolved and locked in
    one statement before any ledger row is read.
    """
    ids: list[uuid.UUID] | Select[tuple[uuid.UUID]]
    if isinstance(employee_ids, Select):
        ids = employee_ids
    else:
        ids = sorted(set(employee_ids))
        if not ids:
            return []
    result = await session.execute(
        select(Employee).where(col(Employee.id).in_(ids)).order_by(col(Employee.id)).with_for_update(),
    )
    return list(result.scalars().all())


async def create_employee(session: AsyncSession, payload: CreateEmployeeRequest) -> EmployeeResponse:
    """Register an employee. Raises 409 when the employee code is taken."""
    employee = Employee(
        employee_code=payload.employee_code,
        full_name=payload.full_name,
        email=payload.email,
        hire_date=payload.hire_date,
        cost_center=payload.cost_center,
        supervisor_name=payload.supervisor_name,
        supervisor_email=payload.supervisor_email,
    )
    session.add(employee)
    try:
        await session.flush()
    except IntegrityError as exc:
        await session.rollback()
        raise AppError("Employee code already exists", status_code=409) from exc

    await session.commit()
    logger.info("Created employee=%s code=%s hire_date=%s", employee.id, employee.employee_code, employee.hire_date)
    return build_employee_response(employee)


async def get_employee(session: AsyncSession, employee_id: uuid.UUID) -> EmployeeResponse:
    return build_employee_response(await get_employee_or_404(session, employee_id))


async def list_employees(
    session: AsyncSession,
    *,
    active_only: bool = False,
    cost_center: str | None = None,
) -> EmployeeListResponse:
    """List employees ordered by name."""
    query = select(Employee).order_by(col(Employee.full_name))
    if active_only:
        query = query.where(col(Employee.termination_date).is_(None))
    if cost_center is not None:
        query = query.where(col(Employee.cost_center) == cost_center)

    result = await session.execute(query)
    items = [build_employee_response(e) for e in result.scalars().all()]
    return EmployeeListResponse(items=items, total=len(items))


async def set_termination(
    session: AsyncSession,
    employee_id: uuid.UUID,
    payload: TerminateEmployeeRequest,
) -> EmployeeResponse:
    """Record or clear an employee's termination date."""
    employee = await lock_employee(session, employee_id)
    if payload.termination_date is not None and payload.termination_date < employee.hire_date:
        raise AppError("Termination date cannot precede hire date", status_code=400)

    employee.termination_date = payload.termination_date
    await session.commit()
    logger.info("Employee=%s termination_date=%s", employee_id, payload.termination_date)
    return build_employee_response(employee)
