"""Tests for per-employee write serialization.

Every ledger mutation must lock the employee row (SELECT ... FOR UPDATE)
before it reads any ledger row. SQLite drops FOR UPDATE, so statements are
recorded as the PostgreSQL dialect would render them. A live PostgreSQL run
is available by pointing POSTGRES_TEST_URL at a disposable database.
"""

from __future__ import annotations

import asyncio
import os
import uuid
from datetime import date
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy import select
from sqlalchemy.dialects import postgresql
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlmodel import col

from vacation_ledger.models import Employee, SQLModel, VacationAccrual, VacationConsumption
from vacation_ledger.services.accrual import period_window, recalculate_accruals
from vacation_ledger.services.adjustment import record_adjustment
from vacation_ledger.services.consumption import (
    consume_cash_out_fifo,
    consume_vacation_fifo,
    reverse_consumption,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncEngine

POSTGRES_TEST_URL = os.environ.get("POSTGRES_TEST_URL")


def _record_statements(session: AsyncSession, monkeypatch: pytest.MonkeyPatch) -> list[str]:
    """Capture every statement the session executes, rendered for PostgreSQL."""
    statements: list[str] = []
    execute = session.execute

    async def _recording_execute(statement: Any, *args: Any, **kwargs: Any) -> Any:
        statements.append(str(statement.compile(dialect=postgresql.dialect())))
        return await execute(statement, *args, **kwargs)

    monkeypatch.setattr(session, "execute", _recording_execute)
    return statements


def _assert_employee_locked_first(statements: list[str]) -> None:
    assert statements
    lock = statements[0]
    assert lock.startswith("SELECT employee.")
    assert lock.rstrip().endswith("FOR UPDATE")

    ledger_reads = [s for s in statements[1:] if "FROM vacation_accrual" in s]
    assert ledger_reads
    for statement in ledger_reads:
        assert statement.rstrip().endswith("FOR UPDATE")


# ---------------------------------------------------------------------------
# Lock ordering (rendered SQL)
# ---------------------------------------------------------------------------


async def test_consume_locks_employee_before_ledger(
    db_session: AsyncSession, make_employee, make_accrual, monkeypatch: pytest.MonkeyPatch
) -> None:
    employee = await make_employee()
    await make_accrual(employee, 2023, accrued=30.0)
    statements = _record_statements(db_session, monkeypatch)

    await consume_vacation_fifo(db_session, employee.id, uuid.uuid4(), 3.0)

    _assert_employee_locked_first(statements)


async def test_cash_out_locks_employee_before_ledger(
    db_session: AsyncSession, make_employee, make_accrual, monkeypatch: pytest.MonkeyPatch
) -> None:
    employee = await make_employee()
    await make_accrual(employee, 2023, accrued=30.0)
    statements = _record_statements(db_session, monkeypatch)

    await consume_cash_out_fifo(db_session, employee.id, uuid.uuid4(), 3.0)

    _assert_employee_locked_first(statements)
    assert any("FROM vacation_consumption" in s for s in statements[1:])


async def test_reverse_locks_owning_employee_before_ledger(
    db_session: AsyncSession, make_employee, make_accrual, monkeypatch: pytest.MonkeyPatch
) -> None:
    employee = await make_employee()
    await make_accrual(employee, 2023, accrued=30.0)
    request_id = uuid.uuid4()
    await consume_vacation_fifo(db_session, employee.id, request_id, 3.0)
    statements = _record_statements(db_session, monkeypatch)

    result = await reverse_consumption(db_session, request_id)

    assert result.records_reversed == 1
    _assert_employee_locked_first(statements)
    # The owner is resolved inside the lock statement itself.
    assert "vacation_consumption.request_id" in statements[0]


async def test_adjustment_locks_employee_before_ledger(
    db_session: AsyncSession, make_employee, make_accrual, monkeypatch: pytest.MonkeyPatch
) -> None:
    employee = await make_employee()
    await make_accrual(employee, 2023, accrued=30.0)
    statements = _record_statements(db_session, monkeypatch)

    await record_adjustment(db_session, employee.id, 2023, 25.0, "Corrected opening balance", "hr@example.com")

    _assert_employee_locked_first(statements)


async def test_recalculate_locks_employee_before_ledger(
    db_session: AsyncSession, make_employee, monkeypatch: pytest.MonkeyPatch
) -> None:
    employee = await make_employee()
    statements = _record_statements(db_session, monkeypatch)

    await recalculate_accruals(db_session, employee.id, date(2023, 9, 20))

    _assert_employee_locked_first(statements)


# ---------------------------------------------------------------------------
# Concurrent writers (PostgreSQL only)
# ---------------------------------------------------------------------------


@pytest.fixture
async def pg_engine() -> AsyncIterator[AsyncEngine]:
    if not POSTGRES_TEST_URL:
        pytest.skip("POSTGRES_TEST_URL not set")
    _engine = create_async_engine(POSTGRES_TEST_URL)
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await _engine.dispose()


async def test_concurrent_consumes_never_overdraw(pg_engine: AsyncEngine) -> None:
    hire_date = date(2023, 1, 10)
    start, end = period_window(hire_date, 2023)
    async with AsyncSession(pg_engine, expire_on_commit=False) as session:
        employee = Employee(employee_code="E-LOCK", full_name="Ana Perez", email="ana@example.com", hire_date=hire_date)
        session.add(employee)
        await session.flush()
        session.add(
            VacationAccrual(
                employee_id=employee.id,
                accrual_year=2023,
                accrual_start_date=start,
                accrual_end_date=end,
                monthly_rate=2.5,
                months_accrued=6,
                total_days_accrued=15.0,
                remaining_balance=15.0,
            )
        )
        await session.commit()

    async def _consume(days: float):
        async with AsyncSession(pg_engine, expire_on_commit=False) as session:
            return await consume_vacation_fifo(session, employee.id, uuid.uuid4(), days)

    results = await asyncio.gather(_consume(10.0), _consume(10.0))

    assert sum(r.total_consumed for r in results) == 15.0
    assert sum(r.shortfall for r in results) == 5.0

    async with AsyncSession(pg_engine) as session:
        accrual = (
            await session.execute(select(VacationAccrual).where(col(VacationAccrual.employee_id) == employee.id))
        ).scalar_one()
        assert accrual.total_days_consumed == 15.0
        assert accrual.remaining_balance == 0.0
        consumed = await session.execute(select(VacationConsumption))
        assert sum(c.days_consumed for c in consumed.scalars().all()) == 15.0
