"""Shared test fixtures: in-memory SQLite database, HTTP client and ledger factories.

Each test gets a fresh aiosqlite database so ledger state never leaks between
tests. Row locks (FOR UPDATE) are not emitted on SQLite; locking behaviour is
exercised against PostgreSQL only.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import TYPE_CHECKING, Any

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from vacation_ledger.db import get_session
from vacation_ledger.main import app
from vacation_ledger.models import Employee, SQLModel, VacationAccrual
from vacation_ledger.services.accrual import period_window

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    from sqlalchemy.ext.asyncio import AsyncEngine

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """Create a fresh in-memory database with all tables."""
    _engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    await _engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the database session dependency overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_employee(db_session: AsyncSession) -> Callable[..., Awaitable[Employee]]:
    """Insert an employee; keyword arguments override the defaults."""

    async def _make(**overrides: Any) -> Employee:
        fields: dict[str, Any] = {
            "employee_code": f"E-{uuid.uuid4().hex[:8]}",
            "full_name": "Ana Perez",
            "email": "ana@example.com",
            "hire_date": date(2023, 1, 10),
            "cost_center": "CC-100",
            "supervisor_name": "Sam Boss",
            "supervisor_email": "sam.boss@example.com",
        }
        fields.update(overrides)
        employee = Employee(**fields)
        db_session.add(employee)
        await db_session.commit()
        return employee

    return _make


@pytest.fixture
def make_accrual(db_session: AsyncSession) -> Callable[..., Awaitable[VacationAccrual]]:
    """Insert a ledger row for an employee's period with the given totals."""

    async def _make(
        employee: Employee,
        accrual_year: int,
        *,
        accrued: float = 30.0,
        consumed: float = 0.0,
    ) -> VacationAccrual:
        start, end = period_window(employee.hire_date, accrual_year)
        accrual = VacationAccrual(
            employee_id=employee.id,
            accrual_year=accrual_year,
            accrual_start_date=start,
            accrual_end_date=end,
            monthly_rate=2.5,
            months_accrued=min(12, round(accrued / 2.5)),
            total_days_accrued=accrued,
            total_days_consumed=consumed,
            remaining_balance=accrued - consumed,
        )
        db_session.add(accrual)
        await db_session.commit()
        return accrual

    return _make
