"""Tests for the accrual engine: period math, recalculation and the recalculate endpoints."""

from __future__ import annotations

import uuid
from datetime import date, timedelta
from typing import TYPE_CHECKING

import pytest

from vacation_ledger.exceptions import NotFoundError
from vacation_ledger.services.accrual import (
    accrued_as_of,
    anniversary,
    compute_period_accruals,
    days_for_months,
    months_elapsed,
    period_window,
    recalculate_accruals,
    recalculate_all_accruals,
)
from vacation_ledger.services.adjustment import record_adjustment
from vacation_ledger.services.consumption import consume_vacation_fifo

if TYPE_CHECKING:
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

HR_HEADERS = {"X-User-Email": "hr@example.com", "X-Role": "HR"}
USER_HEADERS = {"X-User-Email": "ana@example.com", "X-Role": "USER"}


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def test_anniversary_regular_date() -> None:
    assert anniversary(date(2023, 1, 10), 2025) == date(2025, 1, 10)


def test_anniversary_leap_day_falls_back_to_feb_28() -> None:
    assert anniversary(date(2020, 2, 29), 2021) == date(2021, 2, 28)
    assert anniversary(date(2020, 2, 29), 2024) == date(2024, 2, 29)


def test_period_window_is_one_year_from_anniversary() -> None:
    assert period_window(date(2023, 1, 10), 2023) == (date(2023, 1, 10), date(2024, 1, 10))
    assert period_window(date(2023, 1, 10), 2025) == (date(2025, 1, 10), date(2026, 1, 10))


@pytest.mark.parametrize(
    ("as_of", "expected"),
    [
        (date(2023, 1, 9), 0),
        (date(2023, 1, 31), 0),
        (date(2023, 2, 1), 1),
        (date(2023, 7, 10), 6),
        (date(2024, 1, 9), 12),
        (date(2024, 1, 10), 12),
        (date(2030, 5, 1), 12),
    ],
)
def test_months_elapsed(as_of: date, expected: int) -> None:
    assert months_elapsed(date(2023, 1, 10), date(2024, 1, 10), as_of) == expected


def test_days_for_months_is_capped() -> None:
    assert days_for_months(6) == 15.0
    assert days_for_months(12) == 30.0
    assert days_for_months(12, max_days=20.0) == 20.0
    assert days_for_months(4, monthly_rate=1.25) == 5.0


def test_compute_period_accruals_full_year() -> None:
    """Hired 2023-01-10, as of 2024-01-10: period 2023 is complete, 2024 just opened."""
    periods = compute_period_accruals(date(2023, 1, 10), date(2024, 1, 10))

    assert [p.accrual_year for p in periods] == [2023, 2024]
    first, second = periods
    assert first.months_accrued == 12
    assert first.total_days_accrued == 30.0
    assert second.months_accrued == 0
    assert second.total_days_accrued == 0.0


def test_compute_period_accruals_half_year() -> None:
    periods = compute_period_accruals(date(2023, 1, 10), date(2023, 7, 10))

    assert len(periods) == 1
    assert periods[0].months_accrued == 6
    assert periods[0].total_days_accrued == 15.0


def test_accrued_as_of_never_decreases() -> None:
    start, end = period_window(date(2022, 8, 17), 2022)
    previous = 0.0
    day = date(2022, 8, 1)
    while day < date(2024, 1, 1):
        current = accrued_as_of(start, end, day)
        assert current >= previous
        assert 0.0 <= current <= 30.0
        previous = current
        day += timedelta(days=9)


# ---------------------------------------------------------------------------
# Recalculation
# ---------------------------------------------------------------------------


async def test_recalculate_creates_periods(db_session: AsyncSession, make_employee) -> None:
    employee = await make_employee(hire_date=date(2021, 3, 1))

    rows = await recalculate_accruals(db_session, employee.id, date(2023, 6, 15))

    assert [r.accrual_year for r in rows] == [2021, 2022, 2023]
    assert [r.total_days_accrued for r in rows] == [30.0, 30.0, 7.5]
    assert rows[2].months_accrued == 3
    for row in rows:
        assert row.remaining_balance == row.total_days_accrued - row.total_days_consumed


async def test_recalculate_is_idempotent(db_session: AsyncSession, make_employee) -> None:
    employee = await make_employee()

    first = await recalculate_accruals(db_session, employee.id, date(2023, 9, 20))
    snapshot = [(r.id, r.total_days_accrued, r.remaining_balance) for r in first]
    second = await recalculate_accruals(db_session, employee.id, date(2023, 9, 20))

    assert [(r.id, r.total_days_accrued, r.remaining_balance) for r in second] == snapshot


async def test_recalculate_preserves_consumption(db_session: AsyncSession, make_employee) -> None:
    employee = await make_employee()
    await recalculate_accruals(db_session, employee.id, date(2023, 5, 10))
    await consume_vacation_fifo(db_session, employee.id, uuid.uuid4(), 4.0)

    rows = await recalculate_accruals(db_session, employee.id, date(2023, 11, 10))

    assert rows[0].total_days_accrued == 25.0
    assert rows[0].total_days_consumed == 4.0
    assert rows[0].remaining_balance == 21.0


async def test_recalculate_below_consumed_leaves_negative_remaining(db_session: AsyncSession, make_employee) -> None:
    employee = await make_employee(hire_date=date(2023, 1, 10))
    await record_adjustment(db_session, employee.id, 2024, 30.0, "Opening balance", "hr@example.com")
    await consume_vacation_fifo(db_session, employee.id, uuid.uuid4(), 30.0)

    rows = await recalculate_accruals(db_session, employee.id, date(2024, 3, 15))

    by_year = {r.accrual_year: r for r in rows}
    assert by_year[2024].total_days_accrued == 5.0
    assert by_year[2024].total_days_consumed == 30.0
    assert by_year[2024].remaining_balance == -25.0
    assert by_year[2023].remaining_balance == 30.0
    for row in rows:
        assert row.remaining_balance == row.total_days_accrued - row.total_days_consumed


async def test_recalculate_unknown_employee_raises(db_session: AsyncSession) -> None:
    with pytest.raises(NotFoundError):
        await recalculate_accruals(db_session, uuid.uuid4(), date(2024, 1, 1))


async def test_recalculate_all_skips_terminated_and_future_hires(db_session: AsyncSession, make_employee) -> None:
    active = await make_employee(employee_code="A-1")
    await make_employee(employee_code="T-1", termination_date=date(2023, 3, 31))
    await make_employee(employee_code="F-1", hire_date=date(2024, 2, 1))

    result = await recalculate_all_accruals(db_session, date(2023, 6, 1))

    assert result.processed == 1
    assert result.errors == 0
    rows = await recalculate_accruals(db_session, active.id, date(2023, 6, 1))
    assert rows[0].months_accrued == 5


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------


async def test_recalculate_endpoint(async_client: AsyncClient, make_employee) -> None:
    employee = await make_employee()

    resp = await async_client.post(
        f"/employees/{employee.id}/accruals/recalculate",
        params={"as_of": "2023-07-10"},
        headers=USER_HEADERS,
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 1
    assert data["items"][0]["months_accrued"] == 6
    assert data["items"][0]["total_days_accrued"] == 15.0

    resp = await async_client.get(f"/employees/{employee.id}/accruals", headers=USER_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["items"][0]["remaining_balance"] == 15.0


async def test_recalculate_endpoint_unknown_employee(async_client: AsyncClient) -> None:
    resp = await async_client.post(f"/employees/{uuid.uuid4()}/accruals/recalculate", headers=USER_HEADERS)
    assert resp.status_code == 404
    assert resp.json()["error"] == "NotFoundError"


async def test_recalculate_all_requires_ledger_admin(async_client: AsyncClient) -> None:
    resp = await async_client.post("/accruals/recalculate", headers=USER_HEADERS)
    assert resp.status_code == 403


async def test_recalculate_all_endpoint(async_client: AsyncClient, make_employee) -> None:
    await make_employee(employee_code="A-1")
    await make_employee(employee_code="A-2", hire_date=date(2022, 5, 5))

    resp = await async_client.post(
        "/accruals/recalculate",
        params={"as_of": "2023-12-31"},
        headers=HR_HEADERS,
    )
    assert resp.status_code == 200
    assert resp.json() == {"as_of": "2023-12-31", "processed": 2, "errors": 0}
