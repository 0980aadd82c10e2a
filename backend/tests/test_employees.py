"""Integration tests for the employee API (create, get, list, terminate)."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from httpx import AsyncClient

HR_HEADERS = {"X-User-Email": "hr@example.com", "X-Role": "HR"}
USER_HEADERS = {"X-User-Email": "ana@example.com", "X-Role": "USER"}


def _employee_payload(
    employee_code: str = "E-001",
    full_name: str = "Ana Perez",
    hire_date: str = "2023-01-10",
    cost_center: str = "CC-100",
) -> dict:  # type: ignore[type-arg]
    return {
        "employee_code": employee_code,
        "full_name": full_name,
        "email": "ana@example.com",
        "hire_date": hire_date,
        "cost_center": cost_center,
        "supervisor_name": "Sam Boss",
        "supervisor_email": "sam.boss@example.com",
    }


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


async def test_create_employee(async_client: AsyncClient) -> None:
    resp = await async_client.post("/employees", json=_employee_payload(), headers=HR_HEADERS)
    assert resp.status_code == 201
    data = resp.json()
    assert data["employee_code"] == "E-001"
    assert data["hire_date"] == "2023-01-10"
    assert data["termination_date"] is None
    assert data["supervisor_email"] == "sam.boss@example.com"


async def test_create_employee_duplicate_code(async_client: AsyncClient) -> None:
    resp = await async_client.post("/employees", json=_employee_payload(), headers=HR_HEADERS)
    assert resp.status_code == 201

    resp = await async_client.post("/employees", json=_employee_payload(full_name="Other"), headers=HR_HEADERS)
    assert resp.status_code == 409


async def test_create_employee_requires_ledger_admin(async_client: AsyncClient) -> None:
    resp = await async_client.post("/employees", json=_employee_payload(), headers=USER_HEADERS)
    assert resp.status_code == 403


async def test_create_employee_rejects_unknown_role(async_client: AsyncClient) -> None:
    resp = await async_client.post(
        "/employees",
        json=_employee_payload(),
        headers={"X-User-Email": "hr@example.com", "X-Role": "JANITOR"},
    )
    assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------


async def test_get_employee(async_client: AsyncClient) -> None:
    created = await async_client.post("/employees", json=_employee_payload(), headers=HR_HEADERS)
    employee_id = created.json()["id"]

    resp = await async_client.get(f"/employees/{employee_id}", headers=USER_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["full_name"] == "Ana Perez"


async def test_get_employee_not_found(async_client: AsyncClient) -> None:
    resp = await async_client.get(f"/employees/{uuid.uuid4()}", headers=USER_HEADERS)
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Employee not found"


async def test_list_employees_filters(async_client: AsyncClient) -> None:
    await async_client.post("/employees", json=_employee_payload("E-1", "Zoe"), headers=HR_HEADERS)
    await async_client.post(
        "/employees", json=_employee_payload("E-2", "Bea", cost_center="CC-200"), headers=HR_HEADERS
    )
    created = await async_client.post("/employees", json=_employee_payload("E-3", "Max"), headers=HR_HEADERS)
    await async_client.patch(
        f"/employees/{created.json()['id']}/termination",
        json={"termination_date": "2024-03-31"},
        headers=HR_HEADERS,
    )

    resp = await async_client.get("/employees", headers=USER_HEADERS)
    assert [e["full_name"] for e in resp.json()["items"]] == ["Bea", "Max", "Zoe"]

    resp = await async_client.get("/employees", params={"active_only": "true"}, headers=USER_HEADERS)
    assert [e["full_name"] for e in resp.json()["items"]] == ["Bea", "Zoe"]

    resp = await async_client.get("/employees", params={"cost_center": "CC-200"}, headers=USER_HEADERS)
    assert resp.json()["total"] == 1


# ---------------------------------------------------------------------------
# Terminate
# ---------------------------------------------------------------------------


async def test_set_termination(async_client: AsyncClient) -> None:
    created = await async_client.post("/employees", json=_employee_payload(), headers=HR_HEADERS)
    employee_id = created.json()["id"]

    resp = await async_client.patch(
        f"/employees/{employee_id}/termination",
        json={"termination_date": "2024-06-30"},
        headers=HR_HEADERS,
    )
    assert resp.status_code == 200
    assert resp.json()["termination_date"] == "2024-06-30"

    resp = await async_client.patch(
        f"/employees/{employee_id}/termination",
        json={"termination_date": None},
        headers=HR_HEADERS,
    )
    assert resp.json()["termination_date"] is None


async def test_termination_before_hire_date_rejected(async_client: AsyncClient) -> None:
    created = await async_client.post("/employees", json=_employee_payload(), headers=HR_HEADERS)

    resp = await async_client.patch(
        f"/employees/{created.json()['id']}/termination",
        json={"termination_date": "2022-12-31"},
        headers=HR_HEADERS,
    )
    assert resp.status_code == 400
