import logging
from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import func, select

from vacation_ledger.config import get_settings
from vacation_ledger.db import SessionDep
from vacation_ledger.models.employee import Employee

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Service status plus whether the ledger schema is reachable."""

    status: Literal["ok", "degraded"]
    version: str
    environment: str
    ledger_reachable: bool


@router.get("/health", response_model=HealthResponse)
async def health(session: SessionDep) -> HealthResponse:
    """Liveness probe. Reports ``degraded`` when the employee table cannot be queried."""
    settings = get_settings()
    reachable = True

    try:
        await session.execute(select(func.count()).select_from(Employee))
    except Exception:
        logger.exception("Health check: ledger database unreachable")
        reachable = False

    return HealthResponse(
        status="ok" if reachable else "degraded",
        version=settings.app_version,
        environment=settings.environment,
        ledger_reachable=reachable,
    )
