# ruff: noqa: TC003
"""Tagged origin of a consumption: which request, and through which channel."""

from __future__ import annotations

import uuid
from typing import Annotated, Literal

from pydantic import BaseModel, Field


class LeaveOrigin(BaseModel):
    """Days taken as time off by an approved leave request."""

    kind: Literal["LEAVE"] = "LEAVE"
    request_id: uuid.UUID


class CashOutOrigin(BaseModel):
    """Days paid out by an approved cash-out request."""

    kind: Literal["CASH_OUT"] = "CASH_OUT"
    request_id: uuid.UUID


RequestOrigin = Annotated[LeaveOrigin | CashOutOrigin, Field(discriminator="kind")]
