from __future__ import annotations

import uuid
from datetime import UTC, datetime

import sqlalchemy as sa
from sqlmodel import Field, SQLModel


def now_utc() -> datetime:
    """Return the current UTC time."""
    return datetime.now(UTC)


def utc_timestamp(*, index: bool = False, on_update: bool = False) -> datetime:
    """Field for a tz-aware timestamp defaulting to now, in Python and on the server.

    ``on_update`` refreshes the value client-side on every flush that changes the row.
    """
    column_kwargs: dict[str, object] = {"server_default": sa.func.now()}
    if on_update:
        column_kwargs["onupdate"] = now_utc
    return Field(  # type: ignore[no-any-return]
        default_factory=now_utc,
        index=index,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs=column_kwargs,
    )


class UUIDBase(SQLModel):
    """Base model with a UUID v4 primary key."""

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        sa_type=sa.Uuid,
    )


class TimestampMixin(SQLModel):
    """Mixin that adds a created_at timestamp."""

    created_at: datetime = utc_timestamp()
