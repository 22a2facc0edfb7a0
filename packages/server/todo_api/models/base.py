"""Shared columns: UUID primary key and timezone-aware timestamps."""

from datetime import datetime, timezone
from typing import Any
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _timestamp(**column_kwargs) -> Any:
    return Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=sa.DateTime(timezone=True),
        sa_column_kwargs={"server_default": sa.func.now(), **column_kwargs},
    )


class TimestampMixin(SQLModel):
    created_at: datetime = _timestamp()
    updated_at: datetime = _timestamp(onupdate=utcnow)


class UUIDMixin(SQLModel):
    # Primary keys are indexed by the database already.
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, nullable=False)
