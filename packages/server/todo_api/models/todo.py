"""Todo model."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Todo(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "todos"

    organization_id: uuid.UUID = Field(foreign_key="organizations.id", nullable=False, index=True)
    created_by: uuid.UUID = Field(foreign_key="users.id", nullable=False)
    title: str = Field(nullable=False, max_length=500)
    description: Optional[str] = None
    completed: bool = Field(default=False, nullable=False)
    completed_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
