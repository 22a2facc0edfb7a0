"""Organization model."""

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Organization(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "organizations"

    name: str = Field(nullable=False, max_length=100)
    # Stored lowercased; uniqueness is therefore case-insensitive.
    slug: str = Field(unique=True, nullable=False, index=True, max_length=50)
