"""
Organization-related Pydantic schemas shared between server and clients.

Covers: org create request/response, membership requests/responses.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from .common import Role


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class OrgCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Organization display name")
    slug: str = Field(
        ...,
        min_length=2,
        max_length=50,
        pattern=r"^[a-z0-9][a-z0-9-]*[a-z0-9]$",
        description="URL-safe org identifier (case-insensitive)",
    )

    @field_validator("slug", mode="before")
    @classmethod
    def _lowercase_slug(cls, value):
        if isinstance(value, str):
            return value.lower()
        return value


class MemberAddRequest(BaseModel):
    user_id: uuid.UUID
    role: Role = Role.MEMBER


class MemberRoleUpdateRequest(BaseModel):
    role: Role


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class OrgResponse(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class OrgListResponse(BaseModel):
    data: list[OrgResponse]


class MembershipResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    organization_id: uuid.UUID
    role: Role
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class MembershipListResponse(BaseModel):
    data: list[MembershipResponse]
