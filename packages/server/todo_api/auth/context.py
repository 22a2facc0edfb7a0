"""Request-scoped authorization context, passed explicitly between guards."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from typing import Optional

from todo_api.models.membership import Membership
from todo_api.models.user import User
from todo_api_shared.schemas.common import Permission


@dataclass(frozen=True)
class OrgContext:
    organization_id: uuid.UUID
    membership: Membership
    permissions: tuple[Permission, ...]


@dataclass(frozen=True)
class AuthContext:
    """The authenticated user, the raw token and, on org-scoped routes, the membership."""

    user: User
    token: str
    org: Optional[OrgContext] = None

    @property
    def user_id(self) -> uuid.UUID:
        return self.user.id

    def with_org(self, org: OrgContext) -> "AuthContext":
        return replace(self, org=org)

    def can(self, permission: Permission | str) -> bool:
        if self.org is None:
            return False
        return permission in self.org.permissions
