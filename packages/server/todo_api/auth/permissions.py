"""
Role to permission resolution.

Each role's permissions are listed explicitly. Roles do not inherit from one
another, so granting something to ``owner`` never reaches ``admin``.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from todo_api_shared.schemas.common import Permission, Role

P = Permission

ROLE_PERMISSIONS: Mapping[Role, tuple[Permission, ...]] = MappingProxyType({
    Role.OWNER: (
        P.TODOS_CREATE,
        P.TODOS_READ,
        P.TODOS_UPDATE,
        P.TODOS_DELETE,
        P.TODOS_COMPLETE,
        P.ORG_MEMBERS_READ,
        P.ORG_MEMBERS_INVITE,
        P.ORG_MEMBERS_REMOVE,
        P.ORG_MEMBERS_UPDATE_ROLE,
        P.ORG_SETTINGS_READ,
        P.ORG_SETTINGS_UPDATE,
        P.ORG_DELETE,
    ),
    Role.ADMIN: (
        P.TODOS_CREATE,
        P.TODOS_READ,
        P.TODOS_UPDATE,
        P.TODOS_DELETE,
        P.TODOS_COMPLETE,
        P.ORG_MEMBERS_READ,
        P.ORG_MEMBERS_INVITE,
        P.ORG_MEMBERS_REMOVE,
        P.ORG_SETTINGS_READ,
    ),
    Role.MEMBER: (
        P.TODOS_CREATE,
        P.TODOS_READ,
        P.TODOS_UPDATE,
        P.TODOS_COMPLETE,
        P.ORG_MEMBERS_READ,
    ),
    Role.VIEWER: (
        P.TODOS_READ,
        P.ORG_MEMBERS_READ,
        P.ORG_SETTINGS_READ,
    ),
})


def resolve_permissions(role: Role | str) -> tuple[Permission, ...]:
    """Return the ordered permissions granted to ``role``.

    Raises ``ValueError`` for a role outside the closed set.
    """
    return ROLE_PERMISSIONS[Role(role)]
