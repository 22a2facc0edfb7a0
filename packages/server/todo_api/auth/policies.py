"""
Composable authorization policies.

A policy is called with the caller's ``OrgContext`` and, for resource-level
checks, the loaded resource. It returns None when access is allowed and
raises ``AuthorizationError`` otherwise.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable, Optional

from todo_api.auth.context import OrgContext
from todo_api.core.errors import AuthorizationError, ErrorCode
from todo_api_shared.schemas.common import Permission

Policy = Callable[[OrgContext, Optional[Any]], None]


def _missing(permission: Permission) -> AuthorizationError:
    return AuthorizationError(
        ErrorCode.MISSING_PERMISSION,
        f"Missing required permission: {permission.value}",
        required=permission.value,
    )


def resource_creator(resource: Any) -> Optional[str]:
    """The creator id of a model instance or a mapping, as a string."""
    if resource is None:
        return None
    if isinstance(resource, Mapping):
        created_by = resource.get("created_by")
    else:
        created_by = getattr(resource, "created_by", None)
    return str(created_by) if created_by is not None else None


def require_permission(permission: Permission | str) -> Policy:
    permission = Permission(permission)

    def policy(org: OrgContext, resource: Optional[Any] = None) -> None:
        if permission not in org.permissions:
            raise _missing(permission)

    return policy


def require_any_permission(*permissions: Permission | str) -> Policy:
    if not permissions:
        raise ValueError("require_any_permission needs at least one permission")
    wanted = tuple(Permission(p) for p in permissions)

    def policy(org: OrgContext, resource: Optional[Any] = None) -> None:
        if not any(p in org.permissions for p in wanted):
            raise _missing(wanted[0])

    return policy


def require_all_permissions(*permissions: Permission | str) -> Policy:
    if not permissions:
        raise ValueError("require_all_permissions needs at least one permission")
    wanted = tuple(Permission(p) for p in permissions)

    def policy(org: OrgContext, resource: Optional[Any] = None) -> None:
        for p in wanted:
            if p not in org.permissions:
                raise _missing(p)

    return policy


def require_creator_or_permission(permission: Permission | str) -> Policy:
    """Allow the resource's creator, otherwise fall back to ``permission``."""
    fallback = require_permission(permission)

    def policy(org: OrgContext, resource: Optional[Any] = None) -> None:
        creator = resource_creator(resource)
        if creator is not None and creator == str(org.membership.user_id):
            return
        fallback(org, resource)

    return policy


def custom(evaluator: Callable[[OrgContext, Optional[Any]], bool], message: str) -> Policy:
    def policy(org: OrgContext, resource: Optional[Any] = None) -> None:
        if not evaluator(org, resource):
            raise AuthorizationError(ErrorCode.FORBIDDEN, message)

    return policy
