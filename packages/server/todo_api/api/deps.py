"""
FastAPI dependencies binding the authorization chain to routes.

    get_auth_context          bearer token -> user
    get_org_context           + membership and permissions for {orgId}
    permission_required(...)  + every listed permission
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import APIKeyHeader

from todo_api.auth.context import AuthContext
from todo_api.auth.middleware import require_permissions
from todo_api.core.container import Services
from todo_api_shared.schemas.common import Permission

# auto_error=False so a missing header reaches our own MISSING_TOKEN handling.
bearer_header = APIKeyHeader(name="Authorization", auto_error=False)


def get_services(request: Request) -> Services:
    return request.app.state.services


async def get_auth_context(
    authorization: Optional[str] = Depends(bearer_header),
    services: Services = Depends(get_services),
) -> AuthContext:
    return await services.authenticate(authorization)


async def get_org_context(
    orgId: str,
    auth: AuthContext = Depends(get_auth_context),
    services: Services = Depends(get_services),
) -> AuthContext:
    return await services.resolve_org_membership(auth, orgId)


def permission_required(*permissions: Permission):
    """Dependency factory: org context plus every listed permission."""
    guard = require_permissions(*permissions)

    async def dependency(auth: AuthContext = Depends(get_org_context)) -> AuthContext:
        return guard(auth)

    return dependency
