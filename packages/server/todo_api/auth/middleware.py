"""
The authorization chain.

    Authorization header -> token -> verified subject -> user
        -> organization membership -> permissions -> decision

Each stage is a plain callable that takes the previous stage's
``AuthContext`` and returns a new one, raising a tagged error to
short-circuit. ``todo_api.api.deps`` binds them to FastAPI dependencies.
"""

from __future__ import annotations

import uuid
from typing import Any, Awaitable, Callable, Optional

import structlog

from todo_api.auth import policies
from todo_api.auth.context import AuthContext, OrgContext
from todo_api.auth.permissions import resolve_permissions
from todo_api.auth.service import AuthService
from todo_api.core.errors import AuthorizationError, ErrorCode, UserError
from todo_api.core.security import extract_bearer_token
from todo_api.services.users import UserService
from todo_api.stores.memberships import MembershipStore
from todo_api_shared.schemas.common import Permission

log = structlog.get_logger()

Authenticate = Callable[[Optional[str]], Awaitable[AuthContext]]
ResolveOrgMembership = Callable[[Optional[AuthContext], Any], Awaitable[AuthContext]]

_UNRESOLVABLE_USER = {ErrorCode.USER_NOT_FOUND, ErrorCode.INVALID_USER_ID}


def create_auth_middleware(auth_service: AuthService, user_service: UserService) -> Authenticate:
    """Build the authentication stage: header to ``AuthContext``."""

    async def authenticate(authorization: Optional[str]) -> AuthContext:
        token = extract_bearer_token(authorization)
        if token is None:
            raise AuthorizationError(ErrorCode.MISSING_TOKEN, "Missing authorization token")

        verified = await auth_service.verify_token(token)

        try:
            user = await user_service.get_by_id(verified.subject_id)
        except UserError as exc:
            if exc.code not in _UNRESOLVABLE_USER:
                raise
            log.info("auth.token_rejected", reason=exc.code.value, user_id=verified.subject_id)
            raise AuthorizationError(ErrorCode.INVALID_TOKEN, "Unauthorized") from None

        structlog.contextvars.bind_contextvars(user_id=str(user.id))
        return AuthContext(user=user, token=token)

    return authenticate


def require_org_membership(membership_store: MembershipStore) -> ResolveOrgMembership:
    """Build the organization stage: attach membership and permissions."""

    async def resolve(auth: Optional[AuthContext], organization_id: Any) -> AuthContext:
        if auth is None:
            raise AuthorizationError(ErrorCode.MISSING_AUTH, "Authentication required")
        if organization_id is None or organization_id == "":
            raise AuthorizationError(ErrorCode.INVALID_REQUEST, "Organization ID is required")
        try:
            org_id = (
                organization_id
                if isinstance(organization_id, uuid.UUID)
                else uuid.UUID(str(organization_id))
            )
        except ValueError:
            raise AuthorizationError(ErrorCode.INVALID_REQUEST, "Invalid organization ID") from None

        try:
            membership = await membership_store.find_by_user_and_org(auth.user.id, org_id)
            permissions = resolve_permissions(membership.role) if membership else ()
        except Exception as exc:
            log.exception("authz.membership_lookup_failed", org_id=str(org_id))
            raise AuthorizationError(
                ErrorCode.INTERNAL_ERROR, "Failed to verify organization membership"
            ) from exc

        if membership is None:
            log.info("authz.not_member", user_id=str(auth.user.id), org_id=str(org_id))
            raise AuthorizationError(
                ErrorCode.NOT_MEMBER, "You are not a member of this organization"
            )

        return auth.with_org(
            OrgContext(organization_id=org_id, membership=membership, permissions=permissions)
        )

    return resolve


def _org_context(auth: Optional[AuthContext]) -> OrgContext:
    if auth is None:
        raise AuthorizationError(ErrorCode.MISSING_AUTH, "Authentication required")
    if auth.org is None:
        raise AuthorizationError(ErrorCode.MISSING_ORG_CONTEXT, "Organization context required")
    return auth.org


def require_permissions(*permissions: Permission | str) -> Callable[[Optional[AuthContext]], AuthContext]:
    """Route-level guard: every listed permission must be held."""
    policy = policies.require_all_permissions(*permissions)

    def guard(auth: Optional[AuthContext]) -> AuthContext:
        org = _org_context(auth)
        try:
            policy(org, None)
        except AuthorizationError as exc:
            log.info(
                "authz.permission_denied",
                user_id=str(auth.user.id),
                org_id=str(org.organization_id),
                role=org.membership.role,
                required=exc.context.get("required"),
            )
            raise
        return auth

    return guard


def require_creator_or_permission(
    permission: Permission | str,
) -> Callable[[Optional[AuthContext], Any], AuthContext]:
    """Resource-level guard: the resource's creator, or a holder of ``permission``."""
    policy = policies.require_creator_or_permission(permission)

    def guard(auth: Optional[AuthContext], resource: Any) -> AuthContext:
        org = _org_context(auth)
        try:
            policy(org, resource)
        except AuthorizationError:
            log.info(
                "authz.permission_denied",
                user_id=str(auth.user.id),
                org_id=str(org.organization_id),
                role=org.membership.role,
                required=Permission(permission).value,
                creator_fallback=True,
            )
            raise AuthorizationError(ErrorCode.FORBIDDEN, "Forbidden") from None
        return auth

    return guard
