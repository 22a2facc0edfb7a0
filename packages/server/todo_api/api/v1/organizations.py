"""
Organization API endpoints.

GET    /api/v1/orgs                                 List orgs for authenticated user
POST   /api/v1/orgs                                 Create a new org (creator becomes owner)
GET    /api/v1/orgs/{orgId}                         Get org details
GET    /api/v1/orgs/{orgId}/members                 List memberships
POST   /api/v1/orgs/{orgId}/members                 Add a member
PATCH  /api/v1/orgs/{orgId}/members/{membershipId}  Change a member's role
DELETE /api/v1/orgs/{orgId}/members/{membershipId}  Remove a member
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Response

from todo_api.api.deps import get_auth_context, get_services, permission_required
from todo_api.auth.context import AuthContext
from todo_api.auth.middleware import require_permissions
from todo_api.core.container import Services
from todo_api.core.errors import ErrorCode, MembershipError
from todo_api_shared.schemas.common import Permission, Role
from todo_api_shared.schemas.organizations import (
    MemberAddRequest,
    MemberRoleUpdateRequest,
    MembershipListResponse,
    MembershipResponse,
    OrgCreateRequest,
    OrgListResponse,
    OrgResponse,
)

# ---------------------------------------------------------------------------
# Non-org-scoped routes (no orgId in path)
# ---------------------------------------------------------------------------
router_global = APIRouter()


@router_global.get("/orgs", response_model=OrgListResponse, tags=["Organizations"])
async def list_orgs(
    auth: AuthContext = Depends(get_auth_context),
    services: Services = Depends(get_services),
):
    """List orgs the authenticated user belongs to."""
    orgs = await services.organizations.list_user_organizations(auth.user.id)
    return OrgListResponse(data=[OrgResponse.model_validate(o) for o in orgs])


@router_global.post("/orgs", response_model=OrgResponse, status_code=201, tags=["Organizations"])
async def create_org(
    body: OrgCreateRequest,
    auth: AuthContext = Depends(get_auth_context),
    services: Services = Depends(get_services),
):
    """Create a new organization. The creator becomes its owner."""
    org = await services.organizations.create_organization(body.name, body.slug, auth.user.id)
    return OrgResponse.model_validate(org)


# ---------------------------------------------------------------------------
# Org-scoped routes (mounted under /orgs/{orgId})
# ---------------------------------------------------------------------------
router_scoped = APIRouter()

# Adding a member directly as owner also needs the role-change permission.
owner_grant_required = require_permissions(Permission.ORG_MEMBERS_UPDATE_ROLE)


def _parse_membership_id(membership_id: str) -> uuid.UUID:
    try:
        return uuid.UUID(membership_id)
    except ValueError:
        raise MembershipError(ErrorCode.MEMBERSHIP_NOT_FOUND, "Membership not found") from None


@router_scoped.get("", response_model=OrgResponse)
async def get_org(
    auth: AuthContext = Depends(permission_required(Permission.ORG_SETTINGS_READ)),
    services: Services = Depends(get_services),
):
    org = await services.organizations.get_organization_by_id(auth.org.organization_id)
    return OrgResponse.model_validate(org)


@router_scoped.get("/members", response_model=MembershipListResponse)
async def list_members(
    auth: AuthContext = Depends(permission_required(Permission.ORG_MEMBERS_READ)),
    services: Services = Depends(get_services),
):
    members = await services.organizations.list_members(auth.org.organization_id)
    return MembershipListResponse(data=[MembershipResponse.model_validate(m) for m in members])


@router_scoped.post("/members", response_model=MembershipResponse, status_code=201)
async def add_member(
    body: MemberAddRequest,
    auth: AuthContext = Depends(permission_required(Permission.ORG_MEMBERS_INVITE)),
    services: Services = Depends(get_services),
):
    if body.role is Role.OWNER:
        owner_grant_required(auth)
    membership = await services.organizations.add_member(
        auth.org.organization_id, body.user_id, body.role
    )
    return MembershipResponse.model_validate(membership)


@router_scoped.patch("/members/{membershipId}", response_model=MembershipResponse)
async def update_member_role(
    membershipId: str,
    body: MemberRoleUpdateRequest,
    auth: AuthContext = Depends(permission_required(Permission.ORG_MEMBERS_UPDATE_ROLE)),
    services: Services = Depends(get_services),
):
    membership = await services.organizations.update_member_role(
        _parse_membership_id(membershipId), body.role, organization_id=auth.org.organization_id
    )
    return MembershipResponse.model_validate(membership)


@router_scoped.delete("/members/{membershipId}", status_code=204, response_class=Response)
async def remove_member(
    membershipId: str,
    auth: AuthContext = Depends(permission_required(Permission.ORG_MEMBERS_REMOVE)),
    services: Services = Depends(get_services),
):
    await services.organizations.remove_member(
        _parse_membership_id(membershipId), organization_id=auth.org.organization_id
    )
    return Response(status_code=204)
