"""
Organization service: org lifecycle and membership mutations.

Owns the rule that an organization always keeps at least one owner.
Removals and role changes re-read the membership set inside
``MembershipStore.lock_organization`` so two concurrent requests cannot both
drop the last owner.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog

from todo_api.core.errors import (
    ErrorCode,
    MembershipError,
    OrganizationError,
    unexpected_errors,
)
from todo_api.models.membership import Membership
from todo_api.models.organization import Organization
from todo_api.stores.common import DuplicateKeyError
from todo_api.stores.memberships import MembershipStore
from todo_api.stores.organizations import OrganizationStore
from todo_api.stores.users import UserStore
from todo_api_shared.schemas.common import Role

log = structlog.get_logger()


def _owner_count(memberships: list[Membership]) -> int:
    return sum(1 for m in memberships if m.role == Role.OWNER.value)


class OrganizationService:
    def __init__(
        self,
        organizations: OrganizationStore,
        memberships: MembershipStore,
        users: Optional[UserStore] = None,
    ):
        self.organizations = organizations
        self.memberships = memberships
        self.users = users

    # -- Organizations -----------------------------------------------------

    async def create_organization(
        self, name: str, slug: str, created_by_user_id: uuid.UUID
    ) -> Organization:
        """Create an org and make the creator its first owner."""
        with unexpected_errors(OrganizationError, "Failed to create organization"):
            if await self.organizations.find_by_slug(slug) is not None:
                raise OrganizationError(
                    ErrorCode.SLUG_ALREADY_EXISTS, "Organization slug already taken", slug=slug
                )
            try:
                org = await self.organizations.save(name, slug)
            except DuplicateKeyError:
                raise OrganizationError(
                    ErrorCode.SLUG_ALREADY_EXISTS, "Organization slug already taken", slug=slug
                ) from None
            try:
                await self.memberships.save(created_by_user_id, org.id, Role.OWNER.value)
            except Exception:
                # An organization without its owner could never be managed.
                await self.organizations.delete(org.id)
                log.warning("org.create_rolled_back", org_id=str(org.id), slug=org.slug)
                raise

        log.info("org.created", org_id=str(org.id), slug=org.slug, creator=str(created_by_user_id))
        return org

    async def get_organization_by_id(self, organization_id: uuid.UUID) -> Organization:
        with unexpected_errors(OrganizationError, "Failed to load organization"):
            org = await self.organizations.find_by_id(organization_id)
        if org is None:
            raise OrganizationError(ErrorCode.ORGANIZATION_NOT_FOUND, "Organization not found")
        return org

    async def get_organization_by_slug(self, slug: str) -> Organization:
        with unexpected_errors(OrganizationError, "Failed to load organization"):
            org = await self.organizations.find_by_slug(slug)
        if org is None:
            raise OrganizationError(ErrorCode.ORGANIZATION_NOT_FOUND, "Organization not found")
        return org

    async def list_user_organizations(self, user_id: uuid.UUID) -> list[Organization]:
        with unexpected_errors(OrganizationError, "Failed to list organizations"):
            memberships = await self.memberships.find_by_user_id(user_id)
            return await self.organizations.find_by_ids(m.organization_id for m in memberships)

    # -- Memberships -------------------------------------------------------

    async def add_member(
        self, organization_id: uuid.UUID, user_id: uuid.UUID, role: Role = Role.MEMBER
    ) -> Membership:
        with unexpected_errors(MembershipError, "Failed to add member"):
            if await self.organizations.find_by_id(organization_id) is None:
                raise MembershipError(ErrorCode.ORGANIZATION_NOT_FOUND, "Organization not found")
            if self.users is not None and await self.users.find_by_id(user_id) is None:
                raise MembershipError(ErrorCode.USER_NOT_FOUND, "User not found")
            if await self.memberships.find_by_user_and_org(user_id, organization_id) is not None:
                raise MembershipError(
                    ErrorCode.USER_ALREADY_MEMBER, "User is already a member of this organization"
                )
            try:
                membership = await self.memberships.save(user_id, organization_id, Role(role).value)
            except DuplicateKeyError:
                raise MembershipError(
                    ErrorCode.USER_ALREADY_MEMBER, "User is already a member of this organization"
                ) from None

        log.info(
            "membership.added",
            org_id=str(organization_id),
            user_id=str(user_id),
            role=membership.role,
        )
        return membership

    async def get_membership(
        self, membership_id: uuid.UUID, organization_id: Optional[uuid.UUID] = None
    ) -> Membership:
        """Load a membership, optionally requiring that it belongs to ``organization_id``."""
        with unexpected_errors(MembershipError, "Failed to load membership"):
            membership = await self.memberships.find_by_id(membership_id)
        if membership is None or (
            organization_id is not None and membership.organization_id != organization_id
        ):
            raise MembershipError(ErrorCode.MEMBERSHIP_NOT_FOUND, "Membership not found")
        return membership

    async def remove_member(
        self, membership_id: uuid.UUID, organization_id: Optional[uuid.UUID] = None
    ) -> None:
        target = await self.get_membership(membership_id, organization_id)

        with unexpected_errors(MembershipError, "Failed to remove member"):
            async with self.memberships.lock_organization(target.organization_id):
                # Re-read under the lock; the row may have changed since.
                current = await self.get_membership(membership_id, organization_id)
                if current.role == Role.OWNER.value:
                    members = await self.memberships.find_by_organization_id(current.organization_id)
                    if _owner_count(members) <= 1:
                        raise MembershipError(
                            ErrorCode.CANNOT_REMOVE_LAST_OWNER,
                            "Cannot remove the last owner of an organization",
                        )
                if not await self.memberships.delete(membership_id):
                    raise MembershipError(ErrorCode.MEMBERSHIP_NOT_FOUND, "Membership not found")

        log.info(
            "membership.removed",
            org_id=str(target.organization_id),
            user_id=str(target.user_id),
            membership_id=str(membership_id),
        )

    async def update_member_role(
        self,
        membership_id: uuid.UUID,
        new_role: Role,
        organization_id: Optional[uuid.UUID] = None,
    ) -> Membership:
        new_role = Role(new_role)
        target = await self.get_membership(membership_id, organization_id)

        with unexpected_errors(MembershipError, "Failed to update member role"):
            async with self.memberships.lock_organization(target.organization_id):
                current = await self.get_membership(membership_id, organization_id)
                if current.role == Role.OWNER.value and new_role is not Role.OWNER:
                    members = await self.memberships.find_by_organization_id(current.organization_id)
                    if _owner_count(members) <= 1:
                        raise MembershipError(
                            ErrorCode.CANNOT_CHANGE_LAST_OWNER,
                            "Cannot change the role of the last owner of an organization",
                        )
                updated = await self.memberships.update_role(membership_id, new_role.value)
                if updated is None:
                    raise MembershipError(ErrorCode.MEMBERSHIP_NOT_FOUND, "Membership not found")

        log.info(
            "membership.role_changed",
            org_id=str(updated.organization_id),
            user_id=str(updated.user_id),
            old_role=current.role,
            new_role=updated.role,
        )
        return updated

    async def list_members(self, organization_id: uuid.UUID) -> list[Membership]:
        with unexpected_errors(MembershipError, "Failed to list members"):
            return await self.memberships.find_by_organization_id(organization_id)
