"""
Membership store: the (user, organization, role) relation.

The store enforces one membership per (user, organization). The "at least
one owner" rule needs the whole membership set of an organization, so it is
enforced by ``OrganizationService`` inside ``lock_organization``.
"""

from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncIterator, Optional, Protocol

import structlog
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import select

from todo_api.models.base import utcnow
from todo_api.models.membership import Membership
from todo_api.stores.common import DuplicateKeyError, KeyedLocks, session_factory

log = structlog.get_logger()


class MembershipStore(Protocol):
    async def save(self, user_id: uuid.UUID, organization_id: uuid.UUID, role: str) -> Membership: ...

    async def find_by_id(self, membership_id: uuid.UUID) -> Optional[Membership]: ...

    async def find_by_user_and_org(
        self, user_id: uuid.UUID, organization_id: uuid.UUID
    ) -> Optional[Membership]: ...

    async def find_by_organization_id(self, organization_id: uuid.UUID) -> list[Membership]: ...

    async def find_by_user_id(self, user_id: uuid.UUID) -> list[Membership]: ...

    async def update_role(self, membership_id: uuid.UUID, role: str) -> Optional[Membership]: ...

    async def delete(self, membership_id: uuid.UUID) -> bool: ...

    def lock_organization(self, organization_id: uuid.UUID) -> AsyncContextManager[None]: ...


def advisory_lock_key(organization_id: uuid.UUID) -> int:
    """Map an organization id onto PostgreSQL's signed 64-bit advisory lock space."""
    return organization_id.int & 0x7FFFFFFFFFFFFFFF


class SqlMembershipStore:
    def __init__(self, engine: AsyncEngine):
        self._engine = engine
        self._sessions = session_factory(engine)
        self._locks = KeyedLocks()

    async def save(self, user_id: uuid.UUID, organization_id: uuid.UUID, role: str) -> Membership:
        membership = Membership(user_id=user_id, organization_id=organization_id, role=role)
        async with self._sessions() as session:
            session.add(membership)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise DuplicateKeyError(str(exc.orig)) from exc
        return membership

    async def find_by_id(self, membership_id: uuid.UUID) -> Optional[Membership]:
        async with self._sessions() as session:
            return await session.get(Membership, membership_id)

    async def find_by_user_and_org(
        self, user_id: uuid.UUID, organization_id: uuid.UUID
    ) -> Optional[Membership]:
        async with self._sessions() as session:
            result = await session.execute(
                select(Membership).where(
                    Membership.user_id == user_id,
                    Membership.organization_id == organization_id,
                )
            )
            return result.scalar_one_or_none()

    async def find_by_organization_id(self, organization_id: uuid.UUID) -> list[Membership]:
        async with self._sessions() as session:
            result = await session.execute(
                select(Membership)
                .where(Membership.organization_id == organization_id)
                .order_by(Membership.created_at)
            )
            return list(result.scalars().all())

    async def find_by_user_id(self, user_id: uuid.UUID) -> list[Membership]:
        async with self._sessions() as session:
            result = await session.execute(
                select(Membership).where(Membership.user_id == user_id).order_by(Membership.created_at)
            )
            return list(result.scalars().all())

    async def update_role(self, membership_id: uuid.UUID, role: str) -> Optional[Membership]:
        async with self._sessions() as session:
            membership = await session.get(Membership, membership_id)
            if membership is None:
                return None
            membership.role = role
            membership.updated_at = utcnow()
            session.add(membership)
            await session.commit()
            return membership

    async def delete(self, membership_id: uuid.UUID) -> bool:
        async with self._sessions() as session:
            membership = await session.get(Membership, membership_id)
            if membership is None:
                return False
            await session.delete(membership)
            await session.commit()
            return True

    @asynccontextmanager
    async def lock_organization(self, organization_id: uuid.UUID) -> AsyncIterator[None]:
        """Serialize membership mutations for one organization.

        The asyncio lock covers this process; on PostgreSQL a session advisory
        lock also covers other workers sharing the database.
        """
        async with self._locks.hold(organization_id):
            if self._engine.dialect.name != "postgresql":
                yield
                return
            key = advisory_lock_key(organization_id)
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT pg_advisory_lock(:key)"), {"key": key})
                try:
                    yield
                finally:
                    await conn.execute(text("SELECT pg_advisory_unlock(:key)"), {"key": key})
                    await conn.commit()


class InMemoryMembershipStore:
    def __init__(self) -> None:
        self._memberships: dict[uuid.UUID, Membership] = {}
        self._locks = KeyedLocks()

    @staticmethod
    def _copy(membership: Membership) -> Membership:
        return Membership.model_validate(membership.model_dump())

    async def save(self, user_id: uuid.UUID, organization_id: uuid.UUID, role: str) -> Membership:
        if any(
            m.user_id == user_id and m.organization_id == organization_id
            for m in self._memberships.values()
        ):
            raise DuplicateKeyError(f"user {user_id} is already a member of {organization_id}")
        membership = Membership(user_id=user_id, organization_id=organization_id, role=role)
        self._memberships[membership.id] = membership
        return self._copy(membership)

    async def find_by_id(self, membership_id: uuid.UUID) -> Optional[Membership]:
        membership = self._memberships.get(membership_id)
        return self._copy(membership) if membership else None

    async def find_by_user_and_org(
        self, user_id: uuid.UUID, organization_id: uuid.UUID
    ) -> Optional[Membership]:
        for m in self._memberships.values():
            if m.user_id == user_id and m.organization_id == organization_id:
                return self._copy(m)
        return None

    async def find_by_organization_id(self, organization_id: uuid.UUID) -> list[Membership]:
        return [self._copy(m) for m in self._memberships.values() if m.organization_id == organization_id]

    async def find_by_user_id(self, user_id: uuid.UUID) -> list[Membership]:
        return [self._copy(m) for m in self._memberships.values() if m.user_id == user_id]

    async def update_role(self, membership_id: uuid.UUID, role: str) -> Optional[Membership]:
        membership = self._memberships.get(membership_id)
        if membership is None:
            return None
        membership.role = role
        membership.updated_at = utcnow()
        return self._copy(membership)

    async def delete(self, membership_id: uuid.UUID) -> bool:
        return self._memberships.pop(membership_id, None) is not None

    @asynccontextmanager
    async def lock_organization(self, organization_id: uuid.UUID) -> AsyncIterator[None]:
        async with self._locks.hold(organization_id):
            yield
