"""Organization store. Slugs are lowercased on the way in."""

from __future__ import annotations

import uuid
from typing import Iterable, Optional, Protocol

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import select

from todo_api.models.base import utcnow
from todo_api.models.organization import Organization
from todo_api.stores.common import DuplicateKeyError, ascii_lower, session_factory


class OrganizationStore(Protocol):
    async def save(self, name: str, slug: str) -> Organization: ...

    async def find_by_id(self, organization_id: uuid.UUID) -> Optional[Organization]: ...

    async def find_by_slug(self, slug: str) -> Optional[Organization]: ...

    async def find_by_ids(self, organization_ids: Iterable[uuid.UUID]) -> list[Organization]: ...

    async def update(self, organization_id: uuid.UUID, *, name: str) -> Optional[Organization]: ...

    async def delete(self, organization_id: uuid.UUID) -> bool: ...


class SqlOrganizationStore:
    def __init__(self, engine: AsyncEngine):
        self._sessions = session_factory(engine)

    async def save(self, name: str, slug: str) -> Organization:
        org = Organization(name=name, slug=ascii_lower(slug))
        async with self._sessions() as session:
            session.add(org)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise DuplicateKeyError(str(exc.orig)) from exc
        return org

    async def find_by_id(self, organization_id: uuid.UUID) -> Optional[Organization]:
        async with self._sessions() as session:
            return await session.get(Organization, organization_id)

    async def find_by_slug(self, slug: str) -> Optional[Organization]:
        async with self._sessions() as session:
            result = await session.execute(
                select(Organization).where(Organization.slug == ascii_lower(slug))
            )
            return result.scalar_one_or_none()

    async def find_by_ids(self, organization_ids: Iterable[uuid.UUID]) -> list[Organization]:
        ids = list(organization_ids)
        if not ids:
            return []
        async with self._sessions() as session:
            result = await session.execute(
                select(Organization).where(Organization.id.in_(ids)).order_by(Organization.name)
            )
            return list(result.scalars().all())

    async def update(self, organization_id: uuid.UUID, *, name: str) -> Optional[Organization]:
        async with self._sessions() as session:
            org = await session.get(Organization, organization_id)
            if org is None:
                return None
            org.name = name
            org.updated_at = utcnow()
            session.add(org)
            await session.commit()
            return org

    async def delete(self, organization_id: uuid.UUID) -> bool:
        async with self._sessions() as session:
            org = await session.get(Organization, organization_id)
            if org is None:
                return False
            await session.delete(org)
            await session.commit()
            return True


class InMemoryOrganizationStore:
    def __init__(self) -> None:
        self._orgs: dict[uuid.UUID, Organization] = {}

    @staticmethod
    def _copy(org: Organization) -> Organization:
        return Organization.model_validate(org.model_dump())

    async def save(self, name: str, slug: str) -> Organization:
        slug = ascii_lower(slug)
        if any(o.slug == slug for o in self._orgs.values()):
            raise DuplicateKeyError(f"organization slug {slug!r} already exists")
        org = Organization(name=name, slug=slug)
        self._orgs[org.id] = org
        return self._copy(org)

    async def find_by_id(self, organization_id: uuid.UUID) -> Optional[Organization]:
        org = self._orgs.get(organization_id)
        return self._copy(org) if org else None

    async def find_by_slug(self, slug: str) -> Optional[Organization]:
        slug = ascii_lower(slug)
        org = next((o for o in self._orgs.values() if o.slug == slug), None)
        return self._copy(org) if org else None

    async def find_by_ids(self, organization_ids: Iterable[uuid.UUID]) -> list[Organization]:
        found = [self._orgs[i] for i in organization_ids if i in self._orgs]
        return [self._copy(o) for o in sorted(found, key=lambda o: o.name)]

    async def update(self, organization_id: uuid.UUID, *, name: str) -> Optional[Organization]:
        org = self._orgs.get(organization_id)
        if org is None:
            return None
        org.name = name
        org.updated_at = utcnow()
        return self._copy(org)

    async def delete(self, organization_id: uuid.UUID) -> bool:
        return self._orgs.pop(organization_id, None) is not None
