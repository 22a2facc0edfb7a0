"""
Service wiring. One ``Services`` instance per application, stored on
``app.state.services`` and shared by every request.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from todo_api.auth.middleware import (
    Authenticate,
    ResolveOrgMembership,
    create_auth_middleware,
    require_org_membership,
)
from todo_api.auth.revocation import (
    InMemoryRevocationRegistry,
    RedisRevocationRegistry,
    RevocationRegistry,
)
from todo_api.auth.service import AuthService
from todo_api.auth.tokens import TokenIssuer
from todo_api.core.config import Settings
from todo_api.core.redis import get_redis
from todo_api.services.organizations import OrganizationService
from todo_api.services.todos import TodoService
from todo_api.services.users import UserService
from todo_api.stores.memberships import (
    InMemoryMembershipStore,
    MembershipStore,
    SqlMembershipStore,
)
from todo_api.stores.organizations import (
    InMemoryOrganizationStore,
    OrganizationStore,
    SqlOrganizationStore,
)
from todo_api.stores.todos import InMemoryTodoStore, SqlTodoStore, TodoStore
from todo_api.stores.users import InMemoryUserStore, SqlUserStore, UserStore


@dataclass
class Services:
    users: UserService
    auth: AuthService
    organizations: OrganizationService
    todos: TodoService
    memberships: MembershipStore
    revocation: RevocationRegistry
    authenticate: Authenticate
    resolve_org_membership: ResolveOrgMembership
    engine: Optional[AsyncEngine] = None


def build_services(
    settings: Settings,
    *,
    user_store: UserStore,
    organization_store: OrganizationStore,
    membership_store: MembershipStore,
    todo_store: TodoStore,
    revocation: RevocationRegistry,
    engine: Optional[AsyncEngine] = None,
) -> Services:
    users = UserService(user_store, bcrypt_rounds=settings.bcrypt_rounds)
    auth = AuthService(
        users,
        TokenIssuer(settings.secret_key, settings.jwt_algorithm),
        revocation,
        token_ttl=timedelta(minutes=settings.jwt_expire_minutes),
    )
    return Services(
        users=users,
        auth=auth,
        organizations=OrganizationService(organization_store, membership_store, user_store),
        todos=TodoService(todo_store),
        memberships=membership_store,
        revocation=revocation,
        authenticate=create_auth_middleware(auth, users),
        resolve_org_membership=require_org_membership(membership_store),
        engine=engine,
    )


def build_in_memory_services(settings: Settings) -> Services:
    """Process-local stores. Used by tests and the seed script's dry run."""
    return build_services(
        settings,
        user_store=InMemoryUserStore(),
        organization_store=InMemoryOrganizationStore(),
        membership_store=InMemoryMembershipStore(),
        todo_store=InMemoryTodoStore(),
        revocation=InMemoryRevocationRegistry(),
    )


async def build_revocation_registry(settings: Settings) -> RevocationRegistry:
    if settings.revocation_backend == "redis":
        client = await get_redis(settings.redis_url)
        return RedisRevocationRegistry(
            client, default_ttl_seconds=settings.jwt_expire_minutes * 60
        )
    return InMemoryRevocationRegistry()


async def build_sql_services(settings: Settings, engine: AsyncEngine) -> Services:
    return build_services(
        settings,
        user_store=SqlUserStore(engine),
        organization_store=SqlOrganizationStore(engine),
        membership_store=SqlMembershipStore(engine),
        todo_store=SqlTodoStore(engine),
        revocation=await build_revocation_registry(settings),
        engine=engine,
    )
