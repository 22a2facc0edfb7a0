"""
Seed a local database with demo users and one organization.

Creates one user per role (owner, admin, member, viewer) and an
organization ``demo`` where each holds that role. Safe to re-run:
existing users and memberships are left untouched.

    todo-api-seed --password 'Secret123!'
"""

import argparse
import asyncio
import sys

import structlog

from todo_api.core.config import get_settings
from todo_api.core.container import build_sql_services
from todo_api.core.database import create_engine, init_db
from todo_api.core.errors import AppError, ErrorCode
from todo_api.core.logconfig import configure_logging
from todo_api.core.redis import close_redis
from todo_api_shared.schemas.common import Role

log = structlog.get_logger()

DEMO_ORG_SLUG = "demo"


async def seed(password: str, org_slug: str = DEMO_ORG_SLUG) -> None:
    settings = get_settings()
    engine = create_engine(settings.database_url)
    try:
        await init_db(engine)
        services = await build_sql_services(settings, engine)

        users = {}
        for role in Role:
            username = f"demo_{role.value}"
            try:
                user = await services.users.create_user(f"{username}@example.com", username, password)
                log.info("seed.user_created", username=username)
            except AppError as exc:
                if exc.code not in (ErrorCode.USERNAME_ALREADY_EXISTS, ErrorCode.EMAIL_ALREADY_EXISTS):
                    raise
                user = await services.users.get_by_username(username)
                log.info("seed.user_exists", username=username)
            users[role] = user

        try:
            org = await services.organizations.create_organization(
                "Demo Organization", org_slug, users[Role.OWNER].id
            )
            log.info("seed.org_created", slug=org_slug)
        except AppError as exc:
            if exc.code is not ErrorCode.SLUG_ALREADY_EXISTS:
                raise
            org = await services.organizations.get_organization_by_slug(org_slug)
            log.info("seed.org_exists", slug=org_slug)

        for role, user in users.items():
            if role is Role.OWNER:
                continue
            try:
                await services.organizations.add_member(org.id, user.id, role)
            except AppError as exc:
                if exc.code is not ErrorCode.USER_ALREADY_MEMBER:
                    raise
    finally:
        await close_redis()
        await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed demo users and an organization")
    parser.add_argument("--password", required=True, help="Password for every demo user")
    parser.add_argument("--org-slug", default=DEMO_ORG_SLUG, help="Slug of the demo organization")
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings.log_level, "text")
    try:
        asyncio.run(seed(args.password, args.org_slug))
    except AppError as exc:
        print(f"Error: {exc.message} ({exc.code.value})", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
