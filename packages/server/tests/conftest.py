"""
Shared fixtures: in-memory services, an app wired to them, an httpx client,
and a throwaway SQLite database for the SQL stores.
"""

from __future__ import annotations

import os

os.environ.setdefault("TODO_ENVIRONMENT", "test")
os.environ.setdefault("TODO_LOG_FORMAT", "text")

import pytest
from httpx import ASGITransport, AsyncClient

from todo_api.core.config import Settings
from todo_api.core.container import Services, build_in_memory_services
from todo_api.core.database import create_engine, init_db
from todo_api.main import create_app

from helpers import TEST_SECRET


@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment="test",
        secret_key=TEST_SECRET,
        bcrypt_rounds=4,
        log_level="warning",
        log_format="text",
        revocation_backend="memory",
    )


@pytest.fixture
def services(settings) -> Services:
    return build_in_memory_services(settings)


@pytest.fixture
def app(settings, services):
    return create_app(settings, services)


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def sqlite_engine(tmp_path):
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


