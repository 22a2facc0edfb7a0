"""Small helpers shared by the test modules."""

from __future__ import annotations

from todo_api.core.container import Services
from todo_api.models.user import User

PASSWORD = "Secret123!"
TEST_SECRET = "test-secret-key-with-at-least-32-characters"


async def register(services: Services, username: str, password: str = PASSWORD) -> User:
    return await services.users.create_user(f"{username}@example.com", username, password)


async def token_for(services: Services, username: str, password: str = PASSWORD) -> str:
    result = await services.auth.login(username, password)
    return result.token


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
