"""
Tests for UserService.
"""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock

import pytest

from todo_api.core.errors import ErrorCode, UserError
from todo_api.services.users import UserService
from todo_api.stores.users import InMemoryUserStore

from helpers import PASSWORD, register


class TestCreateUser:
    @pytest.mark.asyncio
    async def test_hashes_password(self, services):
        user = await register(services, "alice")
        stored = await services.users.store.find_by_username_with_password("alice")
        assert stored.id == user.id
        assert stored.password_hash != PASSWORD
        assert stored.password_hash.startswith("$2")

    @pytest.mark.asyncio
    async def test_duplicate_email(self, services):
        await services.users.create_user("a@x.com", "alice", PASSWORD)
        with pytest.raises(UserError) as info:
            await services.users.create_user("A@X.com", "alice2", PASSWORD)
        assert info.value.code is ErrorCode.EMAIL_ALREADY_EXISTS
        assert info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_duplicate_username(self, services):
        await services.users.create_user("a@x.com", "alice", PASSWORD)
        with pytest.raises(UserError) as info:
            await services.users.create_user("b@x.com", "ALICE", PASSWORD)
        assert info.value.code is ErrorCode.USERNAME_ALREADY_EXISTS

    @pytest.mark.asyncio
    async def test_save_race_maps_to_conflict(self):
        store = InMemoryUserStore()
        service = UserService(store, bcrypt_rounds=4)
        await store.save("a@x.com", "alice", "hash")
        # Pretend both pre-checks missed the concurrent insert.
        real_find = store.find_by_email
        store.find_by_email = AsyncMock(side_effect=[None, await real_find("a@x.com")])
        with pytest.raises(UserError) as info:
            await service.create_user("a@x.com", "someone", PASSWORD)
        assert info.value.code is ErrorCode.EMAIL_ALREADY_EXISTS

    @pytest.mark.asyncio
    async def test_storage_failure(self, services):
        services.users.store.find_by_email = AsyncMock(side_effect=OSError("disk"))
        with pytest.raises(UserError) as info:
            await services.users.create_user("a@x.com", "alice", PASSWORD)
        assert info.value.code is ErrorCode.UNEXPECTED_ERROR
        assert isinstance(info.value.__cause__, OSError)


class TestLookups:
    @pytest.mark.asyncio
    async def test_get_by_id(self, services):
        user = await register(services, "bob")
        assert (await services.users.get_by_id(str(user.id))).username == "bob"
        assert (await services.users.get_by_id(user.id)).username == "bob"

    @pytest.mark.asyncio
    async def test_get_by_id_invalid(self, services):
        with pytest.raises(UserError) as info:
            await services.users.get_by_id("not-a-uuid")
        assert info.value.code is ErrorCode.INVALID_USER_ID

    @pytest.mark.asyncio
    async def test_get_by_id_missing(self, services):
        with pytest.raises(UserError) as info:
            await services.users.get_by_id(uuid.uuid4())
        assert info.value.code is ErrorCode.USER_NOT_FOUND

    @pytest.mark.asyncio
    async def test_get_by_email_and_username(self, services):
        await register(services, "carol")
        assert (await services.users.get_by_email("CAROL@example.com")).username == "carol"
        assert (await services.users.get_by_username("Carol")).email == "carol@example.com"
        with pytest.raises(UserError):
            await services.users.get_by_username("nobody")


class TestAuthenticateUser:
    @pytest.mark.asyncio
    async def test_at_sign_selects_email_lookup(self, services):
        await register(services, "dave")
        services.users.store.find_by_username_with_password = AsyncMock()
        user = await services.users.authenticate_user("dave@example.com", PASSWORD)
        assert user.username == "dave"
        services.users.store.find_by_username_with_password.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_identifier_still_runs_bcrypt(self, services, monkeypatch):
        calls = []
        import todo_api.services.users as users_module

        real_verify = users_module.verify_password

        def spy(password, hashed):
            calls.append(hashed)
            return real_verify(password, hashed)

        monkeypatch.setattr(users_module, "verify_password", spy)
        with pytest.raises(UserError) as info:
            await services.users.authenticate_user("ghost", PASSWORD)
        assert info.value.code is ErrorCode.INVALID_CREDENTIALS
        assert calls == [services.users._dummy_hash]
