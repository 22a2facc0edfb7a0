"""
Error taxonomy and HTTP rendering.
"""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from todo_api.core.errors import (
    STATUS_BY_CODE,
    AuthError,
    AuthorizationError,
    ErrorCode,
    MembershipError,
    TodoError,
    TokenError,
    register_exception_handlers,
    unexpected_errors,
)


def test_every_code_has_a_status():
    assert set(STATUS_BY_CODE) == set(ErrorCode)


@pytest.mark.parametrize(
    "code, status",
    [
        (ErrorCode.INVALID_CREDENTIALS, 401),
        (ErrorCode.MISSING_AUTH, 401),
        (ErrorCode.NOT_MEMBER, 403),
        (ErrorCode.MISSING_PERMISSION, 403),
        (ErrorCode.FORBIDDEN, 403),
        (ErrorCode.INVALID_REQUEST, 400),
        (ErrorCode.CANNOT_REMOVE_LAST_OWNER, 400),
        (ErrorCode.MEMBERSHIP_NOT_FOUND, 404),
        (ErrorCode.USER_ALREADY_MEMBER, 409),
        (ErrorCode.INTERNAL_ERROR, 500),
    ],
)
def test_status_mapping(code, status):
    assert STATUS_BY_CODE[code] == status


def test_closed_code_sets():
    with pytest.raises(ValueError):
        TokenError(ErrorCode.NOT_MEMBER, "nope")
    with pytest.raises(ValueError):
        MembershipError(ErrorCode.INVALID_TOKEN, "nope")


def test_public_code_collapses_token_failures():
    assert AuthorizationError(ErrorCode.MISSING_TOKEN, "Missing").to_response()["code"] == "INVALID_TOKEN"
    assert TokenError(ErrorCode.TOKEN_EXPIRED, "Expired").public_code is ErrorCode.INVALID_TOKEN


def test_server_errors_hide_message():
    err = AuthError(ErrorCode.UNEXPECTED_ERROR, "bcrypt exploded")
    assert err.status_code == 500
    assert err.to_response() == {"message": "Internal server error", "code": "UNEXPECTED_ERROR"}


def test_client_errors_keep_message():
    err = MembershipError(ErrorCode.CANNOT_REMOVE_LAST_OWNER, "Cannot remove the last owner")
    assert err.to_response() == {
        "message": "Cannot remove the last owner",
        "code": "CANNOT_REMOVE_LAST_OWNER",
    }


class TestUnexpectedErrors:
    def test_wraps_foreign_exceptions(self):
        with pytest.raises(TodoError) as exc_info:
            with unexpected_errors(TodoError, "Failed to load todo"):
                raise RuntimeError("connection reset")
        assert exc_info.value.code is ErrorCode.UNEXPECTED_ERROR
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_passes_app_errors_through(self):
        with pytest.raises(TodoError) as exc_info:
            with unexpected_errors(TodoError, "Failed"):
                raise TodoError(ErrorCode.TODO_NOT_FOUND, "Todo not found")
        assert exc_info.value.code is ErrorCode.TODO_NOT_FOUND


@pytest.fixture
async def error_client():
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/tagged")
    async def tagged():
        raise AuthorizationError(ErrorCode.NOT_MEMBER, "Not a member of this organization")

    @app.get("/crash")
    async def crash():
        raise RuntimeError("boom")

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.mark.asyncio
async def test_tagged_error_rendering(error_client):
    resp = await error_client.get("/tagged")
    assert resp.status_code == 403
    assert resp.json() == {"message": "Not a member of this organization", "code": "NOT_MEMBER"}


@pytest.mark.asyncio
async def test_unhandled_error_rendering(error_client):
    resp = await error_client.get("/crash")
    assert resp.status_code == 500
    assert resp.json() == {"message": "Internal server error", "code": "INTERNAL_ERROR"}
