"""
Application error taxonomy and HTTP rendering.

Every expected failure is an ``AppError`` carrying a closed ``ErrorCode``.
Services raise them; the FastAPI exception handlers below render them as
``{"message": ..., "code": ...}`` with a fixed status per code. Storage and
crypto faults are logged with their cause and rendered without detail.
"""

from __future__ import annotations

from contextlib import contextmanager
from enum import Enum
from typing import Any, Iterator

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

log = structlog.get_logger()


class ErrorCode(str, Enum):
    # Authentication
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    UNEXPECTED_ERROR = "UNEXPECTED_ERROR"

    # Authorization / context extraction
    MISSING_AUTH = "MISSING_AUTH"
    MISSING_ORG_CONTEXT = "MISSING_ORG_CONTEXT"
    MISSING_TOKEN = "MISSING_TOKEN"
    NOT_MEMBER = "NOT_MEMBER"
    MISSING_PERMISSION = "MISSING_PERMISSION"
    FORBIDDEN = "FORBIDDEN"
    INVALID_REQUEST = "INVALID_REQUEST"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # Membership mutation
    CANNOT_CHANGE_LAST_OWNER = "CANNOT_CHANGE_LAST_OWNER"
    CANNOT_REMOVE_LAST_OWNER = "CANNOT_REMOVE_LAST_OWNER"
    MEMBERSHIP_NOT_FOUND = "MEMBERSHIP_NOT_FOUND"
    USER_ALREADY_MEMBER = "USER_ALREADY_MEMBER"

    # Users
    EMAIL_ALREADY_EXISTS = "EMAIL_ALREADY_EXISTS"
    USERNAME_ALREADY_EXISTS = "USERNAME_ALREADY_EXISTS"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    INVALID_USER_ID = "INVALID_USER_ID"

    # Organizations
    SLUG_ALREADY_EXISTS = "SLUG_ALREADY_EXISTS"
    ORGANIZATION_NOT_FOUND = "ORGANIZATION_NOT_FOUND"

    # Todos
    TODO_NOT_FOUND = "TODO_NOT_FOUND"
    INVALID_TODO_ID = "INVALID_TODO_ID"
    TODO_ALREADY_COMPLETED = "TODO_ALREADY_COMPLETED"

    # Request body
    VALIDATION_ERROR = "VALIDATION_ERROR"


STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.INVALID_CREDENTIALS: 401,
    ErrorCode.INVALID_TOKEN: 401,
    ErrorCode.TOKEN_EXPIRED: 401,
    ErrorCode.MISSING_TOKEN: 401,
    ErrorCode.MISSING_AUTH: 401,
    ErrorCode.MISSING_ORG_CONTEXT: 401,
    ErrorCode.NOT_MEMBER: 403,
    ErrorCode.MISSING_PERMISSION: 403,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.INVALID_REQUEST: 400,
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.INVALID_USER_ID: 400,
    ErrorCode.INVALID_TODO_ID: 400,
    ErrorCode.CANNOT_CHANGE_LAST_OWNER: 400,
    ErrorCode.CANNOT_REMOVE_LAST_OWNER: 400,
    ErrorCode.TODO_ALREADY_COMPLETED: 400,
    ErrorCode.MEMBERSHIP_NOT_FOUND: 404,
    ErrorCode.ORGANIZATION_NOT_FOUND: 404,
    ErrorCode.USER_NOT_FOUND: 404,
    ErrorCode.TODO_NOT_FOUND: 404,
    ErrorCode.USER_ALREADY_MEMBER: 409,
    ErrorCode.SLUG_ALREADY_EXISTS: 409,
    ErrorCode.EMAIL_ALREADY_EXISTS: 409,
    ErrorCode.USERNAME_ALREADY_EXISTS: 409,
    ErrorCode.UNEXPECTED_ERROR: 500,
    ErrorCode.INTERNAL_ERROR: 500,
}

# Codes that are rendered under a coarser public code.
PUBLIC_CODE: dict[ErrorCode, ErrorCode] = {
    ErrorCode.MISSING_TOKEN: ErrorCode.INVALID_TOKEN,
    ErrorCode.TOKEN_EXPIRED: ErrorCode.INVALID_TOKEN,
}

GENERIC_SERVER_MESSAGE = "Internal server error"


class AppError(Exception):
    """Base class for tagged application errors."""

    allowed_codes: frozenset[ErrorCode] = frozenset(ErrorCode)

    def __init__(self, code: ErrorCode, message: str, **context: Any):
        if code not in self.allowed_codes:
            raise ValueError(f"{type(self).__name__} cannot carry {code.value}")
        super().__init__(message)
        self.code = code
        self.message = message
        self.context = context

    @property
    def status_code(self) -> int:
        return STATUS_BY_CODE[self.code]

    @property
    def public_code(self) -> ErrorCode:
        return PUBLIC_CODE.get(self.code, self.code)

    def to_response(self) -> dict[str, str]:
        message = GENERIC_SERVER_MESSAGE if self.status_code >= 500 else self.message
        return {"message": message, "code": self.public_code.value}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code.value!r}, {self.message!r})"


class AuthError(AppError):
    allowed_codes = frozenset({
        ErrorCode.INVALID_CREDENTIALS,
        ErrorCode.INVALID_TOKEN,
        ErrorCode.UNEXPECTED_ERROR,
    })


class TokenError(AppError):
    """Raised by the token verifier. ``TOKEN_EXPIRED`` is a sub-case of invalid."""

    allowed_codes = frozenset({ErrorCode.INVALID_TOKEN, ErrorCode.TOKEN_EXPIRED})


class AuthorizationError(AppError):
    allowed_codes = frozenset({
        ErrorCode.MISSING_AUTH,
        ErrorCode.MISSING_ORG_CONTEXT,
        ErrorCode.MISSING_TOKEN,
        ErrorCode.INVALID_TOKEN,
        ErrorCode.NOT_MEMBER,
        ErrorCode.MISSING_PERMISSION,
        ErrorCode.FORBIDDEN,
        ErrorCode.INVALID_REQUEST,
        ErrorCode.INTERNAL_ERROR,
    })


class MembershipError(AppError):
    allowed_codes = frozenset({
        ErrorCode.CANNOT_CHANGE_LAST_OWNER,
        ErrorCode.CANNOT_REMOVE_LAST_OWNER,
        ErrorCode.MEMBERSHIP_NOT_FOUND,
        ErrorCode.USER_ALREADY_MEMBER,
        ErrorCode.ORGANIZATION_NOT_FOUND,
        ErrorCode.USER_NOT_FOUND,
        ErrorCode.UNEXPECTED_ERROR,
    })


class OrganizationError(AppError):
    allowed_codes = frozenset({
        ErrorCode.SLUG_ALREADY_EXISTS,
        ErrorCode.ORGANIZATION_NOT_FOUND,
        ErrorCode.UNEXPECTED_ERROR,
    })


class UserError(AppError):
    allowed_codes = frozenset({
        ErrorCode.EMAIL_ALREADY_EXISTS,
        ErrorCode.USERNAME_ALREADY_EXISTS,
        ErrorCode.USER_NOT_FOUND,
        ErrorCode.INVALID_USER_ID,
        ErrorCode.INVALID_CREDENTIALS,
        ErrorCode.UNEXPECTED_ERROR,
    })


class TodoError(AppError):
    allowed_codes = frozenset({
        ErrorCode.TODO_NOT_FOUND,
        ErrorCode.INVALID_TODO_ID,
        ErrorCode.TODO_ALREADY_COMPLETED,
        ErrorCode.UNEXPECTED_ERROR,
    })


@contextmanager
def unexpected_errors(error_cls: type[AppError], message: str, **context: Any) -> Iterator[None]:
    """Re-raise anything that is not an ``AppError`` as ``UNEXPECTED_ERROR``.

    The original exception is chained and logged, never rendered.
    """
    try:
        yield
    except AppError:
        raise
    except Exception as exc:
        log.exception("error.unexpected", wrapper=error_cls.__name__, **context)
        raise error_cls(ErrorCode.UNEXPECTED_ERROR, message, **context) from exc


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        log.error(
            "request.failed",
            path=request.url.path,
            code=exc.code.value,
            cause=repr(exc.__cause__) if exc.__cause__ else None,
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    if location:
        message = f"{location}: {message}"
    return JSONResponse(
        status_code=STATUS_BY_CODE[ErrorCode.VALIDATION_ERROR],
        content={"message": message, "code": ErrorCode.VALIDATION_ERROR.value},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.error("request.unhandled_exception", path=request.url.path, error=repr(exc))
    return JSONResponse(
        status_code=500,
        content={"message": GENERIC_SERVER_MESSAGE, "code": ErrorCode.INTERNAL_ERROR.value},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
