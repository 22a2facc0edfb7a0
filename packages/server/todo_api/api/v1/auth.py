"""
Authentication endpoints.

POST /auth/login    exchange credentials for a bearer token
POST /auth/logout   revoke the presented bearer token
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Response

from todo_api.api.deps import bearer_header, get_services
from todo_api.core.container import Services
from todo_api.core.errors import AuthorizationError, ErrorCode
from todo_api.core.security import extract_bearer_token
from todo_api_shared.schemas.users import LoginRequest, LoginResponse, UserResponse

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
async def login(body: LoginRequest, services: Services = Depends(get_services)):
    """Authenticate with username or email plus password."""
    result = await services.auth.login(body.username_or_email, body.password)
    return LoginResponse(token=result.token, user=UserResponse.model_validate(result.user))


@router.post("/logout", status_code=204, response_class=Response)
async def logout(
    authorization: Optional[str] = Depends(bearer_header),
    services: Services = Depends(get_services),
):
    """Revoke the current token. Logging out twice is not an error."""
    token = extract_bearer_token(authorization)
    if token is None:
        raise AuthorizationError(ErrorCode.MISSING_TOKEN, "Missing authorization token")
    await services.auth.logout(token)
    return Response(status_code=204)
