"""
User endpoints.

POST /api/v1/users      register
GET  /api/v1/users/me   the authenticated user
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from todo_api.api.deps import get_auth_context, get_services
from todo_api.auth.context import AuthContext
from todo_api.core.container import Services
from todo_api_shared.schemas.users import UserCreateRequest, UserResponse

router = APIRouter()


@router.post("", response_model=UserResponse, status_code=201)
async def register(body: UserCreateRequest, services: Services = Depends(get_services)):
    user = await services.users.create_user(body.email, body.username, body.password)
    return UserResponse.model_validate(user)


@router.get("/me", response_model=UserResponse)
async def me(auth: AuthContext = Depends(get_auth_context)):
    return UserResponse.model_validate(auth.user)
