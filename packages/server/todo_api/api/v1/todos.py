"""
Todo endpoints, mounted under /api/v1/orgs/{orgId}/todos.

Completion is allowed for the todo's creator even without
``todos:complete``; every other route is gated by a single permission.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from todo_api.api.deps import get_org_context, get_services, permission_required
from todo_api.auth.context import AuthContext
from todo_api.auth.middleware import require_creator_or_permission
from todo_api.core.container import Services
from todo_api_shared.schemas.common import Permission
from todo_api_shared.schemas.todos import TodoCreateRequest, TodoListResponse, TodoResponse

router = APIRouter()

creator_or_completer = require_creator_or_permission(Permission.TODOS_COMPLETE)


@router.get("", response_model=TodoListResponse)
async def list_todos(
    auth: AuthContext = Depends(permission_required(Permission.TODOS_READ)),
    services: Services = Depends(get_services),
):
    todos = await services.todos.list_todos(auth.org.organization_id)
    return TodoListResponse(data=[TodoResponse.model_validate(t) for t in todos])


@router.post("", response_model=TodoResponse, status_code=201)
async def create_todo(
    body: TodoCreateRequest,
    auth: AuthContext = Depends(permission_required(Permission.TODOS_CREATE)),
    services: Services = Depends(get_services),
):
    todo = await services.todos.create_todo(
        auth.org.organization_id, auth.user.id, body.title, body.description
    )
    return TodoResponse.model_validate(todo)


@router.get("/{todoId}", response_model=TodoResponse)
async def get_todo(
    todoId: str,
    auth: AuthContext = Depends(permission_required(Permission.TODOS_READ)),
    services: Services = Depends(get_services),
):
    todo = await services.todos.get_todo(auth.org.organization_id, todoId)
    return TodoResponse.model_validate(todo)


@router.patch("/{todoId}/complete", response_model=TodoResponse)
async def complete_todo(
    todoId: str,
    auth: AuthContext = Depends(get_org_context),
    services: Services = Depends(get_services),
):
    todo = await services.todos.get_todo(auth.org.organization_id, todoId)
    creator_or_completer(auth, todo)
    todo = await services.todos.complete_todo(todo)
    return TodoResponse.model_validate(todo)


@router.delete("/{todoId}", status_code=204, response_class=Response)
async def delete_todo(
    todoId: str,
    auth: AuthContext = Depends(permission_required(Permission.TODOS_DELETE)),
    services: Services = Depends(get_services),
):
    todo = await services.todos.get_todo(auth.org.organization_id, todoId)
    await services.todos.delete_todo(todo)
    return Response(status_code=204)
