"""
Todo service. Authorization happens in the route guards; this module only
enforces that a todo is addressed through its own organization.
"""

from __future__ import annotations

import uuid
from typing import Optional, Union

import structlog

from todo_api.core.errors import ErrorCode, TodoError, unexpected_errors
from todo_api.models.todo import Todo
from todo_api.stores.todos import TodoStore

log = structlog.get_logger()


def _parse_todo_id(todo_id: Union[str, uuid.UUID]) -> uuid.UUID:
    if isinstance(todo_id, uuid.UUID):
        return todo_id
    try:
        return uuid.UUID(str(todo_id))
    except ValueError:
        raise TodoError(ErrorCode.INVALID_TODO_ID, "Invalid todo id") from None


class TodoService:
    def __init__(self, store: TodoStore):
        self.store = store

    async def create_todo(
        self,
        organization_id: uuid.UUID,
        created_by: uuid.UUID,
        title: str,
        description: Optional[str] = None,
    ) -> Todo:
        todo = Todo(
            organization_id=organization_id,
            created_by=created_by,
            title=title,
            description=description,
        )
        with unexpected_errors(TodoError, "Failed to create todo"):
            todo = await self.store.save(todo)
        log.info("todo.created", todo_id=str(todo.id), org_id=str(organization_id))
        return todo

    async def list_todos(self, organization_id: uuid.UUID) -> list[Todo]:
        with unexpected_errors(TodoError, "Failed to list todos"):
            return await self.store.find_by_organization_id(organization_id)

    async def get_todo(self, organization_id: uuid.UUID, todo_id: Union[str, uuid.UUID]) -> Todo:
        todo_uuid = _parse_todo_id(todo_id)
        with unexpected_errors(TodoError, "Failed to load todo"):
            todo = await self.store.find_by_id(todo_uuid)
        # A todo from another organization is indistinguishable from a missing one.
        if todo is None or todo.organization_id != organization_id:
            raise TodoError(ErrorCode.TODO_NOT_FOUND, "Todo not found")
        return todo

    async def complete_todo(self, todo: Todo) -> Todo:
        if todo.completed:
            raise TodoError(ErrorCode.TODO_ALREADY_COMPLETED, "Todo is already completed")
        with unexpected_errors(TodoError, "Failed to complete todo"):
            updated = await self.store.mark_completed(todo.id)
        if updated is None:
            raise TodoError(ErrorCode.TODO_NOT_FOUND, "Todo not found")
        log.info("todo.completed", todo_id=str(todo.id))
        return updated

    async def delete_todo(self, todo: Todo) -> None:
        with unexpected_errors(TodoError, "Failed to delete todo"):
            deleted = await self.store.delete(todo.id)
        if not deleted:
            raise TodoError(ErrorCode.TODO_NOT_FOUND, "Todo not found")
        log.info("todo.deleted", todo_id=str(todo.id))
