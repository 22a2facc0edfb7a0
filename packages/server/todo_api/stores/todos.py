"""Todo store."""

from __future__ import annotations

import uuid
from typing import Optional, Protocol

from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import select

from todo_api.models.base import utcnow
from todo_api.models.todo import Todo
from todo_api.stores.common import session_factory


class TodoStore(Protocol):
    async def save(self, todo: Todo) -> Todo: ...

    async def find_by_id(self, todo_id: uuid.UUID) -> Optional[Todo]: ...

    async def find_by_organization_id(self, organization_id: uuid.UUID) -> list[Todo]: ...

    async def mark_completed(self, todo_id: uuid.UUID) -> Optional[Todo]: ...

    async def delete(self, todo_id: uuid.UUID) -> bool: ...


class SqlTodoStore:
    def __init__(self, engine: AsyncEngine):
        self._sessions = session_factory(engine)

    async def save(self, todo: Todo) -> Todo:
        async with self._sessions() as session:
            session.add(todo)
            await session.commit()
        return todo

    async def find_by_id(self, todo_id: uuid.UUID) -> Optional[Todo]:
        async with self._sessions() as session:
            return await session.get(Todo, todo_id)

    async def find_by_organization_id(self, organization_id: uuid.UUID) -> list[Todo]:
        async with self._sessions() as session:
            result = await session.execute(
                select(Todo).where(Todo.organization_id == organization_id).order_by(Todo.created_at)
            )
            return list(result.scalars().all())

    async def mark_completed(self, todo_id: uuid.UUID) -> Optional[Todo]:
        async with self._sessions() as session:
            todo = await session.get(Todo, todo_id)
            if todo is None:
                return None
            now = utcnow()
            todo.completed = True
            todo.completed_at = now
            todo.updated_at = now
            session.add(todo)
            await session.commit()
            return todo

    async def delete(self, todo_id: uuid.UUID) -> bool:
        async with self._sessions() as session:
            todo = await session.get(Todo, todo_id)
            if todo is None:
                return False
            await session.delete(todo)
            await session.commit()
            return True


class InMemoryTodoStore:
    def __init__(self) -> None:
        self._todos: dict[uuid.UUID, Todo] = {}

    @staticmethod
    def _copy(todo: Todo) -> Todo:
        return Todo.model_validate(todo.model_dump())

    async def save(self, todo: Todo) -> Todo:
        self._todos[todo.id] = self._copy(todo)
        return self._copy(todo)

    async def find_by_id(self, todo_id: uuid.UUID) -> Optional[Todo]:
        todo = self._todos.get(todo_id)
        return self._copy(todo) if todo else None

    async def find_by_organization_id(self, organization_id: uuid.UUID) -> list[Todo]:
        return [self._copy(t) for t in self._todos.values() if t.organization_id == organization_id]

    async def mark_completed(self, todo_id: uuid.UUID) -> Optional[Todo]:
        todo = self._todos.get(todo_id)
        if todo is None:
            return None
        now = utcnow()
        todo.completed = True
        todo.completed_at = now
        todo.updated_at = now
        return self._copy(todo)

    async def delete(self, todo_id: uuid.UUID) -> bool:
        return self._todos.pop(todo_id, None) is not None
