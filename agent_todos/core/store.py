from __future__ import annotations

import asyncio
import datetime as _dt
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from agent_todos.errors import BlockedError, NotFoundError
from agent_todos.models.commands import TodoChanges
from agent_todos.models.todo import Priority, Todo, new_todo_id, unique, utc_now
from agent_todos.observability import get_json_logger
from agent_todos.storage.interface import BlobStore


@dataclass(slots=True)
class ProjectHandle:
    """The in-memory collection of one project, passed explicitly to store and query calls."""

    project_id: str
    todos: list[Todo] = field(default_factory=list)
    existed: bool = False

    def snapshot(self) -> list[Todo]:
        return [t.model_copy(deep=True) for t in self.todos]

    def find(self, todo_id: str) -> Todo | None:
        for todo in self.todos:
            if todo.id == todo_id:
                return todo
        return None

    def index_of(self, todo_id: str) -> int:
        for i, todo in enumerate(self.todos):
            if todo.id == todo_id:
                return i
        return -1


@dataclass(slots=True)
class DeleteResult:
    deleted: Todo
    # ids of todos whose dependencies no longer list the deleted id
    cleaned: list[str] = field(default_factory=list)


def clamp_progress(value: int | float) -> int:
    return max(0, min(100, int(round(value))))


def _touch(todo: Todo) -> None:
    now = utc_now()
    if now <= todo.updated_at:
        now = todo.updated_at + _dt.timedelta(microseconds=1)
    todo.updated_at = now


def _apply_set_update(
    current: list[str],
    replace: list[str] | None,
    add: list[str] | None,
    remove: list[str] | None,
) -> list[str]:
    # A full replacement wins over incremental add/remove
    if replace is not None:
        return unique(replace)
    result = list(current)
    if add:
        result = unique(result + add)
    if remove:
        dropped = set(remove)
        result = [item for item in result if item not in dropped]
    return result


class TodoStore:
    """Mutations of a project collection, persisted after every change.

    The store holds no project state of its own; callers pass the active
    ``ProjectHandle``. Changes are staged on copies and installed on the handle
    only after the save succeeds. Returned records are copies, so edits made by
    callers do not bypass persistence.
    """

    def __init__(self, blobs: BlobStore) -> None:
        self._blobs = blobs
        self._logger = get_json_logger("agent_todos.store")

    async def persist(self, handle: ProjectHandle) -> None:
        await asyncio.to_thread(self._blobs.save, handle.project_id, handle.snapshot())

    async def _commit(self, handle: ProjectHandle, staged: list[Todo]) -> None:
        # the handle only sees the new collection once it is saved
        await self.persist(ProjectHandle(handle.project_id, staged, handle.existed))
        handle.todos = staged

    def get(self, handle: ProjectHandle, todo_id: str) -> Todo:
        return self._require(handle, todo_id).model_copy(deep=True)

    async def create(
        self,
        handle: ProjectHandle,
        title: str,
        *,
        description: str | None = None,
        priority: Priority = "medium",
        due_date: str | None = None,
        tags: Iterable[str] = (),
        dependencies: Iterable[str] = (),
        metadata: dict[str, Any] | None = None,
    ) -> Todo:
        clean_title = title.strip()
        if not clean_title:
            raise ValueError("title must be non-empty")
        todo_id = new_todo_id()
        while handle.find(todo_id) is not None:
            todo_id = new_todo_id()
        now = utc_now()
        todo = Todo(
            id=todo_id,
            title=clean_title,
            description=description,
            status="pending",
            priority=priority,
            progress=0,
            created_at=now,
            updated_at=now,
            due_date=due_date,
            tags=unique(list(tags)),
            dependencies=unique(list(dependencies)),
            metadata=dict(metadata or {}),
        )
        await self._commit(handle, [*handle.todos, todo])
        self._logger.info(
            "todo created",
            extra={"event": "todo_created", "project_id": handle.project_id, "todo_id": todo.id},
        )
        return todo.model_copy(deep=True)

    async def update(self, handle: ProjectHandle, todo_id: str, changes: TodoChanges) -> Todo:
        index = handle.index_of(todo_id)
        if index < 0:
            raise NotFoundError(todo_id)
        todo = handle.todos[index].model_copy(deep=True)
        original_status = todo.status

        if changes.explicit("title"):
            todo.title = changes.title  # type: ignore[assignment]
        if changes.provided("description"):
            todo.description = changes.description
        if changes.explicit("status"):
            todo.status = changes.status  # type: ignore[assignment]
        if changes.explicit("priority"):
            todo.priority = changes.priority  # type: ignore[assignment]
        if changes.explicit("progress"):
            todo.progress = clamp_progress(changes.progress)  # type: ignore[arg-type]
        if changes.provided("due_date"):
            todo.due_date = changes.due_date

        todo.tags = _apply_set_update(
            todo.tags, changes.tags, changes.add_tags, changes.remove_tags
        )
        todo.dependencies = _apply_set_update(
            todo.dependencies,
            changes.dependencies,
            changes.add_dependencies,
            changes.remove_dependencies,
        )
        if changes.metadata:
            todo.metadata = {**todo.metadata, **changes.metadata}

        if not changes.explicit("progress"):
            if changes.status == "completed":
                todo.progress = 100
            elif changes.status == "pending" and original_status != "pending":
                todo.progress = 0

        _touch(todo)
        staged = list(handle.todos)
        staged[index] = todo
        await self._commit(handle, staged)
        self._logger.info(
            "todo updated",
            extra={
                "event": "todo_updated",
                "project_id": handle.project_id,
                "todo_id": todo.id,
                "attributes": {"fields": sorted(changes.model_fields_set - {"id"})},
            },
        )
        return todo.model_copy(deep=True)

    async def delete(
        self, handle: ProjectHandle, todo_id: str, *, force: bool = False
    ) -> DeleteResult:
        index = handle.index_of(todo_id)
        if index < 0:
            raise NotFoundError(todo_id)
        todo = handle.todos[index]

        dependents = [t for t in handle.todos if t.id != todo_id and todo_id in t.dependencies]
        if dependents and not force:
            raise BlockedError(todo_id, todo.title, [(t.id, t.title) for t in dependents])

        cleaned: list[str] = []
        staged: list[Todo] = []
        for other in handle.todos:
            if other.id == todo_id:
                continue
            if todo_id in other.dependencies:
                other = other.model_copy(deep=True)
                other.dependencies = [d for d in other.dependencies if d != todo_id]
                _touch(other)
                cleaned.append(other.id)
            staged.append(other)

        await self._commit(handle, staged)
        self._logger.info(
            "todo deleted",
            extra={
                "event": "todo_deleted",
                "project_id": handle.project_id,
                "todo_id": todo_id,
                "attributes": {"force": force, "cleaned": cleaned},
            },
        )
        return DeleteResult(deleted=todo, cleaned=cleaned)

    def _require(self, handle: ProjectHandle, todo_id: str) -> Todo:
        todo = handle.find(todo_id)
        if todo is None:
            raise NotFoundError(todo_id)
        return todo


__all__ = ["DeleteResult", "ProjectHandle", "TodoStore", "clamp_progress"]
