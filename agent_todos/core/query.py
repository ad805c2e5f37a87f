"""Read-only queries over a snapshot of a project collection.

Nothing here mutates records or touches storage.
"""

from __future__ import annotations

import datetime as _dt
import json
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from agent_todos.errors import NotFoundError
from agent_todos.models.commands import ListTodosParams, SortField, SortOrder
from agent_todos.models.todo import PRIORITY_RANK, Priority, Status, Todo


@dataclass(slots=True)
class DependencyContext:
    todo: Todo
    resolved_dependencies: list[Todo] = field(default_factory=list)
    unknown_dependency_ids: list[str] = field(default_factory=list)
    dependents: list[Todo] = field(default_factory=list)


def filter_todos(
    todos: Sequence[Todo],
    *,
    status: Status | None = None,
    priority: Priority | None = None,
    tag: str | None = None,
) -> list[Todo]:
    result = list(todos)
    if status:
        result = [t for t in result if t.status == status]
    if priority:
        result = [t for t in result if t.priority == priority]
    if tag:
        result = [t for t in result if tag in t.tags]
    return result


_SORT_KEYS: dict[str, Callable[[Todo], Any]] = {
    "created": lambda t: t.created_at,
    "updated": lambda t: t.updated_at,
    "priority": lambda t: PRIORITY_RANK[t.priority],
    "progress": lambda t: t.progress,
}


def sort_todos(
    todos: Sequence[Todo], by: SortField = "updated", order: SortOrder = "desc"
) -> list[Todo]:
    """Stable sort; ties keep encounter order in both directions.

    For ``dueDate`` undated records always come last, whatever the order.
    """
    reverse = order == "desc"
    if by == "dueDate":
        dated = [t for t in todos if t.due_at is not None]
        undated = [t for t in todos if t.due_at is None]
        dated.sort(key=lambda t: t.due_at, reverse=reverse)  # type: ignore[arg-type,return-value]
        return dated + undated
    try:
        key = _SORT_KEYS[by]
    except KeyError:
        raise ValueError(f"unknown sort field: {by}") from None
    return sorted(todos, key=key, reverse=reverse)


def limit_todos(todos: Sequence[Todo], n: int | None) -> list[Todo]:
    if not n:
        return list(todos)
    return list(todos[:n])


def list_todos(todos: Sequence[Todo], params: ListTodosParams | None = None) -> list[Todo]:
    p = params or ListTodosParams()
    selected = filter_todos(todos, status=p.status, priority=p.priority, tag=p.tag)
    return limit_todos(sort_todos(selected, p.sort_by, p.sort_order), p.limit)


def _metadata_text(todo: Todo) -> str:
    # compact form, the way the collection's JSON would spell it
    return json.dumps(todo.metadata, separators=(",", ":"), ensure_ascii=False, default=str)


def search_todos(todos: Sequence[Todo], query: str, *, case_sensitive: bool = False) -> list[Todo]:
    def fold(text: str) -> str:
        return text if case_sensitive else text.casefold()

    needle = fold(query)
    matches: list[Todo] = []
    for todo in todos:
        haystacks = [todo.title, todo.description or "", _metadata_text(todo), *todo.tags]
        if any(needle in fold(h) for h in haystacks):
            matches.append(todo)
    return matches


def dependency_context(todos: Sequence[Todo], todo_id: str) -> DependencyContext:
    by_id = {t.id: t for t in todos}
    todo = by_id.get(todo_id)
    if todo is None:
        raise NotFoundError(todo_id)
    ctx = DependencyContext(todo=todo)
    for dep_id in todo.dependencies:
        dep = by_id.get(dep_id)
        if dep is None:
            ctx.unknown_dependency_ids.append(dep_id)
        else:
            ctx.resolved_dependencies.append(dep)
    ctx.dependents = [t for t in todos if t.id != todo_id and todo_id in t.dependencies]
    return ctx


def count_completed_dependencies(todos: Sequence[Todo], todo: Todo) -> int:
    by_id = {t.id: t for t in todos}
    return sum(
        1
        for dep_id in todo.dependencies
        if (dep := by_id.get(dep_id)) is not None and dep.status == "completed"
    )


def created_or_updated_since(todos: Sequence[Todo], cutoff: _dt.datetime) -> list[Todo]:
    return [t for t in todos if t.updated_at >= cutoff or t.created_at >= cutoff]


__all__ = [
    "DependencyContext",
    "count_completed_dependencies",
    "created_or_updated_since",
    "dependency_context",
    "filter_todos",
    "limit_todos",
    "list_todos",
    "search_todos",
    "sort_todos",
]
