from __future__ import annotations

import datetime as dt

import pytest

from agent_todos.core import query
from agent_todos.errors import NotFoundError
from agent_todos.models.commands import ListTodosParams
from agent_todos.models.todo import Todo

BASE = dt.datetime(2024, 5, 1, 12, 0, tzinfo=dt.UTC)


def _todo(todo_id: str, minutes: int = 0, **fields: object) -> Todo:
    stamp = BASE + dt.timedelta(minutes=minutes)
    return Todo.model_validate(
        {"id": todo_id, "title": todo_id, "created_at": stamp, "updated_at": stamp, **fields}
    )


@pytest.fixture()
def todos() -> list[Todo]:
    return [
        _todo("a", 0, priority="low", status="pending", tags=["ops"], due_date="2024-05-10"),
        _todo("b", 1, priority="urgent", status="in-progress", progress=50),
        _todo("c", 2, priority="high", status="completed", progress=100, due_date="2024-05-03"),
        _todo("d", 3, priority="urgent", status="blocked", tags=["ops", "db"]),
    ]


def _ids(items: list[Todo]) -> list[str]:
    return [t.id for t in items]


def test_filters_combine(todos: list[Todo]) -> None:
    assert _ids(query.filter_todos(todos, status="completed")) == ["c"]
    assert _ids(query.filter_todos(todos, priority="urgent")) == ["b", "d"]
    assert _ids(query.filter_todos(todos, tag="ops")) == ["a", "d"]
    assert _ids(query.filter_todos(todos, tag="ops", priority="urgent")) == ["d"]
    assert query.filter_todos(todos, tag="missing") == []


def test_default_listing_is_most_recently_updated_first(todos: list[Todo]) -> None:
    assert _ids(query.list_todos(todos)) == ["d", "c", "b", "a"]


def test_sort_by_priority_keeps_ties_in_encounter_order(todos: list[Todo]) -> None:
    desc = query.sort_todos(todos, "priority", "desc")
    assert _ids(desc) == ["b", "d", "c", "a"]
    asc = query.sort_todos(todos, "priority", "asc")
    assert _ids(asc) == ["a", "c", "b", "d"]


def test_sort_by_due_date_puts_undated_last(todos: list[Todo]) -> None:
    assert _ids(query.sort_todos(todos, "dueDate", "asc")) == ["c", "a", "b", "d"]
    assert _ids(query.sort_todos(todos, "dueDate", "desc")) == ["a", "c", "b", "d"]


def test_sort_by_progress_and_created(todos: list[Todo]) -> None:
    assert _ids(query.sort_todos(todos, "progress", "desc")) == ["c", "b", "a", "d"]
    assert _ids(query.sort_todos(todos, "created", "asc")) == ["a", "b", "c", "d"]


def test_sort_rejects_unknown_field(todos: list[Todo]) -> None:
    with pytest.raises(ValueError):
        query.sort_todos(todos, "title", "asc")  # type: ignore[arg-type]


def test_limit_zero_or_none_returns_everything(todos: list[Todo]) -> None:
    assert len(query.limit_todos(todos, None)) == 4
    assert len(query.limit_todos(todos, 0)) == 4
    assert _ids(query.limit_todos(todos, 2)) == ["a", "b"]


def test_list_applies_filter_sort_then_limit(todos: list[Todo]) -> None:
    params = ListTodosParams(priority="urgent", sort_by="created", sort_order="asc", limit=1)
    assert _ids(query.list_todos(todos, params)) == ["b"]


def test_search_covers_title_description_tags_and_metadata() -> None:
    items = [
        _todo("t1", title="Deploy API"),
        _todo("t2", description="rotate the deploy keys"),
        _todo("t3", tags=["Deploy"]),
        _todo("t4", metadata={"env": "deploy-staging"}),
        _todo("t5", title="unrelated"),
    ]
    assert _ids(query.search_todos(items, "deploy")) == ["t1", "t2", "t3", "t4"]
    assert _ids(query.search_todos(items, "Deploy", case_sensitive=True)) == ["t1", "t3"]
    assert query.search_todos(items, "nothing-matches") == []


def test_dependency_context_reports_unknown_and_dependents() -> None:
    items = [
        _todo("x", status="completed"),
        _todo("y", dependencies=["x", "ghost"]),
        _todo("z", dependencies=["y"]),
    ]
    ctx = query.dependency_context(items, "y")
    assert _ids(ctx.resolved_dependencies) == ["x"]
    assert ctx.unknown_dependency_ids == ["ghost"]
    assert _ids(ctx.dependents) == ["z"]
    assert query.count_completed_dependencies(items, ctx.todo) == 1

    with pytest.raises(NotFoundError):
        query.dependency_context(items, "ghost")


def test_created_or_updated_since() -> None:
    old = _todo("old", 0)
    touched = _todo("touched", 0, updated_at=BASE + dt.timedelta(days=3))
    cutoff = BASE + dt.timedelta(days=1)
    assert _ids(query.created_or_updated_since([old, touched], cutoff)) == ["touched"]
