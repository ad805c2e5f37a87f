from __future__ import annotations

import logging

import pytest

from agent_todos.commands import COMMANDS, TodoCommands
from agent_todos.models.commands import NoParams
from agent_todos.observability import get_command_context, get_metrics
from tests.helpers.blobs import InMemoryBlobStore


@pytest.mark.asyncio
async def test_every_command_has_a_handler(commands: TodoCommands) -> None:
    assert len(COMMANDS) == 14
    for name in COMMANDS:
        assert callable(getattr(commands, name))


@pytest.mark.asyncio
async def test_unknown_command_raises_key_error(commands: TodoCommands) -> None:
    with pytest.raises(KeyError):
        await commands.dispatch("drop_everything", {})
    with pytest.raises(KeyError):
        await commands.execute("drop_everything", NoParams())


@pytest.mark.asyncio
async def test_create_get_and_list(commands: TodoCommands) -> None:
    created = await commands.dispatch(
        "create_todo", {"title": "Write report", "priority": "high", "tags": ["docs"]}
    )
    todo = created["todo"]
    assert todo["title"] == "Write report"
    assert todo["status"] == "pending"

    dependent = await commands.dispatch(
        "create_todo", {"title": "Review report", "dependencies": [todo["id"], "todo_ghost"]}
    )

    fetched = await commands.dispatch("get_todo", {"id": dependent["todo"]["id"]})
    assert [d["id"] for d in fetched["dependencies"]] == [todo["id"]]
    assert fetched["unknownDependencies"] == ["todo_ghost"]
    assert fetched["dependents"] == []

    base = await commands.dispatch("get_todo", {"id": todo["id"]})
    assert [d["id"] for d in base["dependents"]] == [dependent["todo"]["id"]]

    listed = await commands.dispatch("list_todos", {"priority": "high"})
    assert listed["count"] == 1
    assert listed["total"] == 2
    assert listed["todos"][0]["id"] == todo["id"]


@pytest.mark.asyncio
async def test_invalid_params_become_error_payload(commands: TodoCommands) -> None:
    result = await commands.dispatch("create_todo", {"title": ""})
    assert result["error"]["type"] == "invalid_params"
    assert result["error"]["details"][0]["loc"] == ["title"]
    assert get_metrics().value(
        "command_errors", {"command": "create_todo", "type": "invalid_params"}
    ) == 1


@pytest.mark.asyncio
async def test_not_found_and_blocked_errors(commands: TodoCommands) -> None:
    missing = await commands.dispatch("update_todo", {"id": "todo_nope", "title": "x"})
    assert missing["error"]["type"] == "not_found"
    assert missing["error"]["id"] == "todo_nope"

    base = (await commands.dispatch("create_todo", {"title": "Base"}))["todo"]
    created = await commands.dispatch(
        "create_todo", {"title": "Child", "dependencies": [base["id"]]}
    )
    child = created["todo"]
    blocked = await commands.dispatch("delete_todo", {"id": base["id"]})
    assert blocked["error"]["type"] == "blocked"
    assert blocked["error"]["blocking"] == [child["id"]]

    forced = await commands.dispatch("delete_todo", {"id": base["id"], "force": True})
    assert forced["deleted"]["id"] == base["id"]
    assert forced["cleanedDependents"] == [child["id"]]


@pytest.mark.asyncio
async def test_update_via_camel_case_keys(commands: TodoCommands) -> None:
    created = await commands.dispatch("create_todo", {"title": "Dated", "dueDate": "2030-01-01"})
    todo = created["todo"]
    result = await commands.dispatch(
        "update_todo", {"id": todo["id"], "status": "completed", "addTags": ["done"]}
    )
    assert result["todo"]["progress"] == 100
    assert result["todo"]["tags"] == ["done"]
    assert result["todo"]["dueDate"] == "2030-01-01"


@pytest.mark.asyncio
async def test_search_and_reports(commands: TodoCommands) -> None:
    await commands.dispatch("create_todo", {"title": "Fix login bug", "tags": ["auth"]})
    await commands.dispatch("create_todo", {"title": "Polish UI"})

    found = await commands.dispatch("search_todos", {"query": "LOGIN"})
    assert found["count"] == 1
    assert found["query"] == "LOGIN"

    report = await commands.dispatch("generate_report", {"groupBy": "tag"})
    assert {g["key"] for g in report["groups"]} == {"auth", "untagged"}

    stats = await commands.dispatch("get_stats", {})
    assert stats["total"] == 2
    assert stats["byStatus"]["pending"] == 2

    metrics = await commands.dispatch("get_metrics", {})
    assert metrics["project"] == "default-workspace"
    assert metrics["progressDistribution"] == {"0": 2}

    summary = await commands.dispatch("get_summary", {"recent": 1})
    assert len(summary["recent"]) == 1
    assert summary["completionRate"] == 0


@pytest.mark.asyncio
async def test_export_formats(commands: TodoCommands) -> None:
    await commands.dispatch("create_todo", {"title": "Export me"})
    as_csv = await commands.dispatch("export_todos", {"format": "csv"})
    assert as_csv["mediaType"] == "text/csv"
    assert as_csv["content"].startswith('"ID","Title"')

    as_md = await commands.dispatch("export_todos", {"format": "markdown"})
    assert as_md["content"].startswith("# TODOs for Project: default-workspace")

    bad = await commands.dispatch("export_todos", {"format": "xml"})
    assert bad["error"]["type"] == "invalid_params"


@pytest.mark.asyncio
async def test_project_commands(commands: TodoCommands, blobs: InMemoryBlobStore) -> None:
    info = await commands.dispatch("get_project_info", {})
    assert info["project"]["id"] == "default-workspace"
    assert info["project"]["dataLocation"] == "memory:default-workspace"

    await commands.dispatch("create_todo", {"title": "in default"})
    switched = await commands.dispatch("switch_project", {"projectId": "alpha"})
    assert switched["project"]["id"] == "alpha"
    assert switched["project"]["todoCount"] == 0

    listed = await commands.dispatch("list_projects", {})
    assert listed["active"] == "alpha"
    assert [p["id"] for p in listed["projects"]] == ["default-workspace"]
    assert listed["projects"][0]["todoCount"] == 1

    bad = await commands.dispatch("switch_project", {"projectId": "../etc"})
    assert bad["error"]["type"] == "invalid_params"
    assert commands.manager.current_project_id() == "alpha"


@pytest.mark.asyncio
async def test_commands_count_metric(commands: TodoCommands) -> None:
    await commands.dispatch("get_stats", {})
    await commands.dispatch("get_stats", {})
    assert get_metrics().value("commands", {"command": "get_stats"}) == 2


class _ContextRecorder(logging.Handler):
    def __init__(self) -> None:
        super().__init__(level=logging.DEBUG)
        self.seen: list[tuple[str | None, str | None]] = []

    def emit(self, record: logging.LogRecord) -> None:
        ctx = get_command_context() or {}
        self.seen.append((getattr(record, "event", None), ctx.get("project_id")))


@pytest.mark.asyncio
async def test_switch_records_finish_under_new_project(commands: TodoCommands) -> None:
    logger = logging.getLogger("agent_todos.commands")
    recorder = _ContextRecorder()
    previous_level = logger.level
    logger.addHandler(recorder)
    logger.setLevel(logging.DEBUG)
    try:
        await commands.dispatch("switch_project", {"projectId": "alpha"})
    finally:
        logger.removeHandler(recorder)
        logger.setLevel(previous_level)

    assert ("command_call", "default-workspace") in recorder.seen
    assert ("command_done", "alpha") in recorder.seen
