from __future__ import annotations

import json
import logging
import uuid
from typing import Any

import pytest

from agent_todos.observability import (
    ConsoleLogFormatter,
    Metrics,
    bind_command_project,
    get_command_context,
    get_json_logger,
    use_command_context,
)


def _parse_json_lines(output: str) -> list[dict[str, Any]]:
    return [json.loads(line) for line in output.strip().splitlines() if line.strip()]


def _fresh_name() -> str:
    return f"obs-test-{uuid.uuid4().hex[:8]}"


def test_json_logger_redacts_and_formats(capsys: Any, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_FORMAT", "json")
    logger = get_json_logger(_fresh_name())
    logger.setLevel(logging.INFO)
    logger.info(
        "hello",
        extra={
            "event": "todo_created",
            "todo_id": "todo_1",
            "attributes": {"token": "XYZ", "password": "p", "safe": "ok"},
        },
    )

    lines = _parse_json_lines(capsys.readouterr().out)
    assert len(lines) == 1
    rec = lines[0]
    assert rec["msg"] == "hello"
    assert rec["level"] == "info"
    assert rec["service"]
    assert rec["event"] == "todo_created"
    assert rec["todo_id"] == "todo_1"
    assert rec["attributes"] == {"token": "[REDACTED]", "password": "[REDACTED]", "safe": "ok"}


def test_command_context_enriches_records(capsys: Any, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_FORMAT", "json")
    logger = get_json_logger(_fresh_name())
    logger.setLevel(logging.INFO)

    assert get_command_context() is None
    with use_command_context("list_todos", "alpha"):
        assert get_command_context() == {"command": "list_todos", "project_id": "alpha"}
        logger.info("inside")
    assert get_command_context() is None
    logger.info("outside")

    inside, outside = _parse_json_lines(capsys.readouterr().out)
    assert inside["command"] == "list_todos"
    assert inside["project_id"] == "alpha"
    assert "command" not in outside


def test_module_level_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    name = _fresh_name()
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    monkeypatch.setenv("LOG_MODULE_LEVELS", f"{name}=DEBUG")
    assert get_json_logger(name).level == logging.DEBUG
    assert get_json_logger(_fresh_name()).level == logging.WARNING


def test_console_formatter_is_single_line() -> None:
    record = logging.LogRecord("agent_todos.store", logging.INFO, __file__, 1, "saved", None, None)
    record.event = "todo_updated"
    record.todo_id = "todo_9"
    line = ConsoleLogFormatter().format(record)
    assert "\n" not in line
    assert "INFO agent_todos.store todo_updated" in line
    assert "todo=todo_9" in line
    assert line.endswith("- saved")


def test_metrics_counters_and_snapshot() -> None:
    m = Metrics()
    m.increment("commands", {"command": "get_stats"})
    m.increment("commands", {"command": "get_stats"}, amount=2)
    m.increment("commands", {"command": "list_todos"})
    assert m.value("commands", {"command": "get_stats"}) == 3
    assert m.value("commands", {"command": "missing"}) == 0
    snap = m.snapshot()
    assert {"name": "commands", "labels": {"command": "list_todos"}, "value": 1} in snap


def test_bind_command_project_retargets_active_context() -> None:
    bind_command_project("ignored")
    assert get_command_context() is None

    with use_command_context("switch_project", "default-workspace"):
        bind_command_project("alpha")
        assert get_command_context() == {"command": "switch_project", "project_id": "alpha"}
    assert get_command_context() is None
