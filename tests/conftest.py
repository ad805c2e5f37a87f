from __future__ import annotations

from pathlib import Path

import pytest

from agent_todos.commands import TodoCommands
from agent_todos.core.projects import ProjectManager
from agent_todos.core.store import ProjectHandle, TodoStore
from agent_todos.observability import reset_metrics
from agent_todos.storage.file_store import FileBlobStore
from tests.helpers.blobs import InMemoryBlobStore


@pytest.fixture(autouse=True)
def _fresh_metrics() -> None:
    reset_metrics()


@pytest.fixture()
def blobs() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture()
def store(blobs: InMemoryBlobStore) -> TodoStore:
    return TodoStore(blobs)


@pytest.fixture()
def handle() -> ProjectHandle:
    return ProjectHandle(project_id="test-project")


@pytest.fixture()
def manager(blobs: InMemoryBlobStore) -> ProjectManager:
    return ProjectManager.open(blobs, "default-workspace")


@pytest.fixture()
def commands(manager: ProjectManager, blobs: InMemoryBlobStore) -> TodoCommands:
    return TodoCommands(manager, TodoStore(blobs))


@pytest.fixture()
def file_blobs(tmp_path: Path) -> FileBlobStore:
    return FileBlobStore(tmp_path / ".agent-todos")


@pytest.fixture()
def todos_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    home = tmp_path / "todos-home"
    monkeypatch.setenv("AGENT_TODOS_HOME", str(home))
    monkeypatch.setenv("AGENT_TODOS_BACKEND", "file")
    monkeypatch.delenv("AGENT_TODOS_DEFAULT_PROJECT", raising=False)
    return home
