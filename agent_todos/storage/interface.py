from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol

from agent_todos.models.todo import Todo


@dataclass(slots=True)
class LoadResult:
    """Collection read for one project.

    ``existed`` is False for a project with no stored blob yet, and True when a
    blob was found, including one that could not be decoded (``todos`` is then
    empty).
    """

    todos: list[Todo] = field(default_factory=list)
    existed: bool = False


class BlobStore(Protocol):
    """Persistence adapter mapping a project id to one JSON collection blob.

    Keep this tiny so backends can be swapped without touching the store or
    project manager.
    """

    def load(self, project_id: str) -> LoadResult:
        """Read a project's collection. Never raises for missing or corrupt data."""

    def save(self, project_id: str, todos: Sequence[Todo]) -> None:
        """Overwrite a project's whole collection."""

    def list_projects(self) -> list[str]:
        """Return every project id present in the namespace, sorted."""

    def location(self, project_id: str) -> str:
        """Describe where a project's blob lives (path or key)."""


__all__ = ["BlobStore", "LoadResult"]
