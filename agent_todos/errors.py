from __future__ import annotations

from collections.abc import Sequence
from typing import Any


class TodoError(Exception):
    """Base class for failures surfaced by todo commands."""

    error_type = "todo_error"

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.error_type, "message": str(self)}


class NotFoundError(TodoError):
    error_type = "not_found"

    def __init__(self, todo_id: str) -> None:
        super().__init__(f"TODO with ID {todo_id} not found")
        self.todo_id = todo_id

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "id": self.todo_id}


class BlockedError(TodoError):
    """Delete refused because other todos still list the id as a dependency."""

    error_type = "blocked"

    def __init__(self, todo_id: str, title: str, blocking: Sequence[tuple[str, str]]) -> None:
        names = ", ".join(f"{t} ({i})" for i, t in blocking)
        super().__init__(
            f'Cannot delete TODO "{title}" because other TODOs depend on it: {names}. '
            "Use force=true to delete anyway."
        )
        self.todo_id = todo_id
        self.blocking = list(blocking)

    @property
    def blocking_ids(self) -> list[str]:
        return [i for i, _ in self.blocking]

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "id": self.todo_id, "blocking": self.blocking_ids}


class StorageUnavailable(TodoError):
    """A project blob could not be read or decoded.

    Persistence adapters recover from this by loading an empty collection.
    """

    error_type = "storage_unavailable"

    def __init__(self, project_id: str, reason: str) -> None:
        super().__init__(f"storage for project {project_id!r} unavailable: {reason}")
        self.project_id = project_id
        self.reason = reason


__all__ = ["BlockedError", "NotFoundError", "StorageUnavailable", "TodoError"]
