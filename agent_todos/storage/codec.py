from __future__ import annotations

import json
from collections.abc import Callable, Sequence

from pydantic import ValidationError

from agent_todos.errors import StorageUnavailable
from agent_todos.models.todo import Todo
from agent_todos.observability import get_json_logger, get_metrics

from .interface import LoadResult


def encode_collection(todos: Sequence[Todo]) -> str:
    return json.dumps([t.to_json_dict() for t in todos], indent=2, ensure_ascii=False)


def decode_collection(project_id: str, raw: str | bytes) -> list[Todo]:
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise StorageUnavailable(project_id, f"invalid UTF-8: {exc}") from exc
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise StorageUnavailable(project_id, f"invalid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise StorageUnavailable(project_id, "collection must be a JSON array")
    try:
        return [Todo.model_validate(item) for item in data]
    except ValidationError as exc:
        reason = f"invalid todo record: {exc.error_count()} error(s)"
        raise StorageUnavailable(project_id, reason) from exc


def load_with_recovery(project_id: str, read: Callable[[], str | bytes | None]) -> LoadResult:
    """Run a backend read and decode it, turning failures into an empty collection.

    ``read`` returns None when the project has no blob and raises
    StorageUnavailable when the blob cannot be read.
    """
    try:
        raw = read()
        if raw is None:
            return LoadResult(todos=[], existed=False)
        return LoadResult(todos=decode_collection(project_id, raw), existed=True)
    except StorageUnavailable as exc:
        get_json_logger("agent_todos.storage").warning(
            "storage load failed; using empty collection",
            extra={
                "event": "storage_load_failed",
                "project_id": project_id,
                "metadata": {"reason": exc.reason[:200]},
            },
        )
        get_metrics().increment("storage_load_failures", {"project_id": project_id})
        return LoadResult(todos=[], existed=True)


__all__ = ["decode_collection", "encode_collection", "load_with_recovery"]
