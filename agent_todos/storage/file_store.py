from __future__ import annotations

import os
import tempfile
from collections.abc import Sequence
from pathlib import Path

from agent_todos.errors import StorageUnavailable
from agent_todos.models.todo import Todo
from agent_todos.observability import get_json_logger

from .codec import encode_collection, load_with_recovery
from .interface import BlobStore, LoadResult

TODOS_FILENAME = "todos.json"


class FileBlobStore(BlobStore):
    """One directory per project under ``base_dir``, each holding ``todos.json``.

    Saves write a temp file next to the target and ``os.replace`` it, so a
    reader sees either the old or the new collection.
    """

    def __init__(self, base_dir: str | os.PathLike[str]) -> None:
        self._base = Path(base_dir).expanduser()
        self._logger = get_json_logger("agent_todos.storage")

    @property
    def base_dir(self) -> Path:
        return self._base

    def project_dir(self, project_id: str) -> Path:
        return self._base / project_id

    def todos_file(self, project_id: str) -> Path:
        return self.project_dir(project_id) / TODOS_FILENAME

    def location(self, project_id: str) -> str:
        return str(self.project_dir(project_id))

    def load(self, project_id: str) -> LoadResult:
        path = self.todos_file(project_id)

        def _read() -> str | None:
            if not path.exists():
                return None
            try:
                return path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                raise StorageUnavailable(project_id, str(exc)) from exc

        return load_with_recovery(project_id, _read)

    def save(self, project_id: str, todos: Sequence[Todo]) -> None:
        directory = self.project_dir(project_id)
        directory.mkdir(parents=True, exist_ok=True)
        payload = encode_collection(todos)
        fd, tmp_name = tempfile.mkstemp(prefix=".todos-", suffix=".tmp", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.todos_file(project_id))
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
        self._logger.debug(
            "collection saved",
            extra={
                "event": "storage_saved",
                "project_id": project_id,
                "metadata": {"todos": len(todos)},
            },
        )

    def list_projects(self) -> list[str]:
        if not self._base.is_dir():
            return []
        return sorted(p.name for p in self._base.iterdir() if p.is_dir())


__all__ = ["FileBlobStore", "TODOS_FILENAME"]
