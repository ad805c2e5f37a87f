from __future__ import annotations

import os
from collections.abc import Sequence
from typing import Any, cast

import redis

from agent_todos.errors import StorageUnavailable
from agent_todos.models.todo import Todo

from .codec import encode_collection, load_with_recovery
from .interface import BlobStore, LoadResult


class RedisBlobStore(BlobStore):
    """Redis-backed blob store.

    Data structures:
    - String per project: key `{prefix}:project:{id}` holding the JSON collection
    - Set `{prefix}:projects` listing every project id ever saved
    """

    def __init__(
        self,
        *,
        url: str | None = None,
        key_prefix: str = "todo",
        client: Any | None = None,
    ) -> None:
        if client is not None:
            self._redis = client
        else:
            url = url or os.getenv("REDIS_URL", "redis://localhost:6379/0")
            self._redis = redis.Redis.from_url(url)
        self._prefix = key_prefix.rstrip(":")

    # key helpers
    def _project_key(self, project_id: str) -> str:
        return f"{self._prefix}:project:{project_id}"

    def _index_key(self) -> str:
        return f"{self._prefix}:projects"

    def location(self, project_id: str) -> str:
        return f"redis:{self._project_key(project_id)}"

    def load(self, project_id: str) -> LoadResult:
        def _read() -> bytes | str | None:
            try:
                return cast(bytes | str | None, self._redis.get(self._project_key(project_id)))
            except redis.exceptions.RedisError as exc:
                raise StorageUnavailable(project_id, str(exc)) from exc

        return load_with_recovery(project_id, _read)

    def save(self, project_id: str, todos: Sequence[Todo]) -> None:
        p = self._redis.pipeline()
        p.set(self._project_key(project_id), encode_collection(todos))
        p.sadd(self._index_key(), project_id)
        p.execute()

    def list_projects(self) -> list[str]:
        members = cast(set[bytes | str], self._redis.smembers(self._index_key()))
        return sorted(m.decode("utf-8") if isinstance(m, bytes) else m for m in members)


__all__ = ["RedisBlobStore"]
