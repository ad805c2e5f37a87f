from __future__ import annotations

from agent_todos.config import BACKENDS, TodoConfig
from agent_todos.observability import get_json_logger

from .codec import decode_collection, encode_collection
from .file_store import TODOS_FILENAME, FileBlobStore
from .interface import BlobStore, LoadResult
from .redis_store import RedisBlobStore


def build_blob_store(cfg: TodoConfig) -> BlobStore:
    """Construct the persistence adapter selected by ``cfg.backend``.

    Unknown backend names fall back to the file backend.
    """
    if cfg.backend not in BACKENDS:
        get_json_logger("agent_todos.storage").warning(
            "unknown storage backend, using file",
            extra={"event": "config_warn", "metadata": {"backend": cfg.backend}},
        )
    elif cfg.backend == "redis":
        return RedisBlobStore(url=cfg.redis_url, key_prefix=cfg.key_prefix)
    return FileBlobStore(cfg.home)


__all__ = [
    "TODOS_FILENAME",
    "BlobStore",
    "FileBlobStore",
    "LoadResult",
    "RedisBlobStore",
    "build_blob_store",
    "decode_collection",
    "encode_collection",
]
