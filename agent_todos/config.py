from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

DEFAULT_PROJECT_ID = "default-workspace"
BACKENDS = ("file", "redis")


@dataclass(slots=True)
class TodoConfig:
    home: str
    default_project: str
    backend: str
    redis_url: str
    key_prefix: str
    host: str
    port: int


def _default_home(e: dict[str, Any]) -> str:
    base = e.get("HOME") or os.getcwd()
    return os.path.join(base, ".agent-todos")


def _read_port(raw: str | None, default: int = 8000) -> int:
    value = (raw or "").strip()
    try:
        port = int(value) if value else default
    except ValueError:
        port = default
    return port if 0 < port < 65536 else default


def load_config(env: dict[str, str] | None = None) -> TodoConfig:
    e: dict[str, Any] = dict(os.environ)
    if env:
        e.update(env)
    backend = (e.get("AGENT_TODOS_BACKEND") or "file").strip().lower()
    return TodoConfig(
        home=(e.get("AGENT_TODOS_HOME") or "").strip() or _default_home(e),
        default_project=(e.get("AGENT_TODOS_DEFAULT_PROJECT") or "").strip() or DEFAULT_PROJECT_ID,
        backend=backend,
        redis_url=e.get("REDIS_URL") or "redis://localhost:6379/0",
        key_prefix=e.get("TODO_STORE_PREFIX") or "todo",
        host=e.get("GATEWAY_HOST") or "127.0.0.1",
        port=_read_port(e.get("GATEWAY_PORT")),
    )


__all__ = ["BACKENDS", "DEFAULT_PROJECT_ID", "TodoConfig", "load_config"]
