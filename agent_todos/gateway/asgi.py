from __future__ import annotations

from agent_todos.commands import build_commands

from .app import create_app

app = create_app(build_commands())
