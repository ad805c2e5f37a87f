from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

from agent_todos.commands import COMMANDS, TodoCommands, build_commands
from agent_todos.config import load_config
from agent_todos.observability import get_json_logger


def serve(host: str | None = None, port: int | None = None) -> int:
    """Run the HTTP gateway under uvicorn until interrupted."""
    import uvicorn

    from agent_todos.gateway.app import create_app

    cfg = load_config()
    bind_host = host or cfg.host
    bind_port = port or cfg.port
    app = create_app(build_commands(cfg))
    get_json_logger("agent_todos").info(
        "gateway start",
        extra={
            "event": "gateway_start",
            "project_id": cfg.default_project,
            "attributes": {"host": bind_host, "port": bind_port, "backend": cfg.backend},
        },
    )
    uvicorn.run(app, host=bind_host, port=bind_port, log_config=None)
    return 0


async def _call(
    commands: TodoCommands, name: str, params: dict[str, Any], project: str | None
) -> dict[str, Any]:
    if project:
        switched = await commands.dispatch("switch_project", {"projectId": project})
        if "error" in switched:
            return switched
    return await commands.dispatch(name, params)


def call(name: str, raw_params: str | None, project: str | None = None) -> int:
    """Run one command locally and print its JSON result.

    Returns 0 on success, 1 when the command reports an error, 2 on bad input.
    """
    if name not in COMMANDS:
        sys.stderr.write(f"error: unknown command {name!r}; choose from {', '.join(COMMANDS)}\n")
        return 2
    try:
        params: Any = json.loads(raw_params) if raw_params else {}
    except json.JSONDecodeError as exc:
        sys.stderr.write(f"error: --params is not valid JSON: {exc}\n")
        return 2
    if not isinstance(params, dict):
        sys.stderr.write("error: --params must be a JSON object\n")
        return 2
    result = asyncio.run(_call(build_commands(), name, params, project))
    sys.stdout.write(json.dumps(result, indent=2, ensure_ascii=False) + "\n")
    return 1 if "error" in result else 0


def list_projects() -> int:
    result = asyncio.run(build_commands().dispatch("list_projects"))
    projects = result.get("projects", [])
    if not projects:
        sys.stdout.write(
            f"No project workspaces found. Default project: {result.get('active')}\n"
        )
        return 0
    for p in projects:
        marker = " (ACTIVE)" if p.get("active") else ""
        sys.stdout.write(f"- {p['id']}{marker} ({p['todoCount']} TODOs)\n")
    return 0


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser("agent-todos")
    sub = parser.add_subparsers(dest="cmd")

    p_serve = sub.add_parser("serve", help="Run the HTTP gateway")
    p_serve.add_argument("--host")
    p_serve.add_argument("--port", type=int)

    p_call = sub.add_parser("call", help="Run one command locally and print the JSON result")
    p_call.add_argument("command", help=f"one of: {', '.join(COMMANDS)}")
    p_call.add_argument("--params", help="command parameters as a JSON object")
    p_call.add_argument("--project", help="switch to this project before running the command")

    sub.add_parser("projects", help="List project workspaces")

    args = parser.parse_args(argv)
    cmd = getattr(args, "cmd", None)

    if cmd == "serve":
        raise SystemExit(serve(args.host, args.port))
    if cmd == "call":
        raise SystemExit(call(args.command, args.params, args.project))
    if cmd == "projects":
        raise SystemExit(list_projects())

    parser.print_help()


if __name__ == "__main__":
    main()
