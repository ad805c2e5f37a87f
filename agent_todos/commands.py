from __future__ import annotations

import time
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from pydantic import ValidationError

from agent_todos.config import TodoConfig, load_config
from agent_todos.core import query, reports, views
from agent_todos.core.projects import ProjectManager
from agent_todos.core.store import TodoStore
from agent_todos.errors import TodoError
from agent_todos.models.commands import (
    CommandParams,
    CreateTodoParams,
    DeleteTodoParams,
    ExportParams,
    ListTodosParams,
    NoParams,
    ReportParams,
    SearchTodosParams,
    SummaryParams,
    SwitchProjectParams,
    TodoIdParams,
    UpdateTodoParams,
)
from agent_todos.models.todo import Todo
from agent_todos.observability import (
    bind_command_project,
    get_json_logger,
    get_metrics,
    use_command_context,
)
from agent_todos.storage import build_blob_store

# command name -> parameter record
COMMANDS: dict[str, type[CommandParams]] = {
    "create_todo": CreateTodoParams,
    "update_todo": UpdateTodoParams,
    "delete_todo": DeleteTodoParams,
    "get_todo": TodoIdParams,
    "list_todos": ListTodosParams,
    "search_todos": SearchTodosParams,
    "generate_report": ReportParams,
    "get_stats": NoParams,
    "get_metrics": NoParams,
    "get_summary": SummaryParams,
    "export_todos": ExportParams,
    "get_project_info": NoParams,
    "switch_project": SwitchProjectParams,
    "list_projects": NoParams,
}


def _brief(todo: Todo) -> dict[str, Any]:
    return {"id": todo.id, "title": todo.title, "status": todo.status}


def _validation_details(exc: ValidationError) -> list[dict[str, Any]]:
    return [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
        for err in exc.errors()
    ]


class TodoCommands:
    """One async method per inbound command, each returning a JSON-ready dict.

    ``execute`` runs a command under the project lock with logging and
    metrics and lets typed failures propagate; ``dispatch`` takes raw
    parameters and turns failures into ``{"error": {...}}`` payloads.
    """

    def __init__(self, manager: ProjectManager, store: TodoStore) -> None:
        self._manager = manager
        self._store = store
        self._logger = get_json_logger("agent_todos.commands")
        self._handlers: dict[str, Callable[[Any], Awaitable[dict[str, Any]]]] = {
            name: getattr(self, name) for name in COMMANDS
        }

    @property
    def manager(self) -> ProjectManager:
        return self._manager

    # ----------------------------
    # Entry points
    # ----------------------------
    async def execute(self, name: str, params: CommandParams) -> dict[str, Any]:
        handler = self._handlers.get(name)
        if handler is None:
            raise KeyError(f"unknown command: {name}")
        metrics = get_metrics()
        async with self._manager.lock:
            project_id = self._manager.current_project_id()
            with use_command_context(name, project_id):
                started = time.perf_counter()
                self._logger.info("command call", extra={"event": "command_call", "command": name})
                metrics.increment("commands", {"command": name})
                try:
                    result = await handler(params)
                except TodoError as exc:
                    self._logger.warning(
                        "command error",
                        extra={
                            "event": "command_error",
                            "command": name,
                            "metadata": {"error": str(exc)[:200], "type": exc.error_type},
                        },
                    )
                    metrics.increment("command_errors", {"command": name, "type": exc.error_type})
                    raise
                bind_command_project(self._manager.current_project_id())
                self._logger.debug(
                    "command done",
                    extra={
                        "event": "command_done",
                        "command": name,
                        "duration_ms": (time.perf_counter() - started) * 1000.0,
                    },
                )
                return result

    async def dispatch(self, name: str, params: Mapping[str, Any] | None = None) -> dict[str, Any]:
        model = COMMANDS.get(name)
        if model is None:
            raise KeyError(f"unknown command: {name}")
        try:
            parsed = model.model_validate(dict(params or {}))
        except ValidationError as exc:
            self._logger.warning(
                "invalid command params",
                extra={
                    "event": "command_error",
                    "command": name,
                    "metadata": {"error_count": exc.error_count()},
                },
            )
            get_metrics().increment("command_errors", {"command": name, "type": "invalid_params"})
            return {
                "error": {
                    "type": "invalid_params",
                    "message": f"invalid parameters for {name}",
                    "details": _validation_details(exc),
                }
            }
        try:
            return await self.execute(name, parsed)
        except TodoError as exc:
            return {"error": exc.to_dict()}

    # ----------------------------
    # Todo commands
    # ----------------------------
    async def create_todo(self, params: CreateTodoParams) -> dict[str, Any]:
        todo = await self._store.create(
            self._manager.active,
            params.title,
            description=params.description,
            priority=params.priority,
            due_date=params.due_date,
            tags=params.tags,
            dependencies=params.dependencies,
            metadata=params.metadata,
        )
        return {"todo": todo.to_json_dict()}

    async def update_todo(self, params: UpdateTodoParams) -> dict[str, Any]:
        todo = await self._store.update(self._manager.active, params.id, params)
        return {"todo": todo.to_json_dict()}

    async def delete_todo(self, params: DeleteTodoParams) -> dict[str, Any]:
        result = await self._store.delete(self._manager.active, params.id, force=params.force)
        return {"deleted": result.deleted.to_json_dict(), "cleanedDependents": result.cleaned}

    async def get_todo(self, params: TodoIdParams) -> dict[str, Any]:
        ctx = query.dependency_context(self._manager.active.snapshot(), params.id)
        return {
            "todo": ctx.todo.to_json_dict(),
            "dependencies": [_brief(t) for t in ctx.resolved_dependencies],
            "unknownDependencies": ctx.unknown_dependency_ids,
            "dependents": [_brief(t) for t in ctx.dependents],
        }

    async def list_todos(self, params: ListTodosParams) -> dict[str, Any]:
        snapshot = self._manager.active.snapshot()
        todos = query.list_todos(snapshot, params)
        return {
            "todos": [t.to_json_dict() for t in todos],
            "count": len(todos),
            "total": len(snapshot),
        }

    async def search_todos(self, params: SearchTodosParams) -> dict[str, Any]:
        todos = query.search_todos(
            self._manager.active.snapshot(), params.query, case_sensitive=params.case_sensitive
        )
        return {
            "query": params.query,
            "todos": [t.to_json_dict() for t in todos],
            "count": len(todos),
        }

    # ----------------------------
    # Reporting
    # ----------------------------
    async def generate_report(self, params: ReportParams) -> dict[str, Any]:
        report = reports.build_report(
            self._manager.active.snapshot(),
            include_completed=params.include_completed,
            group_by=params.group_by,
            timeframe=params.timeframe,
        )
        return report.to_json_dict()

    async def get_stats(self, params: NoParams) -> dict[str, Any]:
        return reports.compute_stats(self._manager.active.snapshot()).to_json_dict()

    async def get_metrics(self, params: NoParams) -> dict[str, Any]:
        handle = self._manager.active
        return reports.compute_metrics(handle.snapshot(), handle.project_id).to_json_dict()

    async def get_summary(self, params: SummaryParams) -> dict[str, Any]:
        handle = self._manager.active
        summary = reports.build_summary(handle.snapshot(), handle.project_id, recent=params.recent)
        return summary.to_json_dict()

    async def export_todos(self, params: ExportParams) -> dict[str, Any]:
        handle = self._manager.active
        return {
            "format": params.format,
            "mediaType": views.MEDIA_TYPES[params.format],
            "content": views.render(params.format, handle.project_id, handle.snapshot()),
        }

    # ----------------------------
    # Projects
    # ----------------------------
    async def get_project_info(self, params: NoParams) -> dict[str, Any]:
        return {"project": self._manager.info().model_dump(by_alias=True)}

    async def switch_project(self, params: SwitchProjectParams) -> dict[str, Any]:
        await self._manager.switch(params.project_id)
        return {"project": self._manager.info().model_dump(by_alias=True)}

    async def list_projects(self, params: NoParams) -> dict[str, Any]:
        projects = await self._manager.enumerate()
        return {
            "projects": [p.model_dump(by_alias=True) for p in projects],
            "active": self._manager.current_project_id(),
        }


def build_commands(cfg: TodoConfig | None = None) -> TodoCommands:
    cfg = cfg or load_config()
    blobs = build_blob_store(cfg)
    manager = ProjectManager.open(blobs, cfg.default_project)
    return TodoCommands(manager, TodoStore(blobs))


__all__ = ["COMMANDS", "TodoCommands", "build_commands"]
