from __future__ import annotations

from typing import Any, Literal

from fastapi import FastAPI, Query, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from agent_todos.commands import TodoCommands
from agent_todos.core.views import MEDIA_TYPES
from agent_todos.errors import BlockedError, NotFoundError, TodoError
from agent_todos.models.commands import (
    CreateTodoParams,
    DeleteTodoParams,
    ExportParams,
    GroupBy,
    ListTodosParams,
    NoParams,
    ReportParams,
    SearchTodosParams,
    SortField,
    SortOrder,
    SummaryParams,
    SwitchProjectParams,
    Timeframe,
    TodoChanges,
    TodoIdParams,
    UpdateTodoParams,
)
from agent_todos.models.todo import Priority, Status
from agent_todos.observability import configure_uvicorn_logging, get_json_logger, get_metrics

_STATUS_BY_ERROR: dict[type[TodoError], int] = {NotFoundError: 404, BlockedError: 409}


def create_app(commands: TodoCommands) -> FastAPI:
    app = FastAPI(title="Agent TODO Manager")
    configure_uvicorn_logging()
    logger = get_json_logger("agent_todos.gateway")
    metrics = get_metrics()

    @app.exception_handler(TodoError)
    async def _todo_error(request: Request, exc: TodoError) -> JSONResponse:
        status = _STATUS_BY_ERROR.get(type(exc), 400)
        metrics.increment("gateway_errors", {"path": request.url.path, "type": exc.error_type})
        return JSONResponse(status_code=status, content={"error": exc.to_dict()})

    @app.exception_handler(ValidationError)
    async def _invalid_params(request: Request, exc: ValidationError) -> JSONResponse:
        # parameter records built inside handlers (path + body merges)
        logger.warning(
            "gateway invalid params",
            extra={"event": "gateway_error", "path": request.url.path},
        )
        return JSONResponse(
            status_code=422,
            content={"detail": [{"loc": list(e["loc"]), "msg": e["msg"]} for e in exc.errors()]},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    # ----------------------------
    # Todos
    # ----------------------------
    @app.post("/todos", status_code=201)
    async def create_todo(params: CreateTodoParams) -> dict[str, Any]:
        return await commands.execute("create_todo", params)

    @app.get("/todos")
    async def list_todos(
        status: Status | None = None,
        priority: Priority | None = None,
        tag: str | None = None,
        sort_by: SortField = Query(default="updated", alias="sortBy"),
        sort_order: SortOrder = Query(default="desc", alias="sortOrder"),
        limit: int | None = Query(default=None, ge=0),
    ) -> dict[str, Any]:
        params = ListTodosParams(
            status=status,
            priority=priority,
            tag=tag,
            sort_by=sort_by,
            sort_order=sort_order,
            limit=limit,
        )
        return await commands.execute("list_todos", params)

    @app.get("/todos/{todo_id}")
    async def get_todo(todo_id: str) -> dict[str, Any]:
        return await commands.execute("get_todo", TodoIdParams(id=todo_id))

    @app.patch("/todos/{todo_id}")
    async def update_todo(todo_id: str, changes: TodoChanges) -> dict[str, Any]:
        fields = changes.model_dump(exclude_unset=True)
        params = UpdateTodoParams.model_validate({**fields, "id": todo_id})
        return await commands.execute("update_todo", params)

    @app.delete("/todos/{todo_id}")
    async def delete_todo(todo_id: str, force: bool = False) -> dict[str, Any]:
        return await commands.execute("delete_todo", DeleteTodoParams(id=todo_id, force=force))

    @app.get("/search")
    async def search_todos(
        query: str = Query(min_length=1),
        case_sensitive: bool = Query(default=False, alias="caseSensitive"),
    ) -> dict[str, Any]:
        params = SearchTodosParams(query=query, case_sensitive=case_sensitive)
        return await commands.execute("search_todos", params)

    # ----------------------------
    # Reporting
    # ----------------------------
    @app.get("/report")
    async def generate_report(
        include_completed: bool = Query(default=True, alias="includeCompleted"),
        group_by: GroupBy = Query(default="status", alias="groupBy"),
        timeframe: Timeframe = "all",
    ) -> dict[str, Any]:
        params = ReportParams(
            include_completed=include_completed, group_by=group_by, timeframe=timeframe
        )
        return await commands.execute("generate_report", params)

    @app.get("/stats")
    async def get_stats() -> dict[str, Any]:
        return await commands.execute("get_stats", NoParams())

    @app.get("/metrics")
    async def get_project_metrics() -> dict[str, Any]:
        return await commands.execute("get_metrics", NoParams())

    @app.get("/summary")
    async def get_summary(recent: int = Query(default=5, ge=0)) -> dict[str, Any]:
        return await commands.execute("get_summary", SummaryParams(recent=recent))

    @app.get("/export/{fmt}")
    async def export_todos(fmt: Literal["json", "csv", "markdown"]) -> Response:
        result = await commands.execute("export_todos", ExportParams(format=fmt))
        return Response(content=result["content"], media_type=MEDIA_TYPES[fmt])

    # ----------------------------
    # Projects
    # ----------------------------
    @app.get("/project")
    async def get_project_info() -> dict[str, Any]:
        return await commands.execute("get_project_info", NoParams())

    @app.get("/projects")
    async def list_projects() -> dict[str, Any]:
        return await commands.execute("list_projects", NoParams())

    @app.post("/projects/switch")
    async def switch_project(params: SwitchProjectParams) -> dict[str, Any]:
        result = await commands.execute("switch_project", params)
        logger.info(
            "gateway project switch",
            extra={"event": "gateway_switch", "project_id": params.project_id},
        )
        return result

    return app


__all__ = ["create_app"]
