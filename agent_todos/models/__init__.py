from __future__ import annotations

from .commands import (
    CreateTodoParams,
    DeleteTodoParams,
    ExportParams,
    ListTodosParams,
    NoParams,
    ReportParams,
    SearchTodosParams,
    SummaryParams,
    SwitchProjectParams,
    TodoChanges,
    TodoIdParams,
    UpdateTodoParams,
)
from .project import ProjectInfo, ProjectSummary, validate_project_id
from .todo import PRIORITIES, PRIORITY_RANK, STATUSES, Priority, Status, Todo, parse_due

__all__ = [
    "PRIORITIES",
    "PRIORITY_RANK",
    "STATUSES",
    "CreateTodoParams",
    "DeleteTodoParams",
    "ExportParams",
    "ListTodosParams",
    "NoParams",
    "Priority",
    "ProjectInfo",
    "ProjectSummary",
    "ReportParams",
    "SearchTodosParams",
    "Status",
    "SummaryParams",
    "SwitchProjectParams",
    "Todo",
    "TodoChanges",
    "TodoIdParams",
    "UpdateTodoParams",
    "parse_due",
    "validate_project_id",
]
