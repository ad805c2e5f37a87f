from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .project import validate_project_id
from .todo import Priority, Status, parse_due

SortField = Literal["created", "updated", "priority", "dueDate", "progress"]
SortOrder = Literal["asc", "desc"]
GroupBy = Literal["status", "priority", "tag"]
Timeframe = Literal["all", "today", "week", "month"]
ExportFormat = Literal["json", "csv", "markdown"]


class CommandParams(BaseModel):
    """Base for the typed parameter record of every inbound command.

    Accepts camelCase keys (``dueDate``) as well as field names (``due_date``)
    and rejects unknown keys.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


def _check_title(value: str | None) -> str | None:
    if value is None:
        return None
    title = value.strip()
    if not title:
        raise ValueError("title must be non-empty")
    return title


def _check_due(value: str | None) -> str | None:
    if value is None:
        return None
    if parse_due(value) is None:
        raise ValueError("dueDate must be an ISO date (YYYY-MM-DD or YYYY-MM-DDTHH:mm:ss)")
    return value.strip()


class CreateTodoParams(CommandParams):
    title: str
    description: str | None = None
    priority: Priority = "medium"
    due_date: str | None = None
    tags: list[str] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    check_title = field_validator("title")(_check_title)
    check_due = field_validator("due_date")(_check_due)


class TodoChanges(CommandParams):
    """Partial update of a todo.

    Only fields present in the input apply (see ``model_fields_set``). An
    explicit null clears ``description`` or ``dueDate``; for the other scalar
    fields null means "leave unchanged".
    """

    title: str | None = None
    description: str | None = None
    status: Status | None = None
    priority: Priority | None = None
    progress: int | None = None
    due_date: str | None = None
    tags: list[str] | None = None
    add_tags: list[str] | None = None
    remove_tags: list[str] | None = None
    dependencies: list[str] | None = None
    add_dependencies: list[str] | None = None
    remove_dependencies: list[str] | None = None
    metadata: dict[str, Any] | None = None

    check_title = field_validator("title")(_check_title)
    check_due = field_validator("due_date")(_check_due)

    def provided(self, name: str) -> bool:
        return name in self.model_fields_set

    def explicit(self, name: str) -> bool:
        return self.provided(name) and getattr(self, name) is not None


class UpdateTodoParams(TodoChanges):
    id: str


class TodoIdParams(CommandParams):
    id: str


class DeleteTodoParams(CommandParams):
    id: str
    force: bool = False


class ListTodosParams(CommandParams):
    status: Status | None = None
    priority: Priority | None = None
    tag: str | None = None
    sort_by: SortField = "updated"
    sort_order: SortOrder = "desc"
    limit: int | None = Field(default=None, ge=0)


class SearchTodosParams(CommandParams):
    query: str = Field(min_length=1)
    case_sensitive: bool = False


class ReportParams(CommandParams):
    include_completed: bool = True
    group_by: GroupBy = "status"
    timeframe: Timeframe = "all"


class SwitchProjectParams(CommandParams):
    project_id: str

    check_project = field_validator("project_id")(validate_project_id)


class ExportParams(CommandParams):
    format: ExportFormat = "json"


class SummaryParams(CommandParams):
    recent: int = Field(default=5, ge=0)


class NoParams(CommandParams):
    pass


__all__ = [
    "CommandParams",
    "CreateTodoParams",
    "DeleteTodoParams",
    "ExportFormat",
    "ExportParams",
    "GroupBy",
    "ListTodosParams",
    "NoParams",
    "ReportParams",
    "SearchTodosParams",
    "SortField",
    "SortOrder",
    "SummaryParams",
    "SwitchProjectParams",
    "Timeframe",
    "TodoChanges",
    "TodoIdParams",
    "UpdateTodoParams",
]
