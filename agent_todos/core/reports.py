from __future__ import annotations

import calendar
import datetime as _dt
import math
from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from agent_todos.models.commands import GroupBy, Timeframe
from agent_todos.models.todo import PRIORITIES, STATUSES, Todo, utc_now

from .query import count_completed_dependencies, created_or_updated_since, sort_todos

UNTAGGED = "untagged"
DUE_SOON_DAYS = 7


class ResultModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class TodoStats(ResultModel):
    total: int
    by_status: dict[str, int]
    by_priority: dict[str, int]
    average_progress: int
    overdue: int


class ReportGroup(ResultModel):
    key: str
    count: int
    average_progress: int
    todos: list[Todo] = Field(default_factory=list)


class OverdueItem(ResultModel):
    todo: Todo
    days_overdue: int


class BlockedItem(ResultModel):
    todo: Todo
    completed_dependencies: int
    total_dependencies: int


class ProgressReport(ResultModel):
    generated_at: _dt.datetime
    timeframe: Timeframe
    group_by: GroupBy
    include_completed: bool
    stats: TodoStats
    groups: list[ReportGroup] = Field(default_factory=list)
    overdue: list[OverdueItem] = Field(default_factory=list)
    blocked: list[BlockedItem] = Field(default_factory=list)


class ProjectMetrics(ResultModel):
    project: str
    timestamp: _dt.datetime
    totals: dict[str, int]
    average_progress: int
    progress_distribution: dict[str, int]
    priorities: dict[str, int]
    overdue: int
    due_soon: int
    completion_rate: int


class ProjectSummaryView(ResultModel):
    project: str
    stats: TodoStats
    completion_rate: int
    recent: list[Todo] = Field(default_factory=list)
    high_priority: list[Todo] = Field(default_factory=list)
    blocked: list[Todo] = Field(default_factory=list)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def average_progress(todos: Sequence[Todo]) -> int:
    if not todos:
        return 0
    return round_half_up(sum(t.progress for t in todos) / len(todos))


def completion_rate(todos: Sequence[Todo]) -> int:
    if not todos:
        return 0
    done = sum(1 for t in todos if t.status == "completed")
    return round_half_up(done / len(todos) * 100)


def compute_stats(todos: Sequence[Todo], now: _dt.datetime | None = None) -> TodoStats:
    now = now or utc_now()
    return TodoStats(
        total=len(todos),
        by_status={s: sum(1 for t in todos if t.status == s) for s in STATUSES},
        by_priority={p: sum(1 for t in todos if t.priority == p) for p in reversed(PRIORITIES)},
        average_progress=average_progress(todos),
        overdue=sum(1 for t in todos if t.is_overdue(now)),
    )


def _one_month_before(moment: _dt.datetime) -> _dt.datetime:
    year, month = (moment.year, moment.month - 1) if moment.month > 1 else (moment.year - 1, 12)
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def timeframe_cutoff(timeframe: Timeframe, now: _dt.datetime) -> _dt.datetime | None:
    """Start of a report window; None for ``all``.

    ``today`` starts at local midnight, ``week`` is a rolling 7 days and
    ``month`` steps back one calendar month.
    """
    if timeframe == "all":
        return None
    local_now = now.astimezone()
    if timeframe == "today":
        return local_now.replace(hour=0, minute=0, second=0, microsecond=0)
    if timeframe == "week":
        return now - _dt.timedelta(days=7)
    if timeframe == "month":
        return _one_month_before(local_now)
    raise ValueError(f"unknown timeframe: {timeframe}")


def _group_key(todo: Todo, group_by: GroupBy) -> str:
    if group_by == "priority":
        return todo.priority
    if group_by == "tag":
        # only the first tag counts
        return todo.tags[0] if todo.tags else UNTAGGED
    return todo.status


def group_todos(todos: Sequence[Todo], group_by: GroupBy) -> list[ReportGroup]:
    buckets: dict[str, list[Todo]] = {}
    for todo in todos:
        buckets.setdefault(_group_key(todo, group_by), []).append(todo)
    return [
        ReportGroup(
            key=key, count=len(items), average_progress=average_progress(items), todos=items
        )
        for key, items in buckets.items()
    ]


def days_overdue(todo: Todo, now: _dt.datetime) -> int:
    due = todo.due_at
    if due is None:
        return 0
    return math.floor((now - due).total_seconds() / 86400)


def build_report(
    todos: Sequence[Todo],
    *,
    include_completed: bool = True,
    group_by: GroupBy = "status",
    timeframe: Timeframe = "all",
    now: _dt.datetime | None = None,
) -> ProgressReport:
    now = now or utc_now()
    selected = list(todos)
    cutoff = timeframe_cutoff(timeframe, now)
    if cutoff is not None:
        selected = created_or_updated_since(selected, cutoff)
    if not include_completed:
        selected = [t for t in selected if t.status != "completed"]

    overdue = [
        OverdueItem(todo=t, days_overdue=days_overdue(t, now))
        for t in selected
        if t.is_overdue(now)
    ]
    # dependencies resolve against the whole collection, not just the window
    blocked = [
        BlockedItem(
            todo=t,
            completed_dependencies=count_completed_dependencies(todos, t),
            total_dependencies=len(t.dependencies),
        )
        for t in selected
        if t.status == "blocked"
    ]
    return ProgressReport(
        generated_at=now,
        timeframe=timeframe,
        group_by=group_by,
        include_completed=include_completed,
        stats=compute_stats(selected, now),
        groups=group_todos(selected, group_by),
        overdue=overdue,
        blocked=blocked,
    )


def compute_metrics(
    todos: Sequence[Todo], project_id: str, now: _dt.datetime | None = None
) -> ProjectMetrics:
    now = now or utc_now()
    stats = compute_stats(todos, now)
    distribution: dict[str, int] = {}
    for todo in todos:
        bucket = str(todo.progress // 10 * 10)
        distribution[bucket] = distribution.get(bucket, 0) + 1

    horizon = now + _dt.timedelta(days=DUE_SOON_DAYS)
    due_soon = 0
    for todo in todos:
        due = todo.due_at
        if due is not None and todo.status != "completed" and now <= due <= horizon:
            due_soon += 1

    return ProjectMetrics(
        project=project_id,
        timestamp=now,
        totals={"todos": stats.total, **stats.by_status},
        average_progress=stats.average_progress,
        progress_distribution=dict(sorted(distribution.items(), key=lambda kv: int(kv[0]))),
        priorities=stats.by_priority,
        overdue=stats.overdue,
        due_soon=due_soon,
        completion_rate=completion_rate(todos),
    )


def build_summary(
    todos: Sequence[Todo], project_id: str, *, recent: int = 5, now: _dt.datetime | None = None
) -> ProjectSummaryView:
    return ProjectSummaryView(
        project=project_id,
        stats=compute_stats(todos, now),
        completion_rate=completion_rate(todos),
        recent=sort_todos(todos, "updated", "desc")[:recent],
        high_priority=[t for t in todos if t.priority in ("urgent", "high")],
        blocked=[t for t in todos if t.status == "blocked"],
    )


__all__ = [
    "BlockedItem",
    "OverdueItem",
    "ProgressReport",
    "ProjectMetrics",
    "ProjectSummaryView",
    "ReportGroup",
    "TodoStats",
    "average_progress",
    "build_report",
    "build_summary",
    "compute_metrics",
    "compute_stats",
    "days_overdue",
    "group_todos",
    "timeframe_cutoff",
]
