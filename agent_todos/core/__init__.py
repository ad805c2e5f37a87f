from __future__ import annotations

from .projects import ProjectManager
from .query import (
    DependencyContext,
    dependency_context,
    filter_todos,
    limit_todos,
    list_todos,
    search_todos,
    sort_todos,
)
from .reports import build_report, build_summary, compute_metrics, compute_stats
from .store import DeleteResult, ProjectHandle, TodoStore

__all__ = [
    "DeleteResult",
    "DependencyContext",
    "ProjectHandle",
    "ProjectManager",
    "TodoStore",
    "build_report",
    "build_summary",
    "compute_metrics",
    "compute_stats",
    "dependency_context",
    "filter_todos",
    "limit_todos",
    "list_todos",
    "search_todos",
    "sort_todos",
]
