"""Stateless projections of a collection snapshot for export."""

from __future__ import annotations

import csv
import io
import json
from collections.abc import Sequence

from agent_todos.models.todo import Todo

CSV_HEADER = [
    "ID",
    "Title",
    "Description",
    "Status",
    "Priority",
    "Progress",
    "Due Date",
    "Tags",
    "Created",
    "Updated",
]

MEDIA_TYPES = {
    "json": "application/json",
    "csv": "text/csv",
    "markdown": "text/markdown",
}


def to_json(todos: Sequence[Todo]) -> str:
    return json.dumps([t.to_json_dict() for t in todos], indent=2, ensure_ascii=False)


def to_csv(todos: Sequence[Todo]) -> str:
    """Every text cell is quoted with embedded quotes doubled; progress stays bare."""
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for t in todos:
        data = t.to_json_dict()
        writer.writerow(
            [
                t.id,
                t.title,
                t.description or "",
                t.status,
                t.priority,
                t.progress,
                t.due_date or "",
                ";".join(t.tags),
                data["createdAt"],
                data["updatedAt"],
            ]
        )
    return buf.getvalue()


def _md_text(value: str) -> str:
    # keep user text from opening new headings or list items
    return " ".join(value.splitlines()).replace("#", "\\#")


def to_markdown(project_id: str, todos: Sequence[Todo]) -> str:
    lines = [f"# TODOs for Project: {_md_text(project_id)}", ""]
    for t in todos:
        data = t.to_json_dict()
        lines.append(f"## {_md_text(t.title)}")
        lines.append(f"- **Status**: {t.status}")
        lines.append(f"- **Priority**: {t.priority}")
        lines.append(f"- **Progress**: {t.progress}%")
        if t.description:
            lines.append(f"- **Description**: {_md_text(t.description)}")
        if t.due_date:
            lines.append(f"- **Due**: {t.due_date}")
        if t.tags:
            lines.append(f"- **Tags**: {', '.join(_md_text(tag) for tag in t.tags)}")
        lines.append(f"- **Created**: {data['createdAt']}")
        lines.append(f"- **Updated**: {data['updatedAt']}")
        lines.append("")
    return "\n".join(lines)


def render(fmt: str, project_id: str, todos: Sequence[Todo]) -> str:
    if fmt == "json":
        return to_json(todos)
    if fmt == "csv":
        return to_csv(todos)
    if fmt == "markdown":
        return to_markdown(project_id, todos)
    raise ValueError(f"unknown export format: {fmt}")


__all__ = ["CSV_HEADER", "MEDIA_TYPES", "render", "to_csv", "to_json", "to_markdown"]
