from __future__ import annotations

import datetime as _dt
import secrets
import string
import time
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Status = Literal["pending", "in-progress", "completed", "blocked"]
Priority = Literal["low", "medium", "high", "urgent"]

STATUSES: tuple[Status, ...] = ("pending", "in-progress", "completed", "blocked")
PRIORITIES: tuple[Priority, ...] = ("low", "medium", "high", "urgent")
PRIORITY_RANK: dict[str, int] = {"urgent": 4, "high": 3, "medium": 2, "low": 1}

_ID_ALPHABET = string.ascii_lowercase + string.digits


def utc_now() -> _dt.datetime:
    return _dt.datetime.now(_dt.UTC)


def new_todo_id() -> str:
    """Return an id shaped like ``todo_<epoch ms>_<9 base36 chars>``."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"todo_{int(time.time() * 1000)}_{suffix}"


def parse_due(value: str | None) -> _dt.datetime | None:
    """Interpret a stored due date as an aware datetime.

    Date-only values are UTC midnight, offset-less datetimes are local time.
    Returns None for missing or unparseable values.
    """
    if not value:
        return None
    raw = value.strip()
    try:
        if len(raw) == 10:
            day = _dt.date.fromisoformat(raw)
            return _dt.datetime(day.year, day.month, day.day, tzinfo=_dt.UTC)
        parsed = _dt.datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.astimezone()
    return parsed


def unique(items: list[str] | tuple[str, ...]) -> list[str]:
    return list(dict.fromkeys(items))


class Todo(BaseModel):
    """One task record of a project collection.

    Serialized with camelCase keys (``createdAt``, ``dueDate``) so collections
    written by earlier releases load unchanged.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=new_todo_id)
    title: str
    description: str | None = None
    status: Status = "pending"
    priority: Priority = "medium"
    progress: int = 0
    created_at: _dt.datetime = Field(default_factory=utc_now)
    updated_at: _dt.datetime = Field(default_factory=utc_now)
    due_date: str | None = None
    tags: list[str] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("created_at", "updated_at")
    @classmethod
    def _assume_utc(cls, value: _dt.datetime) -> _dt.datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=_dt.UTC)
        return value

    @property
    def due_at(self) -> _dt.datetime | None:
        return parse_due(self.due_date)

    def is_overdue(self, now: _dt.datetime) -> bool:
        due = self.due_at
        return due is not None and due < now and self.status != "completed"

    def to_json_dict(self) -> dict[str, Any]:
        data = self.model_dump(mode="json", by_alias=True)
        # optional fields are omitted rather than written as null
        for key in ("description", "dueDate"):
            if data.get(key) is None:
                data.pop(key, None)
        return data


__all__ = [
    "PRIORITIES",
    "PRIORITY_RANK",
    "STATUSES",
    "Priority",
    "Status",
    "Todo",
    "new_todo_id",
    "parse_due",
    "unique",
    "utc_now",
]
