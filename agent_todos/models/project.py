from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

MAX_PROJECT_ID_LENGTH = 128


def validate_project_id(project_id: str) -> str:
    """Return the stripped id, or raise ValueError when it cannot name a workspace.

    Ids double as a single directory name in the file backend.
    """
    if not isinstance(project_id, str):
        raise ValueError("projectId must be a string")
    pid = project_id.strip()
    if not pid:
        raise ValueError("projectId must be non-empty")
    if len(pid) > MAX_PROJECT_ID_LENGTH:
        raise ValueError(f"projectId must be at most {MAX_PROJECT_ID_LENGTH} characters")
    if pid in {".", ".."} or "/" in pid or "\\" in pid or "\x00" in pid:
        raise ValueError(f"projectId {pid!r} is not a valid workspace name")
    return pid


class ProjectSummary(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    todo_count: int
    active: bool = False


class ProjectInfo(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    data_location: str
    todo_count: int
    existed: bool


__all__ = ["MAX_PROJECT_ID_LENGTH", "ProjectInfo", "ProjectSummary", "validate_project_id"]
