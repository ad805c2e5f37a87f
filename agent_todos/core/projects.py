from __future__ import annotations

import asyncio

from agent_todos.models.project import ProjectInfo, ProjectSummary, validate_project_id
from agent_todos.observability import get_json_logger, get_metrics
from agent_todos.storage.interface import BlobStore

from .store import ProjectHandle


class ProjectManager:
    """Tracks the active project and swaps collections on switch.

    Exactly one ``ProjectHandle`` is active. ``switch`` always persists the
    outgoing collection before loading the next one; a project with no stored
    blob starts empty and is written on its first persist.

    ``lock`` serialises commands so each one, including its write, completes
    before the next starts.
    """

    def __init__(self, blobs: BlobStore, handle: ProjectHandle) -> None:
        self._blobs = blobs
        self._active = handle
        self._logger = get_json_logger("agent_todos.projects")
        self.lock = asyncio.Lock()

    @classmethod
    def open(cls, blobs: BlobStore, project_id: str) -> ProjectManager:
        """Load the start-up project; runs before any command is accepted."""
        pid = validate_project_id(project_id)
        result = blobs.load(pid)
        return cls(blobs, ProjectHandle(project_id=pid, todos=result.todos, existed=result.existed))

    async def _load(self, project_id: str) -> ProjectHandle:
        result = await asyncio.to_thread(self._blobs.load, project_id)
        return ProjectHandle(project_id=project_id, todos=result.todos, existed=result.existed)

    @property
    def active(self) -> ProjectHandle:
        return self._active

    def current_project_id(self) -> str:
        return self._active.project_id

    def current_data_location(self) -> str:
        return self._blobs.location(self._active.project_id)

    def info(self) -> ProjectInfo:
        return ProjectInfo(
            id=self._active.project_id,
            data_location=self.current_data_location(),
            todo_count=len(self._active.todos),
            existed=self._active.existed,
        )

    async def switch(self, project_id: str) -> ProjectHandle:
        target = validate_project_id(project_id)
        outgoing = self._active
        await asyncio.to_thread(self._blobs.save, outgoing.project_id, outgoing.snapshot())
        self._active = await self._load(target)
        self._logger.info(
            "project switched",
            extra={
                "event": "project_switch",
                "project_id": target,
                "attributes": {
                    "from": outgoing.project_id,
                    "todos": len(self._active.todos),
                    "existed": self._active.existed,
                },
            },
        )
        get_metrics().increment("project_switches", {"project_id": target})
        return self._active

    async def enumerate(self) -> list[ProjectSummary]:
        """List stored projects with their todo counts, without activating any."""
        project_ids = await asyncio.to_thread(self._blobs.list_projects)
        summaries: list[ProjectSummary] = []
        for pid in project_ids:
            result = await asyncio.to_thread(self._blobs.load, pid)
            summaries.append(
                ProjectSummary(
                    id=pid,
                    todo_count=len(result.todos),
                    active=pid == self._active.project_id,
                )
            )
        return summaries


__all__ = ["ProjectManager"]
