"""Use case: switch the current project."""

from __future__ import annotations

from focus_canvas.application.runtime import FocusRuntime
from focus_canvas.domain.project import Project


class SelectProject:
    """Application use case for switching projects.

    Pending canvas edits of the previous project are flushed to that project
    before the new project's canvas is loaded.
    """

    def __init__(self, runtime: FocusRuntime) -> None:
        self._runtime = runtime

    async def execute(self, project_id: int) -> Project:
        return await self._runtime.select_project(project_id)
