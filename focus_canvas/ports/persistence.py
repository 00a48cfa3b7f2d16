"""Persistence port consumed by the focus-canvas core."""

from __future__ import annotations

from typing import Any, Protocol

from focus_canvas.domain.canvas import StoredCanvas
from focus_canvas.domain.project import Project
from focus_canvas.domain.task import Task


class PersistencePort(Protocol):
    """Async storage collaborator for projects, tasks, and canvas documents.

    Every call may fail; adapters raise ``StorageError`` for storage faults.
    """

    async def initialize(self) -> None:
        """Prepare storage and seed a default project when none exists."""

    async def get_projects(self) -> list[Project]:
        """Return all projects in creation order."""

    async def create_project(self, name: str, description: str | None = None) -> Project:
        """Create a project with an empty canvas."""

    async def delete_project(self, project_id: int) -> None:
        """Delete a project together with its tasks and canvas."""

    async def get_tasks(self, project_id: int) -> list[Task]:
        """Return a project's tasks in display order."""

    async def create_task(self, text: str, estimated_minutes: int, project_id: int) -> Task:
        """Create an incomplete task."""

    async def update_task(self, task_id: int, fields: dict[str, Any]) -> Task:
        """Apply a partial update (``text``, ``completed``, ``estimated_minutes``)."""

    async def delete_task(self, task_id: int) -> None:
        """Delete a task."""

    async def get_canvas_document(self, project_id: int) -> StoredCanvas | None:
        """Return the stored canvas for a project, or ``None``."""

    async def save_canvas_document(self, elements: str, app_state: str, project_id: int) -> None:
        """Replace the stored canvas for a project."""
