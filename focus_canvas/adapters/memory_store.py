"""In-memory persistence adapter."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Callable

from focus_canvas.domain.canvas import EMPTY_ELEMENTS, StoredCanvas
from focus_canvas.domain.project import Project
from focus_canvas.domain.task import Task
from focus_canvas.errors import StorageError


DEFAULT_PROJECT_NAME = "Default Project"
DEFAULT_PROJECT_DESCRIPTION = "Your first project"

_UPDATABLE_TASK_FIELDS = ("text", "completed", "estimated_minutes")


class InMemoryStore:
    """Dictionary-backed store implementing ``PersistencePort``.

    Returned entities are copies; callers never alias stored rows.
    """

    def __init__(self, *, now_provider: Callable[[], datetime] | None = None) -> None:
        self._now_provider = now_provider or (lambda: datetime.now(timezone.utc))
        self._projects: dict[int, Project] = {}
        self._tasks: dict[int, Task] = {}
        self._canvases: dict[int, StoredCanvas] = {}
        self._next_project_id = 1
        self._next_task_id = 1
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        if not self._projects:
            snapshot = self._snapshot()
            self._insert_project(DEFAULT_PROJECT_NAME, DEFAULT_PROJECT_DESCRIPTION)
            self._commit(snapshot)
        self._initialized = True

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------
    async def get_projects(self) -> list[Project]:
        projects = sorted(self._projects.values(), key=lambda p: (p.created_at, p.project_id))
        return [replace(project) for project in projects]

    async def create_project(self, name: str, description: str | None = None) -> Project:
        snapshot = self._snapshot()
        project = self._insert_project(name, description)
        self._commit(snapshot)
        return replace(project)

    async def delete_project(self, project_id: int) -> None:
        if len(self._projects) <= 1:
            raise StorageError("Cannot delete the last project")
        if project_id not in self._projects:
            raise StorageError(f"Unknown project id: {project_id}")

        snapshot = self._snapshot()
        for task_id in [t.task_id for t in self._tasks.values() if t.project_id == project_id]:
            del self._tasks[task_id]
        self._canvases.pop(project_id, None)
        del self._projects[project_id]
        self._commit(snapshot)

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------
    async def get_tasks(self, project_id: int) -> list[Task]:
        tasks = [t for t in self._tasks.values() if t.project_id == project_id]
        tasks.sort(key=lambda t: (t.created_at, t.task_id))
        return [replace(task) for task in tasks]

    async def create_task(self, text: str, estimated_minutes: int, project_id: int) -> Task:
        if project_id not in self._projects:
            raise StorageError(f"Unknown project id: {project_id}")

        snapshot = self._snapshot()
        task = Task(
            task_id=self._next_task_id,
            text=text,
            project_id=project_id,
            estimated_minutes=estimated_minutes,
            completed=False,
            created_at=self._now_provider(),
        )
        self._next_task_id += 1
        self._tasks[task.task_id] = task
        self._commit(snapshot)
        return replace(task)

    async def update_task(self, task_id: int, fields: dict[str, Any]) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise StorageError(f"Unknown task id: {task_id}")

        changes = {key: fields[key] for key in _UPDATABLE_TASK_FIELDS if key in fields}
        if not changes:
            raise StorageError("No fields to update")

        snapshot = self._snapshot()
        updated = replace(task, **changes)
        self._tasks[task_id] = updated
        self._commit(snapshot)
        return replace(updated)

    async def delete_task(self, task_id: int) -> None:
        snapshot = self._snapshot()
        if self._tasks.pop(task_id, None) is None:
            raise StorageError(f"Unknown task id: {task_id}")
        self._commit(snapshot)

    # ------------------------------------------------------------------
    # Canvas
    # ------------------------------------------------------------------
    async def get_canvas_document(self, project_id: int) -> StoredCanvas | None:
        return self._canvases.get(project_id)

    async def save_canvas_document(self, elements: str, app_state: str, project_id: int) -> None:
        if project_id not in self._projects:
            raise StorageError(f"Unknown project id: {project_id}")
        snapshot = self._snapshot()
        self._canvases[project_id] = StoredCanvas(
            elements=elements,
            app_state=app_state,
            project_id=project_id,
            updated_at=self._now_provider(),
        )
        self._commit(snapshot)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _insert_project(self, name: str, description: str | None) -> Project:
        project = Project(
            project_id=self._next_project_id,
            name=name,
            description=description,
            created_at=self._now_provider(),
        )
        self._next_project_id += 1
        self._projects[project.project_id] = project
        self._canvases[project.project_id] = StoredCanvas(
            elements=EMPTY_ELEMENTS,
            app_state="{}",
            project_id=project.project_id,
            updated_at=project.created_at,
        )
        return project

    def _snapshot(self) -> _StoreSnapshot:
        # Stored rows are replaced, never mutated in place.
        return _StoreSnapshot(
            projects=dict(self._projects),
            tasks=dict(self._tasks),
            canvases=dict(self._canvases),
            next_project_id=self._next_project_id,
            next_task_id=self._next_task_id,
        )

    def _commit(self, snapshot: _StoreSnapshot) -> None:
        """Run the durability hook; restore ``snapshot`` if it fails."""
        try:
            self._after_mutation()
        except StorageError:
            self._projects = snapshot.projects
            self._tasks = snapshot.tasks
            self._canvases = snapshot.canvases
            self._next_project_id = snapshot.next_project_id
            self._next_task_id = snapshot.next_task_id
            raise

    def _after_mutation(self) -> None:
        """Hook for subclasses that mirror state to durable storage."""


@dataclass(frozen=True, slots=True)
class _StoreSnapshot:
    projects: dict[int, Project]
    tasks: dict[int, Task]
    canvases: dict[int, StoredCanvas]
    next_project_id: int
    next_task_id: int
