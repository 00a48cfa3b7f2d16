"""JSON-file persistence adapter (one file per collection, atomic replace)."""

from __future__ import annotations

from datetime import datetime, timezone
import json
import logging
from pathlib import Path
from typing import Any, Callable

from focus_canvas.domain.canvas import StoredCanvas
from focus_canvas.domain.project import Project
from focus_canvas.domain.task import DEFAULT_ESTIMATED_MINUTES, Task
from focus_canvas.errors import StorageError

from .memory_store import InMemoryStore


logger = logging.getLogger(__name__)


class JsonFileStore(InMemoryStore):
    """In-memory store mirrored to ``projects.json``, ``tasks.json`` and ``canvases.json``."""

    def __init__(
        self,
        data_dir: str | Path,
        *,
        now_provider: Callable[[], datetime] | None = None,
    ) -> None:
        super().__init__(now_provider=now_provider)
        self._data_dir = Path(data_dir).expanduser().resolve()
        self._suspend_writes = False

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    async def initialize(self) -> None:
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"Cannot create data directory {self._data_dir}: {exc}") from exc

        if not self.initialized:
            self._load_files()
        await super().initialize()

    def _after_mutation(self) -> None:
        if self._suspend_writes:
            return

        projects_payload = [
            {
                "id": project.project_id,
                "name": project.name,
                "description": project.description,
                "created_at": project.created_at.isoformat(),
            }
            for project in sorted(self._projects.values(), key=lambda item: item.project_id)
        ]
        tasks_payload = [
            {
                "id": task.task_id,
                "text": task.text,
                "completed": task.completed,
                "estimated_minutes": task.estimated_minutes,
                "project_id": task.project_id,
                "created_at": task.created_at.isoformat(),
            }
            for task in sorted(self._tasks.values(), key=lambda item: item.task_id)
        ]
        canvases_payload = [
            {
                "project_id": canvas.project_id,
                "elements": canvas.elements,
                "app_state": canvas.app_state,
                "updated_at": canvas.updated_at.isoformat() if canvas.updated_at else None,
            }
            for canvas in sorted(self._canvases.values(), key=lambda item: item.project_id)
        ]

        try:
            self._write_json_atomic(self._data_dir / "projects.json", projects_payload)
            self._write_json_atomic(self._data_dir / "tasks.json", tasks_payload)
            self._write_json_atomic(self._data_dir / "canvases.json", canvases_payload)
        except OSError as exc:
            raise StorageError(f"Failed to write data files in {self._data_dir}: {exc}") from exc

    def _load_files(self) -> None:
        raw_projects = self._read_json_list(self._data_dir / "projects.json")
        raw_tasks = self._read_json_list(self._data_dir / "tasks.json")
        raw_canvases = self._read_json_list(self._data_dir / "canvases.json")

        self._suspend_writes = True
        try:
            for row in raw_projects:
                project_id = _as_int(row.get("id"))
                name = str(row.get("name", "")).strip()
                if project_id is None or not name:
                    continue
                description = row.get("description")
                self._projects[project_id] = Project(
                    project_id=project_id,
                    name=name,
                    description=str(description) if description is not None else None,
                    created_at=self._parse_iso_datetime(row.get("created_at")) or self._now_provider(),
                )

            for row in raw_tasks:
                task_id = _as_int(row.get("id"))
                project_id = _as_int(row.get("project_id"))
                text = str(row.get("text", "")).strip()
                if task_id is None or project_id not in self._projects or not text:
                    continue
                minutes = _as_int(row.get("estimated_minutes"))
                self._tasks[task_id] = Task(
                    task_id=task_id,
                    text=text,
                    project_id=project_id,
                    estimated_minutes=minutes if minutes and minutes > 0 else DEFAULT_ESTIMATED_MINUTES,
                    completed=bool(row.get("completed", False)),
                    created_at=self._parse_iso_datetime(row.get("created_at")) or self._now_provider(),
                )

            for row in raw_canvases:
                project_id = _as_int(row.get("project_id"))
                elements = row.get("elements")
                if project_id not in self._projects or not isinstance(elements, str):
                    continue
                self._canvases[project_id] = StoredCanvas(
                    elements=elements,
                    app_state=str(row.get("app_state") or "{}"),
                    project_id=project_id,
                    updated_at=self._parse_iso_datetime(row.get("updated_at")),
                )
        finally:
            self._suspend_writes = False

        self._next_project_id = max(self._projects, default=0) + 1
        self._next_task_id = max(self._tasks, default=0) + 1
        if self._projects:
            logger.info(
                "Loaded %d projects and %d tasks from %s",
                len(self._projects),
                len(self._tasks),
                self._data_dir,
            )

    @staticmethod
    def _write_json_atomic(path: Path, payload: Any) -> None:
        serialized = json.dumps(payload, indent=2, sort_keys=True)
        temp_path = path.with_suffix(f"{path.suffix}.tmp")
        temp_path.write_text(serialized, encoding="utf-8")
        temp_path.replace(path)

    @staticmethod
    def _read_json_list(path: Path) -> list[dict[str, Any]]:
        if not path.exists():
            return []
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.warning("Ignoring unreadable data file %s", path)
            return []
        if not isinstance(data, list):
            return []
        return [item for item in data if isinstance(item, dict)]

    @staticmethod
    def _parse_iso_datetime(value: object) -> datetime | None:
        if not isinstance(value, str):
            return None
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = f"{text[:-1]}+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed


def _as_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None
