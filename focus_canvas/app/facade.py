"""Adapter-facing facade for runtime commands, queries, and diagnostics."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, TypeVar

from focus_canvas.adapters.scene_buffer import SceneBuffer
from focus_canvas.application.complete_focus_task import CompleteFocusTask
from focus_canvas.application.rotation import Transition
from focus_canvas.application.runtime import FocusRuntime
from focus_canvas.application.select_project import SelectProject
from focus_canvas.application.skip_task import SkipTask
from focus_canvas.application.start_focus import EnterFocus, StartFocusOnTask
from focus_canvas.application.toggle_pause import TogglePause
from focus_canvas.domain.countdown import CountdownState
from focus_canvas.domain.project import Project
from focus_canvas.domain.task import Task, format_countdown
from focus_canvas.app.events import EventHub, FocusEvent
from focus_canvas.errors import ValidationFailure


T = TypeVar("T")


class FocusAppFacade:
    """Facade that isolates adapters from runtime internals."""

    __slots__ = (
        "_runtime",
        "_event_hub",
        "_surface",
        "_lock",
        "_last_successful_command_at",
        "_last_command_error",
        "_enter_focus",
        "_start_focus",
        "_toggle_pause",
        "_skip",
        "_complete",
        "_select_project",
    )

    def __init__(self, runtime: FocusRuntime, event_hub: EventHub) -> None:
        self._runtime = runtime
        self._event_hub = event_hub
        self._surface: SceneBuffer | None = None
        self._lock = asyncio.Lock()
        self._last_successful_command_at: datetime | None = None
        self._last_command_error: str | None = None

        self._enter_focus = EnterFocus(runtime)
        self._start_focus = StartFocusOnTask(runtime)
        self._toggle_pause = TogglePause(runtime)
        self._skip = SkipTask(runtime)
        self._complete = CompleteFocusTask(runtime)
        self._select_project = SelectProject(runtime)

    @property
    def runtime(self) -> FocusRuntime:
        return self._runtime

    # ------------------------------------------------------------------
    # Canvas commands
    # ------------------------------------------------------------------
    async def attach_canvas(self, surface: SceneBuffer) -> dict[str, Any]:
        async def _attach() -> dict[str, Any]:
            self._surface = surface
            await self._runtime.attach_surface(surface)
            return self.canvas_state()

        return await self._run_command(_attach)

    async def draw(self, element: dict[str, Any]) -> dict[str, Any]:
        async def _draw() -> dict[str, Any]:
            surface = self._require_surface()
            surface.add_element(element)
            return self.canvas_state()

        return await self._run_command(_draw)

    async def erase(self, index: int) -> dict[str, Any]:
        async def _erase() -> dict[str, Any]:
            surface = self._require_surface()
            elements = surface.get_scene_elements()
            if index < 0 or index >= len(elements):
                raise ValidationFailure(f"No canvas element at index {index}")
            surface.remove_element(index)
            return self.canvas_state()

        return await self._run_command(_erase)

    async def save_canvas(self) -> dict[str, Any]:
        async def _save() -> dict[str, Any]:
            saved = await self._runtime.canvas.flush()
            if saved:
                self.publish_info("Canvas saved.")
            return {"saved": saved, **self.canvas_state()}

        return await self._run_command(_save)

    # ------------------------------------------------------------------
    # Project commands
    # ------------------------------------------------------------------
    async def select_project(self, *, project_id: int) -> dict[str, Any]:
        async def _select() -> dict[str, Any]:
            project = await self._select_project.execute(project_id)
            self.publish_info(f"Switched to project '{project.name}'.")
            return self._serialize_project(project)

        return await self._run_command(_select)

    async def create_project(self, *, name: str, description: str | None = None) -> dict[str, Any]:
        async def _create() -> dict[str, Any]:
            project = await self._runtime.create_project(name, description)
            return self._serialize_project(project)

        return await self._run_command(_create)

    async def delete_project(self, *, project_id: int) -> dict[str, Any]:
        async def _delete() -> dict[str, Any]:
            await self._runtime.delete_project(project_id)
            return {"deleted_project_id": project_id, "projects": self.list_projects()}

        return await self._run_command(_delete)

    # ------------------------------------------------------------------
    # Task commands
    # ------------------------------------------------------------------
    async def create_task(self, *, text: str, estimated_minutes: int | None = None) -> dict[str, Any]:
        async def _create() -> dict[str, Any]:
            task = await self._runtime.create_task(text, estimated_minutes)
            self.publish_info(
                f"Task '{task.text}' added ({task.estimated_minutes} min).",
                related_task_id=task.task_id,
            )
            return self._serialize_task(task)

        return await self._run_command(_create)

    async def update_task(
        self,
        *,
        task_id: int,
        text: str | None = None,
        estimated_minutes: int | None = None,
    ) -> dict[str, Any]:
        async def _update() -> dict[str, Any]:
            task = await self._runtime.update_task(task_id, text=text, estimated_minutes=estimated_minutes)
            return self._serialize_task(task)

        return await self._run_command(_update)

    async def toggle_task(self, *, task_id: int) -> dict[str, Any]:
        async def _toggle() -> dict[str, Any]:
            task = await self._runtime.toggle_task(task_id)
            return self._serialize_task(task)

        return await self._run_command(_toggle)

    async def delete_task(self, *, task_id: int) -> dict[str, Any]:
        async def _delete() -> dict[str, Any]:
            task = self._runtime.get_task(task_id)
            await self._runtime.delete_task(task_id)
            if task is not None:
                self.publish_info(f"Deleted '{task.text}'.", related_task_id=task_id)
            return {"deleted_task_id": task_id}

        return await self._run_command(_delete)

    # ------------------------------------------------------------------
    # Focus commands
    # ------------------------------------------------------------------
    async def enter_focus(self) -> dict[str, Any]:
        async def _enter() -> dict[str, Any]:
            entered = await self._enter_focus.execute()
            if not entered:
                self.publish_info("No incomplete tasks. Add a task to start focusing.")
            return self.focus_state()

        return await self._run_command(_enter)

    async def start_focus(self, *, task_id: int) -> dict[str, Any]:
        async def _start() -> dict[str, Any]:
            await self._start_focus.execute(task_id)
            return self.focus_state()

        return await self._run_command(_start)

    async def toggle_pause(self) -> dict[str, Any]:
        async def _toggle() -> dict[str, Any]:
            state = self._toggle_pause.execute()
            if not state.is_idle:
                self.publish_info("Paused." if state.paused else "Resumed.")
            return self.focus_state()

        return await self._run_command(_toggle)

    async def skip(self) -> dict[str, Any]:
        async def _skip() -> dict[str, Any]:
            transition = await self._skip.execute()
            return self._serialize_transition(transition)

        return await self._run_command(_skip)

    async def done(self) -> dict[str, Any]:
        async def _done() -> dict[str, Any]:
            transition = await self._complete.execute()
            return self._serialize_transition(transition)

        return await self._run_command(_done)

    async def exit_focus(self) -> dict[str, Any]:
        async def _exit() -> dict[str, Any]:
            await self._runtime.exit_focus()
            return self.focus_state()

        return await self._run_command(_exit)

    async def retry(self) -> dict[str, Any]:
        async def _retry() -> dict[str, Any]:
            await self._runtime.retry()
            self.publish_info("Reloaded data from storage.")
            return self.runtime_state()

        return await self._run_command(_retry)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def list_projects(self) -> list[dict[str, Any]]:
        return [self._serialize_project(project) for project in self._runtime.projects]

    def list_tasks(self, *, include_completed: bool = True) -> list[dict[str, Any]]:
        tasks = self._runtime.tasks
        if not include_completed:
            tasks = [task for task in tasks if not task.completed]
        return [self._serialize_task(task) for task in tasks]

    def focus_state(self) -> dict[str, Any]:
        return {
            "focus_mode": self._runtime.focus_mode,
            **self._serialize_countdown(self._runtime.countdown),
        }

    def canvas_state(self) -> dict[str, Any]:
        canvas = self._runtime.canvas
        document = canvas.current_document()
        return {
            "project_id": canvas.project_id,
            "ready": canvas.ready,
            "dirty": canvas.is_dirty(),
            "element_count": len(document.elements) if document is not None else 0,
            "save_status": self._runtime.save_status.value,
        }

    def runtime_state(self) -> dict[str, Any]:
        current = self._runtime.current_project
        return {
            "current_project": self._serialize_project(current) if current is not None else None,
            "projects": self.list_projects(),
            "tasks": self.list_tasks(),
            "focus": self.focus_state(),
            "canvas": self.canvas_state(),
            "error": self._runtime.last_error,
        }

    def list_events(self, *, limit: int = 200) -> list[dict[str, Any]]:
        return [self._serialize_event(event) for event in self._event_hub.list_recent(limit=limit)]

    def subscribe_events(self, *, after_event_id: int | None = None) -> int:
        return self._event_hub.subscribe(after_event_id=after_event_id)

    def unsubscribe_events(self, subscriber_id: int) -> None:
        self._event_hub.unsubscribe(subscriber_id)

    async def next_event(
        self,
        subscriber_id: int,
        *,
        timeout_seconds: float | None = None,
    ) -> dict[str, Any] | None:
        event = await self._event_hub.next_event(subscriber_id, timeout_seconds=timeout_seconds)
        if event is None:
            return None
        return self._serialize_event(event)

    def diagnostics(self) -> dict[str, Any]:
        last_event = self._event_hub.last_event
        guard = self._runtime.canvas.guard
        return {
            "last_event_timestamp": self._iso(last_event.timestamp) if last_event else None,
            "last_successful_command_time": self._iso(self._last_successful_command_at),
            "last_command_error": self._last_command_error,
            "runtime_error": self._runtime.last_error,
            "dropped_event_count": self._event_hub.dropped_event_count,
            "save_in_flight": guard.in_flight,
            "canvas_writes": self._runtime.canvas.write_count,
            "guarded_saves": guard.guarded_runs,
            "skipped_saves": guard.skipped_saves,
            "autosave_running": self._runtime.autosave.running,
            "autosave_ticks": self._runtime.autosave.tick_count,
        }

    def publish_info(self, message: str, *, related_task_id: int | None = None) -> None:
        self._event_hub.publish(
            event_type="info",
            message=message,
            related_task_id=related_task_id,
            source="facade",
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    async def _run_command(self, callback: Callable[[], Awaitable[T]]) -> T:
        async with self._lock:
            try:
                result = await callback()
            except Exception as exc:
                self._last_command_error = str(exc)
                raise
            self._last_successful_command_at = self._wall_now()
            self._last_command_error = None
            return result

    def _require_surface(self) -> SceneBuffer:
        if self._surface is None:
            raise ValidationFailure("No canvas attached")
        return self._surface

    def _serialize_task(self, task: Task) -> dict[str, Any]:
        return {
            "id": task.task_id,
            "text": task.text,
            "project_id": task.project_id,
            "estimated_minutes": task.estimated_minutes,
            "completed": task.completed,
            "created_at": self._iso(task.created_at),
        }

    def _serialize_project(self, project: Project) -> dict[str, Any]:
        current = self._runtime.current_project
        return {
            "id": project.project_id,
            "name": project.name,
            "description": project.description,
            "created_at": self._iso(project.created_at),
            "current": current is not None and current.project_id == project.project_id,
        }

    def _serialize_countdown(self, state: CountdownState) -> dict[str, Any]:
        active = state.active_task
        return {
            "active_task": self._serialize_task(active) if active is not None else None,
            "remaining_seconds": state.remaining_seconds,
            "remaining_display": format_countdown(state.remaining_seconds),
            "paused": state.paused,
        }

    def _serialize_transition(self, transition: Transition) -> dict[str, Any]:
        return {
            "exit_focus": transition.exit_focus,
            "expired": transition.expired,
            "completed_task_id": transition.completed_task_id,
            **self.focus_state(),
        }

    @staticmethod
    def _serialize_event(event: FocusEvent) -> dict[str, Any]:
        return {
            "event_id": event.event_id,
            "event_type": event.event_type,
            "message": event.message,
            "timestamp": event.timestamp.isoformat(),
            "related_task_id": event.related_task_id,
            "source": event.source,
        }

    @staticmethod
    def _iso(value: datetime | None) -> str | None:
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()

    @staticmethod
    def _wall_now() -> datetime:
        return datetime.now(timezone.utc)
