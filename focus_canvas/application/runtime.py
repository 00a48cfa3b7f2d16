"""Application runtime wiring projects, tasks, focus rotation, and the canvas engine."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Awaitable, Callable, TypeVar

from focus_canvas.adapters.clock import Ticker, TickerFactory, default_ticker_factory
from focus_canvas.adapters.log_notifier import LoggingNotifier
from focus_canvas.application.autosave import AutosaveScheduler
from focus_canvas.application.canvas_sync import CanvasSyncEngine
from focus_canvas.application.rotation import TaskRotationEngine, Transition
from focus_canvas.application.save_guard import SaveGuard
from focus_canvas.application.save_status import SaveStatusIndicator
from focus_canvas.domain.canvas import SaveStatus
from focus_canvas.domain.countdown import CountdownState
from focus_canvas.domain.project import Project, validate_project_name
from focus_canvas.domain.task import (
    DEFAULT_ESTIMATED_MINUTES,
    Task,
    validate_estimated_minutes,
    validate_task_text,
)
from focus_canvas.errors import (
    FocusCanvasError,
    InitializationFailure,
    LoadFailure,
    SaveFailure,
    ValidationFailure,
)
from focus_canvas.ports.notifications import NotificationEventType, NotificationPort
from focus_canvas.ports.persistence import PersistencePort
from focus_canvas.ports.surface import EditingSurface


logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RuntimeSettings:
    """Timing and default knobs for one runtime instance."""

    autosave_interval_seconds: float = 2.0
    tick_seconds: float = 1.0
    success_clear_seconds: float = 2.0
    error_clear_seconds: float = 3.0
    guard_wait_timeout_seconds: float | None = 10.0
    default_task_minutes: int = DEFAULT_ESTIMATED_MINUTES


class FocusRuntime:
    """Single-user focus-timer runtime scoped to one current project."""

    __slots__ = (
        "store",
        "settings",
        "notifier",
        "canvas",
        "autosave",
        "rotation",
        "_projects",
        "_current_project",
        "_tasks",
        "_focus_mode",
        "_last_error",
        "_enable_timers",
        "_ticker_factory",
        "_countdown_ticker",
    )

    def __init__(
        self,
        store: PersistencePort,
        *,
        settings: RuntimeSettings | None = None,
        notifier: NotificationPort | None = None,
        enable_timers: bool = True,
        ticker_factory: TickerFactory = default_ticker_factory,
    ) -> None:
        self.store = store
        self.settings = settings or RuntimeSettings()
        self.notifier: NotificationPort = notifier or LoggingNotifier()

        status = SaveStatusIndicator(
            success_clear_seconds=self.settings.success_clear_seconds,
            error_clear_seconds=self.settings.error_clear_seconds,
        )
        status.add_listener(self._on_save_status)
        self.canvas = CanvasSyncEngine(
            store,
            guard=SaveGuard(wait_timeout=self.settings.guard_wait_timeout_seconds),
            status=status,
            on_error=self._record_error,
        )
        self.autosave = AutosaveScheduler(
            self.canvas,
            interval=self.settings.autosave_interval_seconds,
            ticker_factory=ticker_factory,
        )
        self.rotation = TaskRotationEngine()

        self._projects: list[Project] = []
        self._current_project: Project | None = None
        self._tasks: list[Task] = []
        self._focus_mode = False
        self._last_error: str | None = None
        self._enable_timers = enable_timers
        self._ticker_factory = ticker_factory
        self._countdown_ticker: Ticker | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def initialize(self) -> None:
        """Prepare storage, load projects, and select a current project."""
        try:
            await self.store.initialize()
        except Exception as exc:
            logger.exception("Storage initialization failed")
            error = InitializationFailure(f"Failed to initialize app: {exc}")
            self._record_error(error)
            raise error from exc

        await self._reload_projects()

        current_id = self._current_project.project_id if self._current_project else None
        target = self._find_project(current_id) if current_id is not None else None
        if target is None and self._projects:
            target = self._projects[0]

        if target is not None:
            await self._activate_project(target, force_reload=True)
        self._last_error = None

    async def retry(self) -> None:
        """Rebuild runtime state from storage after a failure."""
        await self.canvas.flush()
        self._leave_focus_state()
        self.canvas.request_reload()
        self._last_error = None
        await self.initialize()

    async def close(self) -> None:
        """Force-save the canvas and stop every timer."""
        try:
            await self.autosave.on_close()
        finally:
            self.autosave.stop()
            self._stop_countdown()
            self.canvas.status.close()

    async def attach_surface(self, surface: EditingSurface) -> None:
        await self.canvas.attach_surface(surface)
        if self._enable_timers:
            self.autosave.start()

    def detach_surface(self) -> None:
        self.autosave.stop()
        self.canvas.detach_surface()

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------
    async def select_project(self, project_id: int) -> Project:
        project = self._find_project(project_id)
        if project is None:
            raise ValidationFailure(f"Unknown project id: {project_id}")
        await self._activate_project(project)
        return project

    async def create_project(self, name: str, description: str | None = None) -> Project:
        cleaned = validate_project_name(name)
        cleaned_description = description.strip() if description and description.strip() else None

        project = await self._call_store(
            SaveFailure,
            "Failed to create project",
            lambda: self.store.create_project(cleaned, cleaned_description),
        )
        await self._reload_projects()
        await self._activate_project(self._find_project(project.project_id) or project)
        self.notifier.notify(f"Project '{project.name}' created.", NotificationEventType.INFO)
        return project

    async def delete_project(self, project_id: int) -> None:
        project = self._find_project(project_id)
        if project is None:
            raise ValidationFailure(f"Unknown project id: {project_id}")

        await self._call_store(
            SaveFailure,
            "Failed to delete project",
            lambda: self.store.delete_project(project_id),
        )
        await self._reload_projects()

        was_current = self._current_project is not None and self._current_project.project_id == project_id
        if was_current:
            # Its canvas is gone from storage; never flush into it.
            self.canvas.request_reload()
            self._current_project = None
            self._leave_focus_state()
            if self._projects:
                await self._activate_project(self._projects[0])
            else:
                self._tasks = []
                await self.canvas.switch_project(None)
        self.notifier.notify(f"Project '{project.name}' deleted.", NotificationEventType.INFO)

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------
    async def create_task(self, text: str, estimated_minutes: int | None = None) -> Task:
        cleaned = validate_task_text(text)
        minutes = validate_estimated_minutes(
            self.settings.default_task_minutes if estimated_minutes is None else estimated_minutes
        )
        project = self._require_current_project()

        task = await self._call_store(
            SaveFailure,
            "Failed to create todo",
            lambda: self.store.create_task(cleaned, minutes, project.project_id),
        )
        await self._reload_tasks()
        return task

    async def update_task(
        self,
        task_id: int,
        *,
        text: str | None = None,
        estimated_minutes: int | None = None,
    ) -> Task:
        self._require_task(task_id)
        fields: dict[str, Any] = {}
        if text is not None:
            fields["text"] = validate_task_text(text)
        if estimated_minutes is not None:
            fields["estimated_minutes"] = validate_estimated_minutes(estimated_minutes)
        if not fields:
            raise ValidationFailure("Nothing to update")

        updated = await self._call_store(
            SaveFailure,
            "Failed to update todo",
            lambda: self.store.update_task(task_id, fields),
        )
        self._replace_task(updated)
        return updated

    async def toggle_task(self, task_id: int) -> Task:
        task = self._require_task(task_id)
        updated = await self._call_store(
            SaveFailure,
            "Failed to toggle todo",
            lambda: self.store.update_task(task_id, {"completed": not task.completed}),
        )
        self._replace_task(updated)
        return updated

    async def delete_task(self, task_id: int) -> None:
        self._require_task(task_id)
        await self._call_store(
            SaveFailure,
            "Failed to delete todo",
            lambda: self.store.delete_task(task_id),
        )
        self._tasks = [task for task in self._tasks if task.task_id != task_id]

    # ------------------------------------------------------------------
    # Focus mode
    # ------------------------------------------------------------------
    async def enter_focus(self) -> bool:
        """Flush the canvas and focus the first incomplete task, if any."""
        first = self.first_incomplete_task()
        if first is None:
            return False
        await self.canvas.flush()
        self._begin_focus(first)
        return True

    async def start_focus(self, task_id: int) -> CountdownState:
        task = self._require_task(task_id)
        if task.completed:
            raise ValidationFailure(f"Task {task_id} is completed and cannot be focused")
        if not self._focus_mode:
            await self.canvas.flush()
        self._begin_focus(task)
        return self.rotation.state

    def toggle_pause(self) -> CountdownState:
        state = self.rotation.toggle_pause().state
        if not state.is_idle:
            self._sync_countdown_timer()
        return state

    async def skip(self) -> Transition:
        previous = self.rotation.state.active_task
        transition = self.rotation.skip(self._tasks)
        await self._after_transition(transition, previous)
        return transition

    async def done(self) -> Transition:
        previous = self.rotation.state.active_task
        transition = self.rotation.done(self._tasks)
        if transition.completed_task_id is not None:
            await self._complete_task(transition.completed_task_id)
        await self._after_transition(transition, previous)
        return transition

    async def tick(self) -> Transition:
        previous = self.rotation.state.active_task
        transition = self.rotation.tick(self._tasks)
        if transition.expired:
            self.notifier.notify(
                "Countdown finished.",
                NotificationEventType.COUNTDOWN_EXPIRED,
                related_task_id=previous.task_id if previous is not None else None,
            )
        await self._after_transition(transition, previous)
        return transition

    async def exit_focus(self) -> None:
        """Leave focus mode: save the canvas, reset the countdown, reload the canvas."""
        was_focused = self._focus_mode
        await self.canvas.flush()
        self._leave_focus_state()
        if not self.canvas.has_unsaved_edits():
            self.canvas.request_reload()
            await self.canvas.load()
        if was_focused:
            self.notifier.notify("Focus mode ended.", NotificationEventType.FOCUS_EXITED)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def projects(self) -> list[Project]:
        return list(self._projects)

    @property
    def current_project(self) -> Project | None:
        return self._current_project

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks)

    @property
    def countdown(self) -> CountdownState:
        return self.rotation.state

    @property
    def focus_mode(self) -> bool:
        return self._focus_mode

    @property
    def save_status(self) -> SaveStatus:
        return self.canvas.status.status

    @property
    def last_error(self) -> str | None:
        return self._last_error

    def get_task(self, task_id: int) -> Task | None:
        for task in self._tasks:
            if task.task_id == task_id:
                return task
        return None

    def first_incomplete_task(self) -> Task | None:
        for task in self._tasks:
            if not task.completed:
                return task
        return None

    def has_incomplete_tasks(self) -> bool:
        return self.first_incomplete_task() is not None

    # ------------------------------------------------------------------
    # Internal orchestration
    # ------------------------------------------------------------------
    async def _activate_project(self, project: Project, *, force_reload: bool = False) -> None:
        previous = self._current_project
        switching = previous is None or previous.project_id != project.project_id
        if switching and self._focus_mode:
            self._leave_focus_state()

        self._current_project = project
        if force_reload and not switching:
            self.canvas.request_reload()
        await self.canvas.switch_project(project.project_id)
        await self._reload_tasks()

    async def _reload_projects(self) -> None:
        self._projects = await self._call_store(
            LoadFailure,
            "Failed to load projects",
            self.store.get_projects,
        )
        if self._current_project is not None:
            refreshed = self._find_project(self._current_project.project_id)
            if refreshed is not None:
                self._current_project = refreshed

    async def _reload_tasks(self) -> None:
        project = self._current_project
        if project is None:
            self._tasks = []
            return
        tasks = await self._call_store(
            LoadFailure,
            "Failed to load todos",
            lambda: self.store.get_tasks(project.project_id),
        )
        if self._current_project is project:
            self._tasks = tasks

    async def _complete_task(self, task_id: int) -> None:
        try:
            updated = await self._call_store(
                SaveFailure,
                "Failed to complete todo",
                lambda: self.store.update_task(task_id, {"completed": True}),
            )
        except SaveFailure:
            # Already recorded; the rotation has moved on regardless.
            return
        self._replace_task(updated)

    def _begin_focus(self, task: Task) -> None:
        if self._current_project is None or self.get_task(task.task_id) is None:
            raise ValidationFailure(f"Task {task.task_id} is not in the current project")
        state = self.rotation.start_focus(task).state
        self._focus_mode = True
        self._sync_countdown_timer()
        self.notifier.notify(
            f"Focusing on '{task.text}' for {task.estimated_minutes} min.",
            NotificationEventType.FOCUS_STARTED,
            related_task_id=task.task_id,
        )
        logger.debug("Focus started on task %s (%ss)", task.task_id, state.remaining_seconds)

    async def _after_transition(self, transition: Transition, previous: Task | None) -> None:
        if transition.exit_focus:
            await self.exit_focus()
            return

        active = transition.state.active_task
        if active is not None and (previous is None or previous.task_id != active.task_id):
            self.notifier.notify(
                f"Now focusing on '{active.text}'.",
                NotificationEventType.TASK_ROTATED,
                related_task_id=active.task_id,
            )
        self._sync_countdown_timer()

    def _leave_focus_state(self) -> None:
        self.rotation.reset()
        self._focus_mode = False
        self._stop_countdown()

    def _sync_countdown_timer(self) -> None:
        if not self._enable_timers:
            return
        if self._focus_mode and self.rotation.state.is_running:
            if self._countdown_ticker is None:
                self._countdown_ticker = self._ticker_factory(
                    self.settings.tick_seconds,
                    self.tick,
                    "focus-countdown",
                )
            self._countdown_ticker.start()
        else:
            self._stop_countdown()

    def _stop_countdown(self) -> None:
        if self._countdown_ticker is not None:
            self._countdown_ticker.stop()

    async def _call_store(
        self,
        failure: type[FocusCanvasError],
        message: str,
        call: Callable[[], Awaitable[T]],
    ) -> T:
        try:
            result = await call()
        except Exception as exc:
            logger.exception(message)
            error = failure(f"{message}: {exc}")
            self._record_error(error)
            raise error from exc
        self._last_error = None
        return result

    def _record_error(self, error: FocusCanvasError) -> None:
        self._last_error = str(error)
        self.notifier.notify(str(error), NotificationEventType.ERROR)

    def _on_save_status(self, status: SaveStatus) -> None:
        self.notifier.notify(f"Canvas save status: {status.value}", NotificationEventType.SAVE_STATUS)

    def _replace_task(self, updated: Task) -> None:
        self._tasks = [updated if task.task_id == updated.task_id else task for task in self._tasks]
        active = self.rotation.state.active_task
        if active is not None and active.task_id == updated.task_id and not updated.completed:
            self.rotation.replace_active_task(updated)

    def _find_project(self, project_id: int | None) -> Project | None:
        for project in self._projects:
            if project.project_id == project_id:
                return project
        return None

    def _require_current_project(self) -> Project:
        if self._current_project is None:
            raise ValidationFailure("No project selected")
        return self._current_project

    def _require_task(self, task_id: int) -> Task:
        task = self.get_task(task_id)
        if task is None:
            raise ValidationFailure(f"Unknown task id: {task_id}")
        return task
