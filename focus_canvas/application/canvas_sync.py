"""Canvas persistence engine: save primitive, load path, and project-switch flush."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Callable

from focus_canvas.application.dirty_tracker import DirtyTracker
from focus_canvas.application.save_guard import SaveGuard
from focus_canvas.application.save_status import SaveStatusIndicator
from focus_canvas.domain.canvas import EMPTY_ELEMENTS, CanvasDocument
from focus_canvas.errors import FocusCanvasError, LoadFailure, SaveFailure, SaveGuardTimeout
from focus_canvas.ports.persistence import PersistencePort
from focus_canvas.ports.surface import EditingSurface


logger = logging.getLogger(__name__)

ErrorListener = Callable[[FocusCanvasError], None]


@dataclass(slots=True)
class CanvasSyncState:
    """Load gate for the editing surface of the current project."""

    project_id: int | None = None
    initialized: bool = False
    reload_requested: bool = False
    loading_project_id: int | None = None


class CanvasSyncEngine:
    """Keeps the live canvas of the current project synchronized to storage.

    Every write goes through one ``SaveGuard``. The engine is *ready* (and the
    autosave scheduler may run) only when a surface is attached, the current
    project's document has been loaded, and no reload is pending.
    """

    __slots__ = (
        "_store",
        "_surface",
        "_on_error",
        "state",
        "tracker",
        "guard",
        "status",
        "write_count",
    )

    def __init__(
        self,
        store: PersistencePort,
        *,
        guard: SaveGuard | None = None,
        tracker: DirtyTracker | None = None,
        status: SaveStatusIndicator | None = None,
        on_error: ErrorListener | None = None,
    ) -> None:
        self._store = store
        self._surface: EditingSurface | None = None
        self._on_error = on_error
        self.state = CanvasSyncState()
        self.tracker = tracker or DirtyTracker()
        self.guard = guard or SaveGuard()
        self.status = status or SaveStatusIndicator()
        self.write_count = 0

    # ------------------------------------------------------------------
    # Surface lifecycle
    # ------------------------------------------------------------------
    @property
    def surface(self) -> EditingSurface | None:
        return self._surface

    @property
    def project_id(self) -> int | None:
        return self.state.project_id

    @property
    def ready(self) -> bool:
        return (
            self._surface is not None
            and self.state.initialized
            and not self.state.reload_requested
            and self.state.project_id is not None
        )

    @property
    def reload_pending(self) -> bool:
        return self.state.reload_requested

    def set_error_listener(self, listener: ErrorListener | None) -> None:
        self._on_error = listener

    async def attach_surface(self, surface: EditingSurface) -> None:
        """Mount an editing surface and load the current project into it."""
        self._surface = surface
        self.state.initialized = False
        await self.load()

    def detach_surface(self) -> None:
        self._surface = None
        self.state.initialized = False

    def request_reload(self) -> None:
        self.state.initialized = False
        self.state.reload_requested = True

    # ------------------------------------------------------------------
    # Dirty state
    # ------------------------------------------------------------------
    def current_document(self) -> CanvasDocument | None:
        if self._surface is None:
            return None
        return CanvasDocument(
            elements=self._surface.get_scene_elements(),
            app_state=self._surface.get_app_state(),
        )

    def is_dirty(self) -> bool:
        document = self.current_document()
        if document is None:
            return False
        return self.tracker.is_dirty(document.serialize_elements())

    def has_unsaved_edits(self) -> bool:
        """Dirty and non-empty: content a reload would throw away."""
        document = self.current_document()
        if document is None or document.is_empty:
            return False
        return self.tracker.is_dirty(document.serialize_elements())

    # ------------------------------------------------------------------
    # Save primitive
    # ------------------------------------------------------------------
    async def save(
        self,
        *,
        force: bool = False,
        wait: bool = False,
        project_id: int | None = None,
    ) -> bool:
        """Persist the live document through the save guard.

        Returns True only when a write reached storage. ``project_id``
        overrides the target; it defaults to the current project at call time.
        """
        target = self.state.project_id if project_id is None else project_id
        if target is None or self._surface is None:
            return False

        async def _write() -> bool:
            return await self._write_snapshot(target, force=force)

        try:
            outcome = await self.guard.with_exclusive_save(_write, wait=wait)
        except SaveFailure as exc:
            logger.warning("Canvas save for project %s abandoned: %s", target, exc)
            self.status.fail()
            self._report(exc)
            return False
        return outcome is True

    async def flush(self) -> bool:
        """Wait for any in-flight save, then write pending edits of the current project."""
        if not self.ready:
            return False
        return await self.save(force=False, wait=True)

    async def _write_snapshot(self, project_id: int, *, force: bool) -> bool:
        document = self.current_document()
        if document is None:
            return False

        elements = document.serialize_elements()
        if not self.tracker.should_save(elements, force=force):
            return False

        self.status.begin()
        try:
            await self._store.save_canvas_document(
                elements,
                document.serialize_app_state(),
                project_id,
            )
        except Exception as exc:
            logger.exception("Failed to save canvas for project %s", project_id)
            self.status.fail()
            self._report(SaveFailure(f"Failed to save canvas: {exc}"))
            return False

        self.write_count += 1
        if project_id == self.state.project_id:
            self.tracker.mark_persisted(elements)
        else:
            logger.debug("Project changed during save; baseline of project %s kept", self.state.project_id)
        self.status.succeed()
        logger.debug("Saved canvas for project %s (%d elements)", project_id, len(document.elements))
        return True

    # ------------------------------------------------------------------
    # Project switch + load
    # ------------------------------------------------------------------
    async def switch_project(self, new_project_id: int | None) -> bool:
        """Flush the previous project's edits, then load the new project.

        The load gate is closed first so the periodic autosave cannot start a
        new write. Any save already in flight completes before the dirty check
        and before the load, so its baseline update lands on the previous
        project. The flush targets the project id captured before the pointer
        moves. Returns True when a flush write happened.
        """
        previous = self.state.project_id
        if new_project_id == previous and self.state.initialized and not self.state.reload_requested:
            return False

        was_ready = self.ready
        self.state.initialized = False
        self.state.reload_requested = True

        idle = True
        try:
            await self.guard.wait_idle()
        except SaveGuardTimeout as exc:
            idle = False
            logger.warning("Switching project while a save is still in flight: %s", exc)
            self.status.fail()
            self._report(exc)

        flushed = False
        if idle and was_ready and previous is not None and previous != new_project_id and self.is_dirty():
            logger.info("Flushing canvas of project %s before switching to %s", previous, new_project_id)
            flushed = await self.save(force=True, wait=True, project_id=previous)

        self.state.project_id = new_project_id
        await self.load()
        return flushed

    async def load(self) -> bool:
        """Apply the stored document of the current project to the surface.

        Fails open: on any error the engine still ends up initialized with an
        empty scene so the UI stays usable and no reload loop starts.
        """
        surface = self._surface
        project_id = self.state.project_id
        if surface is None or project_id is None:
            return False
        if self.state.initialized and not self.state.reload_requested:
            return False
        if self.state.loading_project_id == project_id:
            return False

        self.state.loading_project_id = project_id
        self.status.reset()
        try:
            stored = await self._store.get_canvas_document(project_id)
            if self._superseded(project_id, surface):
                return False

            if stored is not None:
                document = CanvasDocument.from_stored(stored)
                surface.update_scene(document.elements, document.app_state)
                self.tracker.mark_persisted(stored.elements)
            else:
                empty = CanvasDocument.empty()
                surface.update_scene(empty.elements, empty.app_state)
                self.tracker.reset(EMPTY_ELEMENTS)
        except Exception as exc:
            logger.exception("Failed to load canvas for project %s", project_id)
            if self._superseded(project_id, surface):
                return False
            empty = CanvasDocument.empty()
            surface.update_scene(empty.elements, empty.app_state)
            self.tracker.reset(EMPTY_ELEMENTS)
            self._mark_loaded()
            self._report(LoadFailure(f"Failed to load canvas: {exc}"))
            return False
        finally:
            if self.state.loading_project_id == project_id:
                self.state.loading_project_id = None

        self._mark_loaded()
        return True

    def _superseded(self, project_id: int, surface: EditingSurface) -> bool:
        return self.state.project_id != project_id or self._surface is not surface

    def _mark_loaded(self) -> None:
        self.state.initialized = True
        self.state.reload_requested = False

    def _report(self, error: FocusCanvasError) -> None:
        if self._on_error is not None:
            self._on_error(error)
