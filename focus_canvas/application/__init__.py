"""Application use cases for the focus canvas layer."""

from focus_canvas.application.autosave import AutosaveScheduler
from focus_canvas.application.canvas_sync import CanvasSyncEngine
from focus_canvas.application.complete_focus_task import CompleteFocusTask
from focus_canvas.application.dirty_tracker import DirtyTracker
from focus_canvas.application.rotation import TaskRotationEngine, Transition
from focus_canvas.application.runtime import FocusRuntime, RuntimeSettings
from focus_canvas.application.save_guard import SKIPPED, SaveGuard
from focus_canvas.application.save_status import SaveStatusIndicator
from focus_canvas.application.select_project import SelectProject
from focus_canvas.application.skip_task import SkipTask
from focus_canvas.application.start_focus import EnterFocus, StartFocusOnTask
from focus_canvas.application.toggle_pause import TogglePause

__all__ = [
    "AutosaveScheduler",
    "CanvasSyncEngine",
    "CompleteFocusTask",
    "DirtyTracker",
    "EnterFocus",
    "FocusRuntime",
    "RuntimeSettings",
    "SKIPPED",
    "SaveGuard",
    "SaveStatusIndicator",
    "SelectProject",
    "SkipTask",
    "StartFocusOnTask",
    "TaskRotationEngine",
    "TogglePause",
    "Transition",
]
