"""Focus timer and per-project canvas persistence core."""

from focus_canvas.application.complete_focus_task import CompleteFocusTask
from focus_canvas.application.runtime import FocusRuntime, RuntimeSettings
from focus_canvas.application.select_project import SelectProject
from focus_canvas.application.skip_task import SkipTask
from focus_canvas.application.start_focus import EnterFocus, StartFocusOnTask
from focus_canvas.application.toggle_pause import TogglePause
from focus_canvas.domain.canvas import SaveStatus

__all__ = [
    "CompleteFocusTask",
    "EnterFocus",
    "FocusRuntime",
    "RuntimeSettings",
    "SaveStatus",
    "SelectProject",
    "SkipTask",
    "StartFocusOnTask",
    "TogglePause",
]
