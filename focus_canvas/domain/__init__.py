"""Domain entities for focus sessions and project canvases."""

from focus_canvas.domain.canvas import CanvasDocument, SaveStatus, StoredCanvas
from focus_canvas.domain.countdown import CountdownState
from focus_canvas.domain.project import Project
from focus_canvas.domain.task import Task

__all__ = [
    "CanvasDocument",
    "CountdownState",
    "Project",
    "SaveStatus",
    "StoredCanvas",
    "Task",
]
