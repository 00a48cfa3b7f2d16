"""Use case: complete the active task (done)."""

from __future__ import annotations

from focus_canvas.application.rotation import Transition
from focus_canvas.application.runtime import FocusRuntime


class CompleteFocusTask:
    """Application use case for marking the active task done and moving on."""

    def __init__(self, runtime: FocusRuntime) -> None:
        self._runtime = runtime

    async def execute(self) -> Transition:
        return await self._runtime.done()
