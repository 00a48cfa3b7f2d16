"""Use case: skip the active task."""

from __future__ import annotations

from focus_canvas.application.rotation import Transition
from focus_canvas.application.runtime import FocusRuntime


class SkipTask:
    """Application use case for rotating past the active task."""

    def __init__(self, runtime: FocusRuntime) -> None:
        self._runtime = runtime

    async def execute(self) -> Transition:
        return await self._runtime.skip()
