"""Use cases: enter focus mode, or focus a specific task."""

from __future__ import annotations

from focus_canvas.application.runtime import FocusRuntime
from focus_canvas.domain.countdown import CountdownState


class EnterFocus:
    """Application use case for entering focus mode on the first incomplete task."""

    def __init__(self, runtime: FocusRuntime) -> None:
        self._runtime = runtime

    async def execute(self) -> bool:
        return await self._runtime.enter_focus()


class StartFocusOnTask:
    """Application use case for focusing one chosen task."""

    def __init__(self, runtime: FocusRuntime) -> None:
        self._runtime = runtime

    async def execute(self, task_id: int) -> CountdownState:
        return await self._runtime.start_focus(task_id)
