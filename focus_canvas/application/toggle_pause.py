"""Use case: pause or resume the countdown."""

from __future__ import annotations

from focus_canvas.application.runtime import FocusRuntime
from focus_canvas.domain.countdown import CountdownState


class TogglePause:
    def __init__(self, runtime: FocusRuntime) -> None:
        self._runtime = runtime

    def execute(self) -> CountdownState:
        return self._runtime.toggle_pause()
