"""Self-clearing save-status indicator for display."""

from __future__ import annotations

import asyncio
from typing import Callable

from focus_canvas.domain.canvas import SaveStatus


StatusListener = Callable[[SaveStatus], None]


class SaveStatusIndicator:
    """Tracks ``idle | saving | success | error``; never read by save logic."""

    __slots__ = (
        "_status",
        "_listeners",
        "_clear_handle",
        "success_clear_seconds",
        "error_clear_seconds",
    )

    def __init__(
        self,
        *,
        success_clear_seconds: float = 2.0,
        error_clear_seconds: float = 3.0,
    ) -> None:
        self._status = SaveStatus.IDLE
        self._listeners: list[StatusListener] = []
        self._clear_handle: asyncio.TimerHandle | None = None
        self.success_clear_seconds = success_clear_seconds
        self.error_clear_seconds = error_clear_seconds

    @property
    def status(self) -> SaveStatus:
        return self._status

    def add_listener(self, listener: StatusListener) -> None:
        self._listeners.append(listener)

    def begin(self) -> None:
        self._set(SaveStatus.SAVING)

    def succeed(self, *, clear_after: float | None = None) -> None:
        self._set(SaveStatus.SUCCESS)
        self._schedule_clear(self.success_clear_seconds if clear_after is None else clear_after)

    def fail(self, *, clear_after: float | None = None) -> None:
        self._set(SaveStatus.ERROR)
        self._schedule_clear(self.error_clear_seconds if clear_after is None else clear_after)

    def reset(self) -> None:
        self._set(SaveStatus.IDLE)

    def close(self) -> None:
        self._cancel_clear()

    def _set(self, status: SaveStatus) -> None:
        self._cancel_clear()
        if status is self._status:
            return
        self._status = status
        for listener in list(self._listeners):
            listener(status)

    def _schedule_clear(self, delay: float) -> None:
        self._cancel_clear()
        loop = asyncio.get_running_loop()
        self._clear_handle = loop.call_later(delay, self._on_clear_timer)

    def _on_clear_timer(self) -> None:
        self._clear_handle = None
        self._set(SaveStatus.IDLE)

    def _cancel_clear(self) -> None:
        if self._clear_handle is not None:
            self._clear_handle.cancel()
            self._clear_handle = None
