"""Countdown state for focus mode."""

from __future__ import annotations

from dataclasses import dataclass

from .task import Task


@dataclass(frozen=True, slots=True)
class CountdownState:
    """Active task, seconds left, and pause flag.

    ``active_task is None`` exactly when ``remaining_seconds == 0``; that is
    the idle state in which no countdown runs.
    """

    active_task: Task | None = None
    remaining_seconds: int = 0
    paused: bool = False

    @property
    def is_idle(self) -> bool:
        return self.active_task is None

    @property
    def is_running(self) -> bool:
        return self.active_task is not None and not self.paused and self.remaining_seconds > 0

    @classmethod
    def idle(cls) -> "CountdownState":
        return cls()

    @classmethod
    def focused(cls, task: Task) -> "CountdownState":
        return cls(active_task=task, remaining_seconds=task.estimated_seconds, paused=False)
