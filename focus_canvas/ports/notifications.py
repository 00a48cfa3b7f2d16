"""Notification port for runtime events shown by adapters."""

from __future__ import annotations

from enum import Enum
from typing import Protocol


class NotificationEventType(str, Enum):
    """High-level runtime events exposed to notification adapters."""

    INFO = "info"
    ERROR = "error"
    SAVE_STATUS = "save_status"
    FOCUS_STARTED = "focus_started"
    TASK_ROTATED = "task_rotated"
    COUNTDOWN_EXPIRED = "countdown_expired"
    FOCUS_EXITED = "focus_exited"


class NotificationPort(Protocol):
    """Port for delivering immediate runtime notifications."""

    def notify(
        self,
        message: str,
        event_type: NotificationEventType,
        *,
        related_task_id: int | None = None,
    ) -> None:
        """Push a notification for a runtime event."""
