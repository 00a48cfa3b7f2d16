"""Notification adapter writing runtime events to the log."""

from __future__ import annotations

import logging

from focus_canvas.ports.notifications import NotificationEventType, NotificationPort


class LoggingNotifier(NotificationPort):
    """Default notifier when no GUI event hub is wired."""

    __slots__ = ("_logger",)

    def __init__(self, logger_name: str = "focus_canvas.events") -> None:
        self._logger = logging.getLogger(logger_name)

    def notify(
        self,
        message: str,
        event_type: NotificationEventType,
        *,
        related_task_id: int | None = None,
    ) -> None:
        level = logging.WARNING if event_type is NotificationEventType.ERROR else logging.INFO
        if related_task_id is None:
            self._logger.log(level, "[%s] %s", event_type.value, message)
        else:
            self._logger.log(level, "[%s] %s (task %s)", event_type.value, message, related_task_id)
