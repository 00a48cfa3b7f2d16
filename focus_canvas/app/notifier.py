"""Notification adapter that forwards runtime notifications into the event hub."""

from __future__ import annotations

import logging

from focus_canvas.app.events import EventHub
from focus_canvas.ports.notifications import NotificationEventType, NotificationPort


logger = logging.getLogger(__name__)


class EventingNotifier(NotificationPort):
    """Bridges runtime notifications to in-process host events."""

    __slots__ = ("_event_hub",)

    def __init__(self, event_hub: EventHub) -> None:
        self._event_hub = event_hub

    def notify(
        self,
        message: str,
        event_type: NotificationEventType,
        *,
        related_task_id: int | None = None,
    ) -> None:
        if event_type is NotificationEventType.ERROR:
            logger.warning("Runtime error event: %s", message)
        self._event_hub.publish(
            event_type=event_type.value,
            message=message,
            related_task_id=related_task_id,
            source="runtime",
        )
