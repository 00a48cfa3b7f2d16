"""In-process event hub for host adapters."""

from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone


@dataclass(frozen=True, slots=True)
class FocusEvent:
    """Serializable runtime event emitted to adapters."""

    event_id: int
    event_type: str
    message: str
    timestamp: datetime
    related_task_id: int | None = None
    source: str = "runtime"


class EventHub:
    """Pub/sub hub with bounded history and fan-out queues.

    Publishing never blocks: a subscriber whose queue is full loses the event
    and the drop is counted.
    """

    __slots__ = (
        "_events",
        "_subscribers",
        "_subscriber_queue_size",
        "_next_event_id",
        "_next_subscriber_id",
        "_dropped_event_count",
    )

    def __init__(self, *, history_limit: int = 512, subscriber_queue_size: int = 256) -> None:
        self._events: deque[FocusEvent] = deque(maxlen=history_limit)
        self._subscribers: dict[int, asyncio.Queue[FocusEvent]] = {}
        self._subscriber_queue_size = subscriber_queue_size
        self._next_event_id = 1
        self._next_subscriber_id = 1
        self._dropped_event_count = 0

    def publish(
        self,
        *,
        event_type: str,
        message: str,
        related_task_id: int | None = None,
        source: str = "runtime",
    ) -> FocusEvent:
        event = FocusEvent(
            event_id=self._next_event_id,
            event_type=event_type,
            message=message,
            timestamp=datetime.now(timezone.utc),
            related_task_id=related_task_id,
            source=source,
        )
        self._next_event_id += 1
        self._events.append(event)

        for queue in self._subscribers.values():
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                self._dropped_event_count += 1

        return event

    def list_recent(self, *, limit: int = 200, event_type: str | None = None) -> list[FocusEvent]:
        if limit <= 0:
            return []
        events = list(self._events)
        if event_type is not None:
            events = [event for event in events if event.event_type == event_type]
        return events[-limit:]

    def subscribe(self, *, after_event_id: int | None = None) -> int:
        subscriber_id = self._next_subscriber_id
        self._next_subscriber_id += 1
        queue: asyncio.Queue[FocusEvent] = asyncio.Queue(maxsize=self._subscriber_queue_size)

        for event in self._events:
            if after_event_id is not None and event.event_id <= after_event_id:
                continue
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                self._dropped_event_count += 1
                break

        self._subscribers[subscriber_id] = queue
        return subscriber_id

    def unsubscribe(self, subscriber_id: int) -> None:
        self._subscribers.pop(subscriber_id, None)

    async def next_event(
        self,
        subscriber_id: int,
        *,
        timeout_seconds: float | None = None,
    ) -> FocusEvent | None:
        queue = self._subscribers.get(subscriber_id)
        if queue is None:
            return None

        try:
            return await asyncio.wait_for(queue.get(), timeout_seconds)
        except asyncio.TimeoutError:
            return None

    @property
    def dropped_event_count(self) -> int:
        return self._dropped_event_count

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @property
    def last_event(self) -> FocusEvent | None:
        if not self._events:
            return None
        return self._events[-1]
