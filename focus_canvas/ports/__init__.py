"""Ports implemented by focus-canvas adapters."""

from focus_canvas.ports.notifications import NotificationEventType, NotificationPort
from focus_canvas.ports.persistence import PersistencePort
from focus_canvas.ports.surface import EditingSurface

__all__ = [
    "EditingSurface",
    "NotificationEventType",
    "NotificationPort",
    "PersistencePort",
]
