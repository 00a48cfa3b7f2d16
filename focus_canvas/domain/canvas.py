"""Canvas document value types and serialization helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
import json
from typing import Any


EMPTY_ELEMENTS = "[]"

# Only these app-state keys survive a save; the rest is view-local.
PERSISTED_APP_STATE_KEYS = ("zenModeEnabled", "viewBackgroundColor")


class SaveStatus(str, Enum):
    """Transient, display-only outcome of the latest canvas save."""

    IDLE = "idle"
    SAVING = "saving"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(slots=True)
class CanvasDocument:
    """Opaque drawing scene: an element list plus an app-state mapping."""

    elements: list[Any] = field(default_factory=list)
    app_state: dict[str, Any] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return len(self.elements) == 0

    def serialize_elements(self) -> str:
        return json.dumps(self.elements)

    def serialize_app_state(self) -> str:
        persisted = {key: self.app_state.get(key) for key in PERSISTED_APP_STATE_KEYS}
        return json.dumps(persisted)

    @classmethod
    def empty(cls) -> "CanvasDocument":
        return cls(elements=[], app_state={"zenModeEnabled": False})

    @classmethod
    def from_stored(cls, stored: "StoredCanvas") -> "CanvasDocument":
        elements = json.loads(stored.elements)
        app_state = json.loads(stored.app_state) if stored.app_state else {}
        if not isinstance(elements, list):
            raise ValueError("Stored canvas elements must be a JSON list")
        if not isinstance(app_state, dict):
            app_state = {}
        app_state["zenModeEnabled"] = bool(app_state.get("zenModeEnabled") or False)
        return cls(elements=elements, app_state=app_state)


@dataclass(frozen=True, slots=True)
class StoredCanvas:
    """Serialized canvas record as returned by the persistence port."""

    elements: str
    app_state: str
    project_id: int
    updated_at: datetime | None = None
