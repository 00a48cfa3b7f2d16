"""Task domain entity."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from focus_canvas.errors import ValidationFailure


DEFAULT_ESTIMATED_MINUTES = 25


@dataclass(slots=True)
class Task:
    """Todo item owned by one project's task list."""

    task_id: int
    text: str
    project_id: int
    estimated_minutes: int = DEFAULT_ESTIMATED_MINUTES
    completed: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def estimated_seconds(self) -> int:
        return minutes_to_seconds(self.estimated_minutes)


def minutes_to_seconds(minutes: int) -> int:
    return minutes * 60


def format_countdown(seconds: int) -> str:
    """Render remaining seconds as ``MM:SS``."""
    minutes, secs = divmod(max(0, seconds), 60)
    return f"{minutes:02d}:{secs:02d}"


def validate_task_text(text: str) -> str:
    cleaned = text.strip()
    if not cleaned:
        raise ValidationFailure("Task text is required")
    return cleaned


def validate_estimated_minutes(minutes: int) -> int:
    if isinstance(minutes, bool) or not isinstance(minutes, int):
        raise ValidationFailure(f"Estimated minutes must be an integer, got {minutes!r}")
    if minutes <= 0:
        raise ValidationFailure("Estimated minutes must be > 0")
    return minutes
