"""Project domain entity."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from focus_canvas.errors import ValidationFailure


@dataclass(slots=True)
class Project:
    """Named scope owning one task list and one canvas document."""

    project_id: int
    name: str
    description: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def validate_project_name(name: str) -> str:
    cleaned = name.strip()
    if not cleaned:
        raise ValidationFailure("Project name is required")
    return cleaned
