"""Editing-surface port: the live canvas the user draws on."""

from __future__ import annotations

from typing import Any, Protocol


class EditingSurface(Protocol):
    """Sole mutator of the live scene while editing."""

    def get_scene_elements(self) -> list[Any]:
        """Return the current element list."""

    def get_app_state(self) -> dict[str, Any]:
        """Return the current view state."""

    def update_scene(self, elements: list[Any], app_state: dict[str, Any]) -> None:
        """Replace the scene shown on the surface."""
