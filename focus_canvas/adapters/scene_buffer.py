"""Headless editing surface holding the live scene in memory."""

from __future__ import annotations

import copy
from typing import Any


class SceneBuffer:
    """``EditingSurface`` used by the terminal adapter and tests."""

    __slots__ = ("_elements", "_app_state", "update_count")

    def __init__(
        self,
        elements: list[Any] | None = None,
        app_state: dict[str, Any] | None = None,
    ) -> None:
        self._elements: list[Any] = list(elements or [])
        self._app_state: dict[str, Any] = dict(app_state or {})
        self.update_count = 0

    def get_scene_elements(self) -> list[Any]:
        return copy.deepcopy(self._elements)

    def get_app_state(self) -> dict[str, Any]:
        return dict(self._app_state)

    def update_scene(self, elements: list[Any], app_state: dict[str, Any]) -> None:
        self._elements = copy.deepcopy(list(elements))
        self._app_state = dict(app_state)
        self.update_count += 1

    # Editing helpers standing in for user strokes.
    def add_element(self, element: Any) -> None:
        self._elements.append(copy.deepcopy(element))

    def remove_element(self, index: int) -> Any:
        return self._elements.pop(index)

    def clear(self) -> None:
        self._elements = []
