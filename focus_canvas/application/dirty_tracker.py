"""Dirty tracking for the live canvas against the last durable snapshot."""

from __future__ import annotations

import json

from focus_canvas.domain.canvas import EMPTY_ELEMENTS


def canonicalize(snapshot: str) -> str:
    """Re-serialize a JSON snapshot with sorted keys and compact separators.

    Snapshots that are not valid JSON are returned unchanged.
    """
    try:
        parsed = json.loads(snapshot)
    except (TypeError, ValueError):
        return snapshot
    return json.dumps(parsed, sort_keys=True, separators=(",", ":"))


def snapshots_differ(current: str, last_persisted: str) -> bool:
    """Structural inequality of two serialized element lists."""
    if current == last_persisted:
        return False
    return canonicalize(current) != canonicalize(last_persisted)


def is_empty_snapshot(snapshot: str) -> bool:
    return canonicalize(snapshot) == EMPTY_ELEMENTS


class DirtyTracker:
    """Owns the last-persisted element snapshot for one editing session."""

    __slots__ = ("_baseline", "_canonical_baseline")

    def __init__(self, baseline: str = "") -> None:
        self._baseline = baseline
        self._canonical_baseline = canonicalize(baseline) if baseline else ""

    @property
    def baseline(self) -> str:
        return self._baseline

    def is_dirty(self, current: str) -> bool:
        if current == self._baseline:
            return False
        return canonicalize(current) != self._canonical_baseline

    def should_save(self, current: str, *, force: bool = False) -> bool:
        """Decide whether ``current`` warrants a write.

        Forced saves always write. Otherwise the snapshot must differ from the
        baseline and must not be empty, so a transient blank scene right after
        a view switch never overwrites stored content.
        """
        if force:
            return True
        if not self.is_dirty(current):
            return False
        return not is_empty_snapshot(current)

    def mark_persisted(self, snapshot: str) -> None:
        self._baseline = snapshot
        self._canonical_baseline = canonicalize(snapshot)

    def reset(self, baseline: str = EMPTY_ELEMENTS) -> None:
        self.mark_persisted(baseline)
