"""Error taxonomy shared by the focus-canvas core and its adapters."""

from __future__ import annotations


class FocusCanvasError(Exception):
    """Base class for recoverable focus-canvas failures."""


class InitializationFailure(FocusCanvasError):
    """Storage could not be prepared or the initial state could not be built."""


class LoadFailure(FocusCanvasError):
    """A project, task list, or canvas document could not be fetched."""


class SaveFailure(FocusCanvasError):
    """A persistence write failed."""


class SaveGuardTimeout(SaveFailure):
    """A waiting save gave up because another save never released the guard."""


class ValidationFailure(FocusCanvasError, ValueError):
    """A requested mutation was rejected before reaching storage."""


class StorageError(FocusCanvasError):
    """Raised by persistence adapters for storage-level faults."""
