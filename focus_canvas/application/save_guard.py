"""Single-slot mutual exclusion for canvas save operations."""

from __future__ import annotations

import asyncio
from enum import Enum
import logging
from typing import Awaitable, Callable, TypeVar

from focus_canvas.errors import SaveGuardTimeout


logger = logging.getLogger(__name__)

T = TypeVar("T")


class GuardOutcome(Enum):
    SKIPPED = "skipped"


SKIPPED = GuardOutcome.SKIPPED


class SaveGuard:
    """Allows at most one in-flight save.

    Polling callers use ``wait=False`` and get ``SKIPPED`` while a save runs.
    Flush callers use ``wait=True`` and suspend on a release signal until the
    guard clears, bounded by ``wait_timeout`` seconds (``None`` waits forever).
    """

    __slots__ = ("_busy", "_released", "_wait_timeout", "_guarded_runs", "_skipped_saves")

    def __init__(self, *, wait_timeout: float | None = 10.0) -> None:
        self._busy = False
        self._released = asyncio.Event()
        self._released.set()
        self._wait_timeout = wait_timeout
        self._guarded_runs = 0
        self._skipped_saves = 0

    @property
    def in_flight(self) -> bool:
        return self._busy

    @property
    def skipped_saves(self) -> int:
        return self._skipped_saves

    @property
    def guarded_runs(self) -> int:
        """Callbacks run under the guard, including failed and no-op ones."""
        return self._guarded_runs

    def try_acquire(self) -> bool:
        if self._busy:
            return False
        self._busy = True
        self._released.clear()
        return True

    async def acquire(self) -> None:
        loop = asyncio.get_running_loop()
        deadline = None if self._wait_timeout is None else loop.time() + self._wait_timeout
        while not self.try_acquire():
            if deadline is None:
                await self._released.wait()
                continue
            remaining = deadline - loop.time()
            if remaining <= 0:
                raise SaveGuardTimeout(
                    f"Timed out after {self._wait_timeout:.1f}s waiting for an in-flight save"
                )
            try:
                await asyncio.wait_for(self._released.wait(), timeout=remaining)
            except asyncio.TimeoutError:
                continue

    async def wait_idle(self) -> None:
        """Suspend until no save is in flight, without taking the slot."""
        if not self._busy:
            return
        try:
            await asyncio.wait_for(self._released.wait(), timeout=self._wait_timeout)
        except asyncio.TimeoutError:
            raise SaveGuardTimeout(
                f"Timed out after {self._wait_timeout:.1f}s waiting for an in-flight save"
            ) from None

    def release(self) -> None:
        self._busy = False
        self._released.set()

    async def with_exclusive_save(
        self,
        fn: Callable[[], Awaitable[T]],
        *,
        wait: bool,
    ) -> T | GuardOutcome:
        if wait:
            await self.acquire()
        elif not self.try_acquire():
            self._skipped_saves += 1
            logger.debug("Save skipped; another save is in flight")
            return SKIPPED

        try:
            return await fn()
        finally:
            self._guarded_runs += 1
            self.release()
