"""Repeating asyncio tick source for the countdown and the autosave poll."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Awaitable, Callable


logger = logging.getLogger(__name__)

TickCallback = Callable[[], "Awaitable[None] | None"]


class Ticker:
    """Calls ``callback`` once per ``interval`` seconds while started.

    ``stop()`` never interrupts a callback that is already running; that run
    simply ends once the callback returns.
    """

    __slots__ = ("_interval", "_callback", "_name", "_task", "_generation", "_in_callback")

    def __init__(self, interval: float, callback: TickCallback, *, name: str = "ticker") -> None:
        if interval <= 0:
            raise ValueError("interval must be > 0")
        self._interval = interval
        self._callback = callback
        self._name = name
        self._task: asyncio.Task[None] | None = None
        self._generation = 0
        self._in_callback = False

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._generation += 1
        self._task = asyncio.get_running_loop().create_task(
            self._run(self._generation),
            name=self._name,
        )

    def stop(self) -> None:
        self._generation += 1
        task = self._task
        self._task = None
        if task is None or task.done():
            return
        if not self._in_callback:
            task.cancel()

    async def _run(self, generation: int) -> None:
        while generation == self._generation:
            await asyncio.sleep(self._interval)
            if generation != self._generation:
                return
            self._in_callback = True
            try:
                result = self._callback()
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("%s callback failed", self._name)
            finally:
                self._in_callback = False


TickerFactory = Callable[[float, TickCallback, str], Ticker]


def default_ticker_factory(interval: float, callback: TickCallback, name: str) -> Ticker:
    return Ticker(interval, callback, name=name)
