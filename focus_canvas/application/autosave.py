"""Periodic and lifecycle-triggered canvas autosave."""

from __future__ import annotations

import logging

from focus_canvas.adapters.clock import Ticker, TickerFactory, default_ticker_factory
from focus_canvas.application.canvas_sync import CanvasSyncEngine


logger = logging.getLogger(__name__)

DEFAULT_AUTOSAVE_INTERVAL_SECONDS = 2.0


class AutosaveScheduler:
    """Polls the live canvas and saves it when it changed.

    The periodic path never queues: a tick that finds a save in flight is
    dropped. The close path performs one forced save.
    """

    __slots__ = ("_engine", "_interval", "_ticker_factory", "_ticker", "tick_count")

    def __init__(
        self,
        engine: CanvasSyncEngine,
        *,
        interval: float = DEFAULT_AUTOSAVE_INTERVAL_SECONDS,
        ticker_factory: TickerFactory = default_ticker_factory,
    ) -> None:
        self._engine = engine
        self._interval = interval
        self._ticker_factory = ticker_factory
        self._ticker: Ticker | None = None
        self.tick_count = 0

    @property
    def running(self) -> bool:
        return self._ticker is not None and self._ticker.running

    def start(self) -> None:
        if self._ticker is None:
            self._ticker = self._ticker_factory(self._interval, self.tick, "canvas-autosave")
        self._ticker.start()

    def stop(self) -> None:
        if self._ticker is not None:
            self._ticker.stop()

    async def tick(self) -> bool:
        """Periodic path; returns True when a write happened."""
        self.tick_count += 1
        engine = self._engine
        if not engine.ready:
            return False
        if engine.guard.in_flight:
            return False
        if not engine.is_dirty():
            return False
        return await engine.save(force=False, wait=False)

    async def on_close(self) -> bool:
        """Close path: one forced save unless a save or a reload is pending."""
        engine = self._engine
        if not engine.ready:
            return False
        if engine.guard.in_flight or engine.reload_pending:
            return False
        logger.info("Forcing canvas save for project %s on close", engine.project_id)
        return await engine.save(force=True, wait=False)
