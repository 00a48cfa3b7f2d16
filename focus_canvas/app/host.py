"""Host runtime that wires the focus core to the terminal adapter."""

from __future__ import annotations

import logging

from focus_canvas.adapters.scene_buffer import SceneBuffer
from focus_canvas.application.runtime import FocusRuntime
from focus_canvas.app.config import AppConfig, create_store
from focus_canvas.app.events import EventHub
from focus_canvas.app.facade import FocusAppFacade
from focus_canvas.app.notifier import EventingNotifier
from focus_canvas.app.terminal import TerminalAdapter
from focus_canvas.errors import FocusCanvasError


logger = logging.getLogger(__name__)


class AppHost:
    """Bootstraps storage, runtime, facade, canvas surface, and the adapter."""

    __slots__ = (
        "config",
        "event_hub",
        "notifier",
        "store",
        "runtime",
        "facade",
        "surface",
        "adapter",
    )

    def __init__(self, config: AppConfig) -> None:
        self.config = config
        self.event_hub = EventHub()
        self.notifier = EventingNotifier(self.event_hub)
        self.store = create_store(config)
        self.runtime = FocusRuntime(
            self.store,
            settings=config.to_runtime_settings(),
            notifier=self.notifier,
            enable_timers=config.enable_timers,
        )
        self.facade = FocusAppFacade(self.runtime, self.event_hub)
        self.surface = SceneBuffer()
        self.adapter = TerminalAdapter(self.facade)

    async def boot(self) -> None:
        """Load storage and mount the canvas. A failed load leaves the host usable for retry."""
        try:
            await self.runtime.initialize()
        except FocusCanvasError as exc:
            logger.error("Startup failed, use 'retry' once storage is reachable: %s", exc)
        await self.facade.attach_canvas(self.surface)

        project = self.runtime.current_project
        if project is not None:
            self.facade.publish_info(f"Loaded project '{project.name}' from {self.config.store} storage.")

    async def start(self) -> None:
        await self.boot()
        await self.adapter.run()

    async def stop(self) -> None:
        try:
            self.adapter.stop()
        finally:
            await self.runtime.close()
