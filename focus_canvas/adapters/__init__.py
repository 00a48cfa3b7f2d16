"""Infrastructure adapters for the focus-canvas core."""

from focus_canvas.adapters.clock import Ticker, TickerFactory, default_ticker_factory
from focus_canvas.adapters.json_store import JsonFileStore
from focus_canvas.adapters.log_notifier import LoggingNotifier
from focus_canvas.adapters.memory_store import InMemoryStore
from focus_canvas.adapters.scene_buffer import SceneBuffer

__all__ = [
    "InMemoryStore",
    "JsonFileStore",
    "LoggingNotifier",
    "SceneBuffer",
    "Ticker",
    "TickerFactory",
    "default_ticker_factory",
]
