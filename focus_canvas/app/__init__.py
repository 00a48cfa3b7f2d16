"""Host platform for focus-canvas adapters."""

from focus_canvas.app.config import AppConfig, load_app_config
from focus_canvas.app.host import AppHost

__all__ = [
    "AppConfig",
    "AppHost",
    "load_app_config",
]
