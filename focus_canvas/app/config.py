"""Configuration loading for the focus-canvas host."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from focus_canvas.adapters.json_store import JsonFileStore
from focus_canvas.adapters.memory_store import InMemoryStore
from focus_canvas.application.runtime import RuntimeSettings
from focus_canvas.domain.task import DEFAULT_ESTIMATED_MINUTES
from focus_canvas.ports.persistence import PersistencePort


_TRUE_VALUES = {"1", "true", "yes", "on", "y"}
_FALSE_VALUES = {"0", "false", "no", "off", "n"}
LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

STORE_KINDS = ("json", "memory")


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Runtime configuration for booting the focus-canvas host."""

    store: str = "json"
    data_dir: str = ".focus_data"
    env_file: str = ".env"
    autosave_interval_seconds: float = 2.0
    tick_seconds: float = 1.0
    success_clear_seconds: float = 2.0
    error_clear_seconds: float = 3.0
    # 0 disables the bound on flush-class waits.
    guard_wait_timeout_seconds: float = 10.0
    default_task_minutes: int = DEFAULT_ESTIMATED_MINUTES
    log_level: str = "INFO"
    log_file: str | None = None
    enable_timers: bool = True

    def to_runtime_settings(self) -> RuntimeSettings:
        return RuntimeSettings(
            autosave_interval_seconds=self.autosave_interval_seconds,
            tick_seconds=self.tick_seconds,
            success_clear_seconds=self.success_clear_seconds,
            error_clear_seconds=self.error_clear_seconds,
            guard_wait_timeout_seconds=self.guard_wait_timeout_seconds or None,
            default_task_minutes=self.default_task_minutes,
        )


def load_app_config(env_file: str = ".env") -> AppConfig:
    """Load host config from env file with safe parsing defaults."""

    env = _parse_env_file(env_file)

    store = env.get("STORE", "json").strip().lower() or "json"
    if store not in STORE_KINDS:
        store = "json"
    data_dir = env.get("DATA_DIR", ".focus_data").strip() or ".focus_data"
    log_level = env.get("LOG_LEVEL", "INFO").strip().upper() or "INFO"
    if log_level not in LOG_LEVELS:
        log_level = "INFO"
    log_file = env.get("LOG_FILE", "").strip() or None

    return AppConfig(
        store=store,
        data_dir=data_dir,
        env_file=env_file,
        autosave_interval_seconds=_env_float(env, "AUTOSAVE_INTERVAL_SECONDS", default=2.0, minimum=0.1),
        tick_seconds=_env_float(env, "TICK_SECONDS", default=1.0, minimum=0.01),
        success_clear_seconds=_env_float(env, "SUCCESS_CLEAR_SECONDS", default=2.0, minimum=0.0),
        error_clear_seconds=_env_float(env, "ERROR_CLEAR_SECONDS", default=3.0, minimum=0.0),
        guard_wait_timeout_seconds=_env_float(env, "GUARD_WAIT_TIMEOUT_SECONDS", default=10.0, minimum=0.0),
        default_task_minutes=_env_int(
            env,
            "DEFAULT_TASK_MINUTES",
            default=DEFAULT_ESTIMATED_MINUTES,
            minimum=1,
        ),
        log_level=log_level,
        log_file=log_file,
        enable_timers=_env_bool(env, "ENABLE_TIMERS", default=True),
    )


def create_store(config: AppConfig) -> PersistencePort:
    normalized = config.store.strip().lower()
    if normalized == "json":
        return JsonFileStore(config.data_dir)
    if normalized == "memory":
        return InMemoryStore()

    options = ", ".join(STORE_KINDS)
    raise ValueError(f"Unknown STORE={config.store!r}. Supported stores: {options}")


def _parse_env_file(path: str) -> dict[str, str]:
    env_path = Path(path)
    if not env_path.exists():
        return {}

    env: dict[str, str] = {}
    for line in env_path.read_text(encoding="utf-8").splitlines():
        text = line.strip()
        if not text or text.startswith("#"):
            continue
        if text.startswith("export "):
            text = text[7:].strip()
        if "=" not in text:
            continue

        key, value = text.split("=", 1)
        key = key.strip()
        value = value.strip()

        if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
            value = value[1:-1]

        if key:
            env[key] = value

    return env


def _env_int(env: dict[str, str], key: str, default: int, minimum: int) -> int:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        parsed = int(raw)
    except ValueError:
        return default
    if parsed < minimum:
        return default
    return parsed


def _env_float(env: dict[str, str], key: str, default: float, minimum: float) -> float:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        parsed = float(raw)
    except ValueError:
        return default
    if parsed != parsed or parsed < minimum:
        return default
    return parsed


def _env_bool(env: dict[str, str], key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None or raw == "":
        return default

    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    return default
