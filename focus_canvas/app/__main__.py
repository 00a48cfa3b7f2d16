"""CLI entrypoint for the focus-canvas host."""

from __future__ import annotations

import argparse
import asyncio
from dataclasses import replace

from focus_canvas.app.config import LOG_LEVELS, STORE_KINDS, AppConfig, load_app_config
from focus_canvas.app.host import AppHost
from focus_canvas.app.logging_setup import setup_logging


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the focus canvas terminal host")
    parser.add_argument("--env-file", default=".env", help="Path to env file")
    parser.add_argument("--store", choices=STORE_KINDS, help="Persistence backend")
    parser.add_argument("--data-dir", help="Directory for persisted JSON files")
    parser.add_argument(
        "--autosave-interval",
        type=float,
        help="Seconds between periodic canvas autosave checks (default: 2)",
    )
    parser.add_argument("--default-minutes", type=int, help="Default task estimate in minutes")
    parser.add_argument("--log-level", help="Console log level (DEBUG, INFO, ...)")
    parser.add_argument("--log-file", help="Write JSON-lines logs to this file")
    parser.add_argument(
        "--disable-timers",
        action="store_true",
        help="Disable the countdown and autosave timers",
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> AppConfig:
    config = load_app_config(args.env_file)

    if args.store:
        config = replace(config, store=args.store)
    if args.data_dir:
        config = replace(config, data_dir=args.data_dir)
    if args.autosave_interval and args.autosave_interval > 0:
        config = replace(config, autosave_interval_seconds=args.autosave_interval)
    if args.default_minutes and args.default_minutes > 0:
        config = replace(config, default_task_minutes=args.default_minutes)
    if args.log_level:
        level = args.log_level.upper()
        if level not in LOG_LEVELS:
            raise SystemExit(f"Unknown log level {args.log_level!r}")
        config = replace(config, log_level=level)
    if args.log_file:
        config = replace(config, log_file=args.log_file)
    if args.disable_timers:
        config = replace(config, enable_timers=False)
    return config


async def _serve(host: AppHost) -> None:
    try:
        await host.start()
    finally:
        await host.stop()


def main(argv: list[str] | None = None) -> None:
    config = build_config(parse_args(argv))
    setup_logging(config.log_level, config.log_file)

    try:
        host = AppHost(config)
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc
    try:
        asyncio.run(_serve(host))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
