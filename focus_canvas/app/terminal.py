"""Terminal adapter for interactive operation."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from typing import Any
from uuid import uuid4

from focus_canvas.app.facade import FocusAppFacade
from focus_canvas.errors import FocusCanvasError


logger = logging.getLogger(__name__)

HELP_TEXT = """\
projects | project <id> | newproject <name> | delproject <id>
tasks | add [minutes] <text> | rename <id> <text> | toggle <id> | rm <id>
focus [task id] | pause | skip | done | exit
canvas | draw <text> | erase <index> | save
status | events | diagnostics | retry | quit"""

LIVE_EVENT_TYPES = frozenset(
    {"focus_started", "task_rotated", "countdown_expired", "focus_exited", "error"}
)


class TerminalAdapter:
    """Line-oriented adapter that reads commands without blocking the event loop."""

    __slots__ = ("_facade", "_running", "_prompt", "_echo_task")

    def __init__(self, facade: FocusAppFacade, *, prompt: str = "focus> ") -> None:
        self._facade = facade
        self._running = False
        self._prompt = prompt
        self._echo_task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._running

    async def run(self) -> None:
        self._running = True
        print("Focus canvas terminal started. Type 'help' for commands.")
        self.start_event_echo()

        while self._running:
            try:
                raw = (await asyncio.to_thread(input, self._prompt)).strip()
            except (EOFError, KeyboardInterrupt):
                break

            if not raw:
                continue
            if raw in {"quit", "q"}:
                break

            try:
                result = await self.handle(raw)
            except (FocusCanvasError, ValueError) as exc:
                logger.debug("Command %r failed: %s", raw, exc)
                print(f"Error: {exc}")
                continue
            if result is not None:
                print(json.dumps(result, indent=2))

        await self.stop_event_echo()
        self.stop()

    def stop(self) -> None:
        self._running = False
        if self._echo_task is not None:
            self._echo_task.cancel()
            self._echo_task = None

    # ------------------------------------------------------------------
    # Live events
    # ------------------------------------------------------------------
    def start_event_echo(self) -> None:
        """Print focus transitions and errors as they are published."""
        if self._echo_task is not None:
            return
        recent = self._facade.list_events(limit=1)
        after_event_id = recent[-1]["event_id"] if recent else None
        subscriber_id = self._facade.subscribe_events(after_event_id=after_event_id)
        self._echo_task = asyncio.create_task(self._echo_events(subscriber_id), name="terminal-events")

    async def stop_event_echo(self) -> None:
        task = self._echo_task
        self._echo_task = None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _echo_events(self, subscriber_id: int) -> None:
        try:
            while True:
                event = await self._facade.next_event(subscriber_id)
                if event is None:
                    return
                if event["event_type"] in LIVE_EVENT_TYPES:
                    print(f"[{event['event_type']}] {event['message']}")
        finally:
            self._facade.unsubscribe_events(subscriber_id)

    async def handle(self, raw: str) -> Any:
        """Run one command line and return its printable result."""
        command, _, rest = raw.partition(" ")
        command = command.lower()
        rest = rest.strip()
        facade = self._facade

        if command == "help":
            print(HELP_TEXT)
            return None
        if command == "projects":
            return facade.list_projects()
        if command == "project":
            return await facade.select_project(project_id=_int_arg(rest, "project id"))
        if command == "newproject":
            return await facade.create_project(name=rest)
        if command == "delproject":
            return await facade.delete_project(project_id=_int_arg(rest, "project id"))
        if command == "tasks":
            return facade.list_tasks()
        if command == "add":
            minutes, text = _split_minutes(rest)
            return await facade.create_task(text=text, estimated_minutes=minutes)
        if command == "rename":
            task_id, _, text = rest.partition(" ")
            return await facade.update_task(task_id=_int_arg(task_id, "task id"), text=text)
        if command == "toggle":
            return await facade.toggle_task(task_id=_int_arg(rest, "task id"))
        if command == "rm":
            return await facade.delete_task(task_id=_int_arg(rest, "task id"))
        if command == "focus":
            if rest:
                return await facade.start_focus(task_id=_int_arg(rest, "task id"))
            return await facade.enter_focus()
        if command == "pause":
            return await facade.toggle_pause()
        if command == "skip":
            return await facade.skip()
        if command == "done":
            return await facade.done()
        if command == "exit":
            return await facade.exit_focus()
        if command == "canvas":
            return facade.canvas_state()
        if command == "draw":
            if not rest:
                raise ValueError("draw needs some text")
            return await facade.draw({"id": uuid4().hex[:8], "type": "text", "text": rest})
        if command == "erase":
            return await facade.erase(_int_arg(rest, "element index"))
        if command == "save":
            return await facade.save_canvas()
        if command == "status":
            return facade.runtime_state()
        if command == "events":
            return facade.list_events(limit=20)
        if command == "diagnostics":
            return facade.diagnostics()
        if command == "retry":
            return await facade.retry()

        raise ValueError(f"Unknown command {command!r}. Type 'help'.")


def _int_arg(value: str, label: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Expected a numeric {label}, got {value!r}") from None


def _split_minutes(rest: str) -> tuple[int | None, str]:
    head, _, tail = rest.partition(" ")
    if head.isdigit() and tail.strip():
        return int(head), tail.strip()
    return None, rest
