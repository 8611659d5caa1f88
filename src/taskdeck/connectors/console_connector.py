# src/taskdeck/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState

logger = logging.getLogger(__name__)

# Commands that hit the repository with a mutation; they run in the background
# so the prompt stays usable (and /busy meaningful) while they are pending.
BACKGROUND_COMMANDS = frozenset({"add", "edit", "done", "del", "restore", "purge"})


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


def _command_name(line: str) -> str:
    parts = line[1:].split(maxsplit=1) if line.startswith("/") else []
    return parts[0].lower() if parts else ""


class BackgroundCommands:
    """
    Tracks commands started with asyncio.create_task.

    Replies (or failures) are delivered through `emit` when each task settles;
    drain() waits for whatever is still in flight.
    """

    def __init__(self, state: AppState, emit: Callable[[str], None]) -> None:
        self._state = state
        self._emit = emit
        self._tasks: set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._tasks)

    def start(self, line: str) -> asyncio.Task:
        task = asyncio.create_task(command_registry.handle(self._state, line, emit=self._emit))
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._finished(line, t))
        return task

    def _finished(self, line: str, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.info("Command cancelled: %s", line)
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Command failed: %s", line, exc_info=exc)
            self._emit("Command failed; see log for details.")
            return
        reply = task.result()
        if reply:
            self._emit(reply)

    async def drain(self) -> None:
        if not self._tasks:
            return
        logger.info("Waiting for %d pending command(s).", len(self._tasks))
        await asyncio.gather(*list(self._tasks), return_exceptions=True)


async def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started (backend=%s).", getattr(state.settings, "backend", "local"))
    _print_ts("[CONSOLE] Use /help for commands. Use /exit to quit.\n")

    # Immediate user-visible feedback while a repository call is pending.
    background = BackgroundCommands(state, _print_ts)

    # Initial load; a failure is shown, the console stays usable.
    await state.coordinator.refresh()
    if state.cache.error:
        _print_ts(f"[ERROR] {state.cache.error}")
    else:
        _print_ts(f"Loaded {len(state.cache.tasks)} tasks.")

    try:
        while True:
            try:
                # input() blocks; run it off the loop so in-flight work keeps going.
                user_input = (await asyncio.to_thread(input, ">>> ")).strip()
            except EOFError:
                logger.info("Console EOF received, exiting.")
                break
            except KeyboardInterrupt:
                logger.info("Console KeyboardInterrupt, exiting.")
                print()
                break

            if not user_input:
                continue

            if user_input.lower() in ("/exit", "/quit"):
                logger.info("Console exit command received.")
                break

            if not user_input.startswith("/"):
                user_input = "/add " + user_input if "|" in user_input else "/search " + user_input

            if _command_name(user_input) in BACKGROUND_COMMANDS:
                background.start(user_input)
                continue

            try:
                reply = await command_registry.handle(state, user_input, emit=_print_ts)
            except Exception:
                logger.exception("Command failed: %s", user_input)
                reply = "Command failed; see log for details."

            if reply:
                _print_ts(reply)
    finally:
        await background.drain()
