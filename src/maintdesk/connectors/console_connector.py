# src/maintdesk/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.projection import Sender
from ..core.state import AppState
from ..tasks.task_models import Task
from .dashboard import render_dashboard

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def _on_tasks_changed(tasks: list[Task]) -> None:
    # Dashboard re-render on every task store change.
    print()
    print(render_dashboard(tasks))
    print()


async def run_console_loop(state: AppState) -> None:
    """
    Interactive console: the chat view + a dashboard re-rendered on task changes.

    Input is read off the event loop so model calls and file exports stay async.
    A turn runs to completion before the next line is read.
    """
    logger.info("Console connector started.")
    app_name = str(getattr(state.settings, "app_name", "maintdesk"))

    print(render_dashboard(state.task_store.tasks))
    print()
    for msg in state.session.chat_log[-6:]:
        who = "You" if msg.sender is Sender.USER else app_name
        print(f"    {who}: {msg.text}")
    _print_ts("[CONSOLE] Type your messages. Use /help for commands. Use /exit to quit.\n")

    unsubscribe = state.task_store.subscribe(_on_tasks_changed)
    try:
        while True:
            try:
                user_input = (await asyncio.to_thread(input, ">>> You: ")).strip()
            except EOFError:
                logger.info("Console EOF received, exiting.")
                break

            if not user_input:
                continue

            if user_input.lower() in ("/exit", "/quit"):
                logger.info("Console exit command received.")
                break

            try:
                cmd_response = command_registry.handle(state, user_input)
            except Exception:
                logger.exception("Command handler crashed.")
                cmd_response = "Internal error while handling a command."

            if cmd_response is not None:
                _print_ts(cmd_response)
                continue

            shown = len(state.session.chat_log)
            print(f"[{_ts_local()}] ... thinking")
            await state.session.send_message(user_input)

            replies = [m for m in state.session.chat_log[shown:] if m.sender is Sender.AI]
            if not replies:
                _print_ts("[LLM] No output (model produced no text).")
            for msg in replies:
                _print_ts(f"<<< {app_name}: {msg.text}\n")
    finally:
        unsubscribe()

    logger.info("Console connector finished.")
