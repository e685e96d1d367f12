# src/maintdesk/cli/commands.py

from __future__ import annotations

from collections.abc import Callable

from ..connectors.dashboard import FILTERS, parse_filter, render_dashboard
from ..core.state import AppState

CommandHandler = Callable[[AppState, list[str]], str]


class CommandRegistry:
    """Simple slash-command registry used by connectors (/help, /tasks, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return handler(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    model = getattr(state.settings, "llm_model", "?")
    mode = type(state.model).__name__
    return (
        "Status:\n"
        f"  Model: {model} ({mode})\n"
        f"  Tools: {', '.join(state.registry.names)}\n"
        f"  Tasks: {len(state.task_store.tasks)}\n"
        f"  Transcript turns: {len(state.transcript)}\n"
        f"  Busy: {'yes' if state.session.is_loading else 'no'}"
    )


def cmd_tasks(state: AppState, args: list[str]) -> str:
    """
    /tasks               -> all tasks
    /tasks <filter>      -> all | pending | in-progress | completed
    """
    raw = " ".join(args) if args else None
    try:
        status = parse_filter(raw)
    except ValueError:
        return f"Unknown filter: {raw}. Use one of: {', '.join(FILTERS)}."
    return render_dashboard(state.task_store.tasks, status)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show model, task and transcript status.")
registry.register(
    "tasks",
    cmd_tasks,
    help_text="Show the dashboard: /tasks [all|pending|in-progress|completed].",
    aliases=["dashboard"],
)
