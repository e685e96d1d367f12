# src/maintdesk/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..tasks.task_store import TaskStore
from .chat import ChatSession
from .ports import ModelClient
from .tools import ToolRegistry
from .transcript import Transcript


@dataclass
class AppState:
    """
    Application state container.

    Holds settings + concrete implementations wired by the composition root
    (cli/bootstrap.py). Connectors only talk to `session` and `task_store`.
    """

    settings: Any
    model: ModelClient
    task_store: TaskStore
    transcript: Transcript
    registry: ToolRegistry
    session: ChatSession
