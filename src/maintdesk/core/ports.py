# src/maintdesk/core/ports.py

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps the model provider, persistence and export swappable and makes
testing easier.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from ..tasks.task_models import Task
    from .transcript import Turn


@dataclass(frozen=True, slots=True)
class ToolCall:
    """A tool invocation requested by the model: name + loosely typed args."""

    name: str
    args: dict[str, Any] = field(default_factory=dict)
    call_id: str | None = None


@dataclass(frozen=True, slots=True)
class ModelConfig:
    """Static bundle sent with every model request."""

    tool_declarations: list[dict[str, Any]]
    system_instruction: str


@dataclass(slots=True)
class ModelResponse:
    """
    Provider-neutral model response.

    The orchestration loop only ever reads candidates[0] and tool_calls[0].
    """

    candidates: list[Turn] = field(default_factory=list)
    tool_calls: list[ToolCall] = field(default_factory=list)

    def first_candidate(self) -> Turn | None:
        return self.candidates[0] if self.candidates else None

    def first_tool_call(self) -> ToolCall | None:
        return self.tool_calls[0] if self.tool_calls else None


class ModelClient(Protocol):
    """Hosted language model with function calling."""

    async def generate(self, turns: Sequence[Turn], config: ModelConfig) -> ModelResponse: ...


class KeyValueStore(Protocol):
    """Opaque string key/value persistence."""

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...


class SheetExporter(Protocol):
    """Renders tasks into a styled sheet and delivers it as a downloadable file."""

    async def export(self, tasks: Sequence[Task], *, title: str, filename: str) -> Path: ...
