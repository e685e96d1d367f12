# src/maintdesk/core/transcript.py

"""
Conversation transcript.

A transcript is the ordered history of turns (user / model / tool) that is
replayed to the model on every call. Turns are immutable; the transcript only
grows by append, or is swapped wholesale by the orchestration loop at the end
of a user turn.

Persisted as a JSON list under a single key of the KeyValueStore:
  [{"role": "user", "parts": [{"text": "hi"}]},
   {"role": "model", "parts": [{"toolCall": {"name": ..., "args": {...}, "id": ...}}]},
   {"role": "tool", "parts": [{"toolResult": {"name": ..., "response": {...}, "id": ...}}]}]
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from .ports import KeyValueStore

logger = logging.getLogger(__name__)

TRANSCRIPT_KEY = "transcript"


class Role(StrEnum):
    USER = "user"
    MODEL = "model"
    TOOL = "tool"


@dataclass(frozen=True, slots=True)
class TextPart:
    text: str


@dataclass(frozen=True, slots=True)
class ToolCallPart:
    name: str
    args: dict[str, Any] = field(default_factory=dict)
    call_id: str | None = None


@dataclass(frozen=True, slots=True)
class ToolResultPart:
    name: str
    response: dict[str, Any] = field(default_factory=dict)
    call_id: str | None = None


Part = TextPart | ToolCallPart | ToolResultPart


@dataclass(frozen=True, slots=True)
class Turn:
    role: Role
    parts: tuple[Part, ...] = ()

    @classmethod
    def user(cls, text: str) -> Turn:
        return cls(Role.USER, (TextPart(text),))

    @classmethod
    def model(cls, text: str) -> Turn:
        return cls(Role.MODEL, (TextPart(text),))

    @classmethod
    def tool_result(cls, name: str, response: dict[str, Any], call_id: str | None = None) -> Turn:
        return cls(Role.TOOL, (ToolResultPart(name, response, call_id),))

    def text(self) -> str | None:
        """First text-bearing part, if any."""
        for p in self.parts:
            if isinstance(p, TextPart):
                return p.text
        return None

    def tool_calls(self) -> list[ToolCallPart]:
        return [p for p in self.parts if isinstance(p, ToolCallPart)]


# ---- serialization ----


def _part_to_dict(part: Part) -> dict[str, Any]:
    if isinstance(part, TextPart):
        return {"text": part.text}
    if isinstance(part, ToolCallPart):
        return {"toolCall": {"name": part.name, "args": part.args, "id": part.call_id}}
    return {"toolResult": {"name": part.name, "response": part.response, "id": part.call_id}}


def _part_from_dict(data: dict[str, Any]) -> Part:
    if "text" in data:
        return TextPart(str(data["text"]))
    if "toolCall" in data:
        c = data["toolCall"]
        return ToolCallPart(str(c["name"]), dict(c.get("args") or {}), c.get("id"))
    if "toolResult" in data:
        r = data["toolResult"]
        return ToolResultPart(str(r["name"]), dict(r.get("response") or {}), r.get("id"))
    raise ValueError(f"Unknown transcript part: {sorted(data)}")


def turn_to_dict(turn: Turn) -> dict[str, Any]:
    return {"role": turn.role.value, "parts": [_part_to_dict(p) for p in turn.parts]}


def turn_from_dict(data: dict[str, Any]) -> Turn:
    return Turn(Role(data["role"]), tuple(_part_from_dict(p) for p in data.get("parts") or []))


def dumps_turns(turns: Iterable[Turn]) -> str:
    return json.dumps([turn_to_dict(t) for t in turns], ensure_ascii=False)


def loads_turns(raw: str) -> list[Turn]:
    data = json.loads(raw)
    if not isinstance(data, list):
        raise ValueError("transcript payload must be a JSON list")
    return [turn_from_dict(t) for t in data]


TranscriptListener = Callable[[list[Turn]], None]


class Transcript:
    """
    Ordered, persisted list of turns.

    - loaded once from the KeyValueStore (missing/corrupt -> empty, logged)
    - written after every change
    - listeners are called with a snapshot after every change
    """

    def __init__(self, kv: KeyValueStore, *, key: str = TRANSCRIPT_KEY) -> None:
        self._kv = kv
        self._key = key
        self._turns: list[Turn] = self._load()
        self._listeners: list[TranscriptListener] = []

    def _load(self) -> list[Turn]:
        try:
            raw = self._kv.get(self._key)
        except Exception:
            logger.exception("Failed to read transcript key=%s", self._key)
            return []
        if not raw:
            return []
        try:
            turns = loads_turns(raw)
        except Exception:
            logger.exception("Corrupt transcript under key=%s; starting empty.", self._key)
            return []
        logger.info("Loaded transcript: %d turns", len(turns))
        return turns

    def _save(self) -> None:
        try:
            self._kv.set(self._key, dumps_turns(self._turns))
        except Exception:
            logger.exception("Failed to persist transcript key=%s", self._key)

    @property
    def turns(self) -> list[Turn]:
        return list(self._turns)

    def __len__(self) -> int:
        return len(self._turns)

    def subscribe(self, listener: TranscriptListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def append(self, turn: Turn) -> None:
        self._turns.append(turn)
        self._changed()

    def replace(self, turns: Iterable[Turn]) -> None:
        """Swap the whole history at once (end of a user turn)."""
        self._turns = list(turns)
        self._changed()

    def _changed(self) -> None:
        self._save()
        snapshot = self.turns
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Transcript listener failed.")
