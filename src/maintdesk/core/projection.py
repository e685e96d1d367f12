# src/maintdesk/core/projection.py

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum

from .transcript import Role, TextPart, Turn


class Sender(StrEnum):
    USER = "user"
    AI = "ai"


@dataclass(frozen=True, slots=True)
class ChatDisplayMessage:
    sender: Sender
    text: str


def project_chat_log(turns: Iterable[Turn]) -> list[ChatDisplayMessage]:
    """
    Derive the display chat log from a transcript.

    - user turn  -> its first part's text
    - model turn -> its first text part; tool-call-only turns are skipped
    - tool turn  -> never shown
    """
    out: list[ChatDisplayMessage] = []
    for turn in turns:
        if turn.role is Role.USER:
            first = turn.parts[0] if turn.parts else None
            if isinstance(first, TextPart):
                out.append(ChatDisplayMessage(Sender.USER, first.text))
        elif turn.role is Role.MODEL:
            text = turn.text()
            if text is not None and text.strip():
                out.append(ChatDisplayMessage(Sender.AI, text))
    return out
