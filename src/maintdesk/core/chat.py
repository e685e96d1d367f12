# src/maintdesk/core/chat.py

"""
Core chat orchestration.

This module is transport-agnostic: connectors hand in user text and observe
results through the transcript (chat log) and the task store (dashboard).

One user message drives at most one tool call:

  user turn -> model -> [tool call -> tool result -> model] -> done

Key invariants:
- the user turn is published immediately; everything else the turn produces is
  published in one transcript replace at the end,
- on any failure the partial work is dropped and a single apology turn is
  appended after the user turn,
- only one turn is in flight at a time (is_loading).
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Final

from .ports import ModelClient, ModelConfig, ModelResponse, ToolCall
from .projection import ChatDisplayMessage, project_chat_log
from .tools import ToolRegistry, UnknownToolError
from .transcript import Role, ToolCallPart, Transcript, Turn

logger = logging.getLogger(__name__)

APOLOGY_TEXT: Final[str] = "Sorry, I encountered an error. Please try again."


class TurnPhase(StrEnum):
    IDLE = "idle"
    AWAITING_FIRST_RESPONSE = "awaiting_first_response"
    AWAITING_TOOL_RESULT = "awaiting_tool_result"
    AWAITING_FINAL_RESPONSE = "awaiting_final_response"
    DONE = "done"


def _model_turn(response: ModelResponse, honored_call: ToolCall | None = None) -> Turn:
    """
    Build the model turn to record from candidates[0].

    Only the honored tool call is kept (none when nothing is executed), so every
    recorded tool-call part has a matching tool result.
    """
    candidate = response.first_candidate()
    parts = [p for p in (candidate.parts if candidate is not None else ()) if not isinstance(p, ToolCallPart)]

    if honored_call is not None:
        parts.append(ToolCallPart(honored_call.name, honored_call.args, honored_call.call_id))
    elif candidate is not None and len(parts) != len(candidate.parts):
        logger.warning("Dropping tool calls from a model turn that will not execute them.")

    return Turn(Role.MODEL, tuple(parts))


class ChatSession:
    """
    Drives the transcript forward one user message at a time.

    UI-facing surface:
    - send_message(text)
    - chat_log (display projection of the transcript)
    - is_loading / phase
    """

    def __init__(
        self,
        model: ModelClient,
        registry: ToolRegistry,
        transcript: Transcript,
        *,
        system_instruction: str,
    ) -> None:
        self._model = model
        self._registry = registry
        self._transcript = transcript
        self._config = ModelConfig(
            tool_declarations=registry.declarations(),
            system_instruction=system_instruction,
        )
        self.phase = TurnPhase.IDLE
        self.is_loading = False

    @property
    def config(self) -> ModelConfig:
        return self._config

    @property
    def turns(self) -> list[Turn]:
        return self._transcript.turns

    @property
    def chat_log(self) -> list[ChatDisplayMessage]:
        return project_chat_log(self._transcript.turns)

    async def send_message(self, text: str) -> None:
        message = (text or "").strip()
        if not message:
            return

        if self.is_loading:
            logger.warning("Message ignored: a turn is already in flight.")
            return

        self.is_loading = True
        try:
            base = [*self._transcript.turns, Turn.user(message)]
            self._transcript.replace(base)

            try:
                turns = await self._run_turn(base)
            except UnknownToolError as e:
                logger.error("Model requested unknown tool: %s", e.name)
                turns = [*base, Turn.model(APOLOGY_TEXT)]
            except Exception:
                logger.exception("Error in conversation flow.")
                turns = [*base, Turn.model(APOLOGY_TEXT)]

            self.phase = TurnPhase.DONE
            self._transcript.replace(turns)
        finally:
            self.is_loading = False
            self.phase = TurnPhase.IDLE

    async def _run_turn(self, base: list[Turn]) -> list[Turn]:
        working = list(base)

        self.phase = TurnPhase.AWAITING_FIRST_RESPONSE
        response = await self._model.generate(working, self._config)

        call = response.first_tool_call()
        if call is None:
            working.append(_model_turn(response))
            return working

        if len(response.tool_calls) > 1:
            logger.warning(
                "Model requested %d tool calls; only the first (%s) is executed.",
                len(response.tool_calls),
                call.name,
            )

        working.append(_model_turn(response, call))

        self.phase = TurnPhase.AWAITING_TOOL_RESULT
        result = await self._registry.execute(call)
        working.append(Turn.tool_result(call.name, result, call.call_id))

        self.phase = TurnPhase.AWAITING_FINAL_RESPONSE
        final = await self._model.generate(working, self._config)
        working.append(_model_turn(final))
        return working
