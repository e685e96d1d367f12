# src/maintdesk/llm/offline.py

from __future__ import annotations

from collections.abc import Sequence

from ..core.ports import ModelConfig, ModelResponse
from ..core.transcript import Role, ToolResultPart, Turn


class OfflineModelClient:
    """
    Offline deterministic model client used for demos when no external API is configured.

    Behavior:
    - After a tool result -> relays the tool's message
    - Otherwise -> a friendly offline notice echoing the user message (no tool calls)
    """

    async def generate(self, turns: Sequence[Turn], config: ModelConfig) -> ModelResponse:
        last = turns[-1] if turns else None

        if last is not None and last.role is Role.TOOL:
            for p in last.parts:
                if isinstance(p, ToolResultPart):
                    msg = str(p.response.get("message", "")) or "Done."
                    return ModelResponse(candidates=[Turn.model(msg)])

        user_text = ""
        for t in reversed(turns):
            if t.role is Role.USER:
                user_text = t.text() or ""
                break

        return ModelResponse(
            candidates=[
                Turn.model(
                    "Offline demo mode: no external LLM is configured.\n"
                    "Set MAINTDESK_OPENROUTER_API_KEY (and MAINTDESK_LLM_MODEL) to enable real responses.\n"
                    "Use /tasks to view the dashboard.\n\n"
                    f"You said: {user_text}"
                )
            ]
        )
