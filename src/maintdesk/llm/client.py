# src/maintdesk/llm/client.py

from __future__ import annotations

import json
import logging
import time
from collections.abc import Sequence
from typing import Any

import httpx
import openai
from openai import AsyncOpenAI

from ..core.ports import ModelConfig, ModelResponse, ToolCall
from ..core.transcript import Part, Role, TextPart, ToolCallPart, ToolResultPart, Turn

logger = logging.getLogger(__name__)


class ModelError(RuntimeError):
    """The hosted model call failed (network, auth, rate limit, provider error)."""


class ModelResponseError(ModelError):
    """The model answered, but the payload could not be interpreted."""


# ---- transcript -> chat-completions messages ----


def declarations_to_tools(declarations: Sequence[dict[str, Any]]) -> list[dict[str, Any]]:
    return [{"type": "function", "function": dict(d)} for d in declarations]


def _text_of(parts: Sequence[Part]) -> str:
    return "\n".join(p.text for p in parts if isinstance(p, TextPart))


def turns_to_messages(turns: Sequence[Turn], system_instruction: str) -> list[dict[str, Any]]:
    """
    Map transcript turns onto OpenAI-style chat messages.

    Tool calls without a stored id get a synthetic one derived from their
    position; the following tool result reuses it so the pair stays linked.
    """
    messages: list[dict[str, Any]] = [{"role": "system", "content": system_instruction}]
    pending_ids: list[tuple[str, str]] = []  # (tool name, call id) awaiting a result

    for i, turn in enumerate(turns):
        if turn.role is Role.USER:
            messages.append({"role": "user", "content": _text_of(turn.parts)})
            continue

        if turn.role is Role.MODEL:
            msg: dict[str, Any] = {"role": "assistant", "content": _text_of(turn.parts) or None}
            calls = []
            pending_ids = []
            for n, p in enumerate(turn.tool_calls()):
                call_id = p.call_id or f"call_{i}_{n}"
                pending_ids.append((p.name, call_id))
                calls.append(
                    {
                        "id": call_id,
                        "type": "function",
                        "function": {"name": p.name, "arguments": json.dumps(p.args, ensure_ascii=False)},
                    }
                )
            if calls:
                msg["tool_calls"] = calls
            elif msg["content"] is None:
                msg["content"] = ""
            messages.append(msg)
            continue

        for p in turn.parts:
            if not isinstance(p, ToolResultPart):
                continue
            call_id = p.call_id
            if call_id is None:
                match = next((pid for name, pid in pending_ids if name == p.name), None)
                call_id = match or (pending_ids[0][1] if pending_ids else f"call_{i}_0")
            messages.append(
                {
                    "role": "tool",
                    "tool_call_id": call_id,
                    "content": json.dumps(p.response, ensure_ascii=False),
                }
            )
        pending_ids = []

    return messages


# ---- completion -> ModelResponse ----


def _parse_arguments(name: str, raw: Any) -> dict[str, Any]:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return {}
    if isinstance(raw, dict):
        return raw
    try:
        val = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise ModelResponseError(f"Malformed arguments for tool {name}: {raw!r}") from e
    if not isinstance(val, dict):
        raise ModelResponseError(f"Tool {name} arguments must be a JSON object, got {raw!r}")
    return val


def _choice_to_turn(choice: Any) -> tuple[Turn, list[ToolCall]]:
    message = getattr(choice, "message", None)
    if message is None:
        raise ModelResponseError("Model response choice has no message.")

    parts: list[Part] = []
    content = getattr(message, "content", None)
    if content:
        parts.append(TextPart(str(content)))

    calls: list[ToolCall] = []
    for tc in getattr(message, "tool_calls", None) or []:
        fn = getattr(tc, "function", None)
        name = getattr(fn, "name", None)
        if not name:
            raise ModelResponseError("Tool call without a function name.")
        args = _parse_arguments(name, getattr(fn, "arguments", None))
        call_id = getattr(tc, "id", None)
        calls.append(ToolCall(name=name, args=args, call_id=call_id))
        parts.append(ToolCallPart(name, args, call_id))

    return Turn(Role.MODEL, tuple(parts)), calls


def response_from_completion(completion: Any) -> ModelResponse:
    choices = getattr(completion, "choices", None)
    if choices is None:
        raise ModelResponseError("Model response has no choices.")

    candidates: list[Turn] = []
    tool_calls: list[ToolCall] = []
    for idx, choice in enumerate(choices):
        turn, calls = _choice_to_turn(choice)
        candidates.append(turn)
        if idx == 0:
            tool_calls = calls
    return ModelResponse(candidates=candidates, tool_calls=tool_calls)


# ---- client ----


def _describe_error(exc: Exception) -> str:
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return "LLM authentication failed. Check your API key (MAINTDESK_OPENROUTER_API_KEY)."
    if isinstance(exc, openai.RateLimitError):
        return "LLM is rate-limited. Try again later."
    if isinstance(exc, openai.NotFoundError):
        return "LLM model is not available. Check MAINTDESK_LLM_MODEL."
    if isinstance(exc, openai.APIConnectionError):
        # APITimeoutError is a subclass.
        return "LLM network/timeout error. Try again later."
    return f"LLM error ({exc.__class__.__name__})."


class OpenRouterModelClient:
    """
    ModelClient for any OpenAI-compatible chat-completions endpoint (OpenRouter by default).

    - No retries: a failed call surfaces immediately to the orchestration loop.
    - Requests are bounded by connect/read timeouts from settings.
    """

    def __init__(self, settings: Any, *, client: AsyncOpenAI | None = None) -> None:
        api_key = getattr(settings, "openrouter_api_key", None)
        base_url = getattr(settings, "openrouter_base_url", "") or ""
        self._model = str(getattr(settings, "llm_model", "") or "").strip()
        self._headers: dict[str, str] = dict(getattr(settings, "extra_headers", {}) or {})

        if not self._model:
            raise RuntimeError("LLM model is not set. Set MAINTDESK_LLM_MODEL in your .env.")

        if client is None:
            if not api_key or not str(api_key).strip():
                raise RuntimeError("LLM API key is not set. Set MAINTDESK_OPENROUTER_API_KEY in your .env.")
            if not base_url.strip():
                raise RuntimeError("LLM base URL is not set. Set MAINTDESK_OPENROUTER_BASE_URL in your .env.")

            connect_s = float(getattr(settings, "llm_connect_timeout_seconds", 5.0))
            read_s = float(getattr(settings, "llm_read_timeout_seconds", 60.0))
            client = AsyncOpenAI(
                base_url=str(base_url),
                api_key=str(api_key),
                timeout=httpx.Timeout(connect=connect_s, read=read_s, write=10.0, pool=connect_s),
                max_retries=0,
            )
        self._client = client

    async def generate(self, turns: Sequence[Turn], config: ModelConfig) -> ModelResponse:
        messages = turns_to_messages(turns, config.system_instruction)
        tools = declarations_to_tools(config.tool_declarations)

        logger.info("LLM: model=%s messages=%d tools=%d", self._model, len(messages), len(tools))
        request: dict[str, Any] = {"model": self._model, "messages": messages}
        if tools:
            request["tools"] = tools
        if self._headers:
            request["extra_headers"] = self._headers

        t0 = time.monotonic()
        try:
            completion = await self._client.chat.completions.create(**request)
        except openai.OpenAIError as e:
            raise ModelError(_describe_error(e)) from e

        response = response_from_completion(completion)
        logger.info(
            "LLM: answered in %.2fs (candidates=%d tool_calls=%d)",
            time.monotonic() - t0,
            len(response.candidates),
            len(response.tool_calls),
        )
        return response
