"""OpenAI-compatible provider (OpenRouter by default) for the orchestrator."""

from __future__ import annotations

import logging
import os
from typing import Any

import openai
from openai import AsyncOpenAI

from ..config import APP_TITLE, DEFAULT_BASE_URL, DEFAULT_MODEL, LLM_TIMEOUT_SECONDS
from ..errors import ConfigurationError, LLMServiceError
from ..models import Completion, FunctionCall, Message, ToolCall
from .base import LLMProvider, ToolChoice

logger = logging.getLogger(__name__)


def _upstream_error_message(exc: openai.APIStatusError) -> str:
    """Prefer the error message from the upstream body over the SDK's summary."""
    body = exc.body
    if isinstance(body, dict):
        error = body.get("error", body)
        if isinstance(error, str):
            return error
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
    return exc.message or str(exc)


def extract_token_count(usage: Any) -> int:
    """Total tokens for one call (``total_tokens``, then ``total``), falling back to completion tokens, else 0."""
    if usage is None:
        return 0
    for attr in ("total_tokens", "total", "completion_tokens"):
        value = getattr(usage, attr, None)
        if isinstance(value, (int, float)) and value >= 0:
            return int(value)
    return 0


class OpenAIProvider(LLMProvider):
    """Chat Completions provider using the OpenAI SDK against an OpenAI-compatible API."""

    def __init__(
        self,
        default_model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        base_url: str | None = None,
        referer: str | None = None,
        timeout: float = LLM_TIMEOUT_SECONDS,
    ) -> None:
        self.default_model = default_model
        self.api_key = api_key if api_key is not None else os.getenv("OPENROUTER_API_KEY", "")
        self.base_url = base_url or os.getenv("OPENROUTER_BASE_URL") or DEFAULT_BASE_URL
        self.referer = referer or os.getenv("NEXT_PUBLIC_API_BASE_URL") or "http://localhost:3000"
        self.timeout = timeout
        self._client: AsyncOpenAI | None = None

    def _get_client(self) -> AsyncOpenAI:
        if not self.api_key:
            raise ConfigurationError("OpenRouter API key is not configured")
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                default_headers={"HTTP-Referer": self.referer, "X-Title": APP_TITLE},
            )
        return self._client

    @staticmethod
    def _to_openai_messages(messages: list[Message]) -> list[dict[str, Any]]:
        """Convert internal Message objects into chat message dicts."""
        return [m.to_chat_dict() for m in messages]

    @staticmethod
    def _parse_message(choice_message: Any) -> Message:
        """Map an SDK assistant message into a Message, keeping arguments as raw JSON text."""
        content = choice_message.content or ""
        if isinstance(content, list):
            # Multi-part content; join text fragments
            content = "".join(
                part.get("text", "") if isinstance(part, dict) else str(part)
                for part in content
            )
        tool_calls: list[ToolCall] = []
        for tc in getattr(choice_message, "tool_calls", None) or []:
            fn = getattr(tc, "function", None)
            if fn is None:
                continue
            tool_calls.append(
                ToolCall(
                    id=getattr(tc, "id", "") or "",
                    function=FunctionCall(
                        name=getattr(fn, "name", "") or "",
                        arguments=getattr(fn, "arguments", "") or "",
                    ),
                )
            )
        return Message(role="assistant", content=content, tool_calls=tool_calls or None)

    async def complete(
        self,
        messages: list[Message],
        *,
        model: str | None = None,
        tools: list[dict[str, Any]] | None = None,
        tool_choice: ToolChoice = "auto",
        **kwargs: Any,
    ) -> Completion:
        """Non-streaming chat using the Chat Completions endpoint."""
        client = self._get_client()
        params: dict[str, Any] = {
            "model": model or self.default_model,
            "messages": self._to_openai_messages(messages),
            **kwargs,
        }
        if tools:
            params["tools"] = tools
            params["tool_choice"] = tool_choice

        try:
            resp = await client.chat.completions.create(**params)
        except openai.APIStatusError as e:
            raise LLMServiceError(_upstream_error_message(e), status_code=e.status_code) from e
        except openai.APIError as e:
            raise LLMServiceError(str(e)) from e

        if not resp.choices or resp.choices[0].message is None:
            raise LLMServiceError("Invalid response from the language model service")

        message = self._parse_message(resp.choices[0].message)
        tokens = extract_token_count(resp.usage)
        logger.debug(
            "Completion model=%s tool_calls=%d tokens=%d",
            params["model"],
            len(message.tool_calls or []),
            tokens,
        )
        return Completion(message=message, total_tokens=tokens)
