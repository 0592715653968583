"""LLM facade: default provider and convenience function for the orchestrator."""

from __future__ import annotations

from typing import Any

from .config import DEFAULT_MODEL
from .models import Completion, Message
from .providers import LLMProvider, OpenAIProvider, ToolChoice

_default_provider: LLMProvider | None = None


def get_default_provider() -> LLMProvider:
    """Return the default LLM provider (OpenRouter through the OpenAI SDK)."""
    global _default_provider
    if _default_provider is None:
        _default_provider = OpenAIProvider(default_model=DEFAULT_MODEL)
    return _default_provider


def set_default_provider(provider: LLMProvider | None) -> None:
    """Replace the default LLM provider; None resets to the OpenRouter provider on next use."""
    global _default_provider
    _default_provider = provider


async def complete(
    messages: list[Message],
    model: str | None = None,
    tools: list[dict[str, Any]] | None = None,
    tool_choice: ToolChoice = "auto",
    provider: LLMProvider | None = None,
    **kwargs: Any,
) -> Completion:
    """Non-streaming chat. Uses the explicit provider if given, otherwise the default one."""
    p = provider or get_default_provider()
    return await p.complete(messages, model=model, tools=tools, tool_choice=tool_choice, **kwargs)
