"""Abstract LLM provider interface for the chat orchestrator."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Literal

from ..models import Completion, Message

ToolChoice = Literal["auto", "none"]


class LLMProvider(ABC):
    """
    Abstract chat-completions provider.

    The orchestrator only depends on this interface, which keeps the loop
    testable with scripted providers.
    """

    @abstractmethod
    async def complete(
        self,
        messages: list[Message],
        *,
        model: str | None = None,
        tools: list[dict[str, Any]] | None = None,
        tool_choice: ToolChoice = "auto",
        **kwargs: Any,
    ) -> Completion:
        """
        Non-streaming chat completion.

        Returns the assistant message (possibly with tool_calls) and token usage.

        Raises:
            ConfigurationError: If the provider is missing credentials.
            LLMServiceError: If the upstream call fails.
        """
        ...
