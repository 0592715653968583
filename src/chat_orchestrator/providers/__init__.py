"""LLM providers: pluggable backends for the chat orchestrator."""

from .base import LLMProvider, ToolChoice
from .openai_provider import OpenAIProvider

__all__ = [
    "LLMProvider",
    "ToolChoice",
    "OpenAIProvider",
]
