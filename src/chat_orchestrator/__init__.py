"""Chat orchestrator: model–tool loop with confirmation gating, context bounds and conversation storage."""

from .loop import LoopOptions, LoopResult, run_loop
from .models import Completion, Message, ToolCall, ToolResult
from .providers import LLMProvider, OpenAIProvider
from .session_store import (
    ConversationStore,
    get_conversation_store,
    load_conversation,
    save_conversation,
    set_conversation_store,
)
from .llm import get_default_provider, set_default_provider
from .tool_cache import ToolResultCache

__all__ = [
    "run_loop",
    "LoopOptions",
    "LoopResult",
    "ConversationStore",
    "get_conversation_store",
    "set_conversation_store",
    "load_conversation",
    "save_conversation",
    "Completion",
    "Message",
    "ToolCall",
    "ToolResult",
    "ToolResultCache",
    "LLMProvider",
    "OpenAIProvider",
    "get_default_provider",
    "set_default_provider",
]
