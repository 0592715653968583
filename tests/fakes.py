"""Scripted provider and in-memory backend client shared by the test modules."""
from __future__ import annotations

import json
from typing import Any

from src.chat_orchestrator.models import Completion, FunctionCall, Message, ToolCall
from src.chat_orchestrator.providers import LLMProvider
from src.content_backend import ContentBackendError, ContentItem, PostSummary


def tool_call(call_id: str, name: str, args: dict[str, Any] | str) -> ToolCall:
    arguments = args if isinstance(args, str) else json.dumps(args)
    return ToolCall(id=call_id, function=FunctionCall(name=name, arguments=arguments))


def assistant(content: str = "", *calls: ToolCall) -> Message:
    return Message(role="assistant", content=content, tool_calls=list(calls) or None)


class ScriptedProvider(LLMProvider):
    """Returns the scripted replies in order; exceptions in the script are raised."""

    def __init__(self, replies: list[Message | Exception], tokens_per_call: int = 10) -> None:
        self.replies = list(replies)
        self.tokens_per_call = tokens_per_call
        self.calls: list[dict[str, Any]] = []

    async def complete(self, messages, *, model=None, tools=None, tool_choice="auto", **kwargs):
        self.calls.append(
            {"messages": list(messages), "model": model, "tools": tools, "tool_choice": tool_choice}
        )
        if not self.replies:
            raise AssertionError("provider called more often than scripted")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return Completion(message=reply, total_tokens=self.tokens_per_call)


class RecordingBackend:
    """Stands in for ContentBackendClient and records every call."""

    def __init__(
        self,
        items: list[ContentItem] | None = None,
        fail_search: bool = False,
        fail_writes: bool = False,
    ) -> None:
        self.items = items or []
        self.fail_search = fail_search
        self.fail_writes = fail_writes
        self.searches: list[tuple[str, str, str | None]] = []
        self.created: list[Any] = []
        self.updated: list[tuple[str, Any]] = []

    async def search_posts(self, query, kind, user_token=None):
        self.searches.append((query, kind, user_token))
        if self.fail_search:
            raise ContentBackendError("API request failed: 500 - Internal Server Error", status_code=500)
        return list(self.items)

    async def create_post(self, payload, user_token=None):
        self.created.append(payload)
        if self.fail_writes:
            raise ContentBackendError("API request failed: 504 - Gateway Timeout", status_code=504)
        return PostSummary(link="https://wiki.example/posts/99", title=payload.post.title)

    async def update_post(self, content_id, payload, user_token=None):
        self.updated.append((content_id, payload))
        return PostSummary(link=f"https://wiki.example/posts/{content_id}", title=payload.post.title)
