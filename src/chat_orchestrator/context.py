"""Bounded context assembly for model requests."""

from __future__ import annotations

from .models import Message


def with_system_prompt(history: list[Message], system_prompt: str | None) -> list[Message]:
    """Return history with the system prompt at the start unless one is already present."""
    if not system_prompt or any(m.role == "system" for m in history):
        return list(history)
    return [Message(role="system", content=system_prompt), *history]


def trim_middle(messages: list[Message], max_messages: int) -> list[Message]:
    """
    Drop the oldest non-system messages once the list exceeds max_messages.

    A leading system message is kept unless the bound leaves room for nothing
    but the most recent message. The result never exceeds max_messages.
    """
    if max_messages <= 0 or len(messages) <= max_messages:
        return list(messages)
    head = messages[:1] if messages and messages[0].role == "system" else []
    keep = max_messages - len(head)
    if keep < 1:
        return messages[-max_messages:]
    return head + messages[-keep:]


def build_context(
    history: list[Message],
    new_messages: list[Message],
    system_prompt: str | None,
    max_messages: int,
) -> list[Message]:
    """Stored history + incoming messages, system prompt first, bounded to max_messages."""
    joined = with_system_prompt(history, system_prompt) + list(new_messages)
    return trim_middle(joined, max_messages)
