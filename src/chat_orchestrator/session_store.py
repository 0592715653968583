"""Conversation transcripts: in-memory store plus best-effort JSON files under data/conversations."""

from __future__ import annotations

import json
import logging
import uuid
from collections import OrderedDict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from .config import CONVERSATIONS_DIR, MAX_CONVERSATIONS, ensure_dirs
from .models import Message

logger = logging.getLogger(__name__)


def _iso_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_conversation_id() -> str:
    return str(uuid.uuid4())


class StoredConversation(BaseModel):
    """Payload stored in data/conversations/{conversation_id}.json."""

    conversation_id: str
    messages: list[Message] = Field(default_factory=list)
    updated_at: str = Field(default_factory=_iso_now)


class ConversationStore:
    """
    Short-term conversation memory keyed by conversation id.

    Holds at most ``max_conversations`` transcripts; reading or writing a
    conversation marks it as recently used and the least recently used one is
    evicted from memory when the bound is exceeded.
    """

    def __init__(self, max_conversations: int = MAX_CONVERSATIONS) -> None:
        self.max_conversations = max_conversations
        self._conversations: OrderedDict[str, list[Message]] = OrderedDict()

    def get(self, conversation_id: str) -> list[Message]:
        history = self._conversations.get(conversation_id)
        if history is None:
            return []
        self._conversations.move_to_end(conversation_id)
        return list(history)

    def set(self, conversation_id: str, messages: list[Message]) -> None:
        self._conversations[conversation_id] = list(messages)
        self._conversations.move_to_end(conversation_id)
        self._evict()

    def append(
        self,
        conversation_id: str,
        messages: list[Message],
        max_stored: int | None = None,
    ) -> list[Message]:
        """Append messages, keep only the newest max_stored, and return the stored list."""
        updated = self._conversations.get(conversation_id, []) + list(messages)
        if max_stored and max_stored > 0:
            updated = updated[-max_stored:]
        self.set(conversation_id, updated)
        return list(updated)

    def _evict(self) -> None:
        while self.max_conversations > 0 and len(self._conversations) > self.max_conversations:
            evicted, _ = self._conversations.popitem(last=False)
            logger.debug("Evicted conversation %s from memory", evicted)

    def __contains__(self, conversation_id: object) -> bool:
        return conversation_id in self._conversations

    def __len__(self) -> int:
        return len(self._conversations)


_default_store: ConversationStore | None = None


def get_conversation_store() -> ConversationStore:
    """Process-wide store created on first use."""
    global _default_store
    if _default_store is None:
        _default_store = ConversationStore()
    return _default_store


def set_conversation_store(store: ConversationStore | None) -> None:
    global _default_store
    _default_store = store


# ---------------------------------------------------------------------------
# Disk persistence
# ---------------------------------------------------------------------------


def _conversation_path(conversation_id: str, directory: Path | None = None) -> Path:
    if directory is None:
        ensure_dirs()
        directory = CONVERSATIONS_DIR
    else:
        directory.mkdir(parents=True, exist_ok=True)
    # Ids are opaque; keep them from escaping the directory.
    safe_id = Path(conversation_id).name
    return directory / f"{safe_id}.json"


def save_conversation(
    conversation_id: str,
    messages: list[Message],
    directory: Path | None = None,
) -> None:
    """Persist a transcript to disk. Failures are logged and ignored."""
    try:
        path = _conversation_path(conversation_id, directory)
        data = StoredConversation(conversation_id=conversation_id, messages=messages)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data.model_dump(exclude_none=True), f, indent=2, default=str)
    except (OSError, TypeError, ValueError) as e:
        logger.warning("Could not save conversation %s: %s", conversation_id, e)


def load_conversation(conversation_id: str, directory: Path | None = None) -> list[Message] | None:
    """Load a transcript from disk; None if missing or unreadable."""
    try:
        path = _conversation_path(conversation_id, directory)
        with open(path, encoding="utf-8") as f:
            raw: Any = json.load(f)
        return StoredConversation.model_validate(raw).messages
    except FileNotFoundError:
        return None
    except (OSError, ValueError, ValidationError) as e:
        logger.warning("Could not load conversation %s: %s", conversation_id, e)
        return None
