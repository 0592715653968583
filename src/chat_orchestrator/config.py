"""Orchestrator configuration: paths, limits and defaults."""

from __future__ import annotations

import os
from pathlib import Path

try:  # Best-effort .env loading
    from dotenv import load_dotenv

    load_dotenv()
except ImportError:  # pragma: no cover - optional dependency
    pass

from main_config import (
    CONVERSATIONS_DIR as _CONVERSATIONS_DIR,
    DATA_DIR as _DATA_DIR,
    DEFAULT_SYSTEM_PROMPT_PATH as _DEFAULT_SYSTEM_PROMPT_PATH,
)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


# Path objects for use in this package (main_config uses os.path strings)
DATA_DIR = Path(_DATA_DIR)
CONVERSATIONS_DIR = Path(_CONVERSATIONS_DIR)
DEFAULT_SYSTEM_PROMPT_PATH = Path(_DEFAULT_SYSTEM_PROMPT_PATH)

DEFAULT_MODEL = os.getenv("OPENROUTER_MODEL") or "mistralai/mistral-7b-instruct:free"
DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
LLM_TIMEOUT_SECONDS = 60.0
APP_TITLE = "AI Chat Assistant"

# Prior messages sent to the model, including the system prompt (at least 2)
MAX_CONTEXT_MESSAGES = max(2, _env_int("CHAT_MAX_CONTEXT", 16))
# Messages kept per conversation in the store
MAX_STORED_MESSAGES = _env_int("CHAT_MAX_STORED", 64)
# Conversations kept in memory before the least recently used one is evicted
MAX_CONVERSATIONS = _env_int("CHAT_MAX_CONVERSATIONS", 1000)

DEFAULT_MAX_TOOL_ROUNDS = 5
TOOL_CACHE_TTL_SECONDS = 5.0

FALLBACK_REPLY = (
    "I've processed your request. Please let me know if you need any additional information."
)
FALLBACK_REPLY_AFTER_TOOLS = (
    "I've processed your request using the available tools. "
    "Please let me know if you need any additional information."
)


def ensure_dirs() -> None:
    """Create data and conversations directories if they do not exist."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    CONVERSATIONS_DIR.mkdir(parents=True, exist_ok=True)
