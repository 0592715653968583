"""Loads the assistant's system prompt (wiki rules, preview-then-confirm flow) from disk."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from .config import DEFAULT_SYSTEM_PROMPT_PATH

logger = logging.getLogger(__name__)


def load_system_prompt(path: Path | str) -> str:
    """Read a prompt file; a missing or unreadable file yields an empty prompt."""
    path = Path(path)
    try:
        return path.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        logger.warning("System prompt file %s not found; chatting without one", path)
    except OSError as e:
        logger.warning("Could not read system prompt %s: %s", path, e)
    return ""


@lru_cache(maxsize=1)
def get_default_system_prompt() -> str:
    """The prompt at prompts/system_prompt.md, read once per process."""
    return load_system_prompt(DEFAULT_SYSTEM_PROMPT_PATH)
