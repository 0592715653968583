"""Short-lived cache that collapses identical backend calls issued close together."""

from __future__ import annotations

import json
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .config import TOOL_CACHE_TTL_SECONDS


def canonical_args(args: Any) -> str:
    """Stable JSON text for tool arguments (sorted keys, compact separators)."""
    return json.dumps(args, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def make_key(tool_name: str, args: Any) -> str:
    """Cache / memo key for a tool call: ``<name>|<canonical args>``."""
    return f"{tool_name}|{canonical_args(args)}"


@dataclass
class _Entry:
    expires_at: float
    payload: Any


class ToolResultCache:
    """
    TTL cache keyed by tool name and canonical arguments.

    This is a dedupe window, not a correctness cache: entries are only dropped
    when read after expiry, so the map grows with the number of distinct calls.
    """

    def __init__(
        self,
        ttl_seconds: float = TOOL_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, _Entry] = {}

    def get(self, key: str) -> Any | None:
        """Return the cached payload, or None if missing or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            del self._entries[key]
            return None
        return entry.payload

    def set(self, key: str, payload: Any) -> None:
        self._entries[key] = _Entry(expires_at=self._clock() + self.ttl_seconds, payload=payload)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


_default_cache: ToolResultCache | None = None


def get_tool_cache() -> ToolResultCache:
    """Process-wide cache shared by all requests."""
    global _default_cache
    if _default_cache is None:
        _default_cache = ToolResultCache()
    return _default_cache
