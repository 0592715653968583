"""Back-fill placeholder links the model writes with real links from search results."""

from __future__ import annotations

import re

from .models import ExecutedTool
from .tools import ToolKind

_PLACEHOLDER_LINK = re.compile(r"\[([^\]]+)\]\(#\)")


def collect_search_links(executed: list[ExecutedTool]) -> list[str]:
    """Non-empty item links from executed find_content calls, in execution order."""
    links: list[str] = []
    for record in executed:
        if record.name != ToolKind.FIND_CONTENT.value:
            continue
        for item in record.result.payload.get("items") or []:
            link = item.get("link") if isinstance(item, dict) else None
            if isinstance(link, str) and link.strip():
                links.append(link)
    return links


def replace_placeholder_links(text: str, executed: list[ExecutedTool]) -> str:
    """
    Rewrite ``[label](#)`` links positionally: the Nth placeholder gets the Nth
    search link. Placeholders beyond the available links are left as they are.
    """
    if not text:
        return text
    links = collect_search_links(executed)
    if not links:
        return text
    remaining = iter(links)

    def _sub(match: re.Match[str]) -> str:
        url = next(remaining, None)
        if url is None:
            return match.group(0)
        return f"[{match.group(1)}]({url})"

    return _PLACEHOLDER_LINK.sub(_sub, text)
