"""Conversion between the markdown-like text the model writes and the backend's HTML body."""

from __future__ import annotations

import html
import re

_H3 = re.compile(r"^###\s+(.+)")
_H2 = re.compile(r"^##\s+(.+)")
_H1 = re.compile(r"^#\s+(.+)")
_LIST_ITEM = re.compile(r"^[-*]\s+(.+)")

_BOLD = re.compile(r"\*\*([^*]+)\*\*")
_ITALIC = re.compile(r"\*([^*]+)\*")
_URL = re.compile(r"(https?://[^\s)<]+)(?![^<]*>)")

_BREAK_TAG = re.compile(r"<\s*br\s*/?\s*>", re.IGNORECASE)
_BLOCK_TAGS = "p|div|h[1-6]|li|ul|ol|blockquote|section|article"
_BLOCK_CLOSE = re.compile(rf"<\s*/\s*({_BLOCK_TAGS})\s*>", re.IGNORECASE)
_BLOCK_OPEN = re.compile(rf"<\s*({_BLOCK_TAGS})[^>]*>", re.IGNORECASE)
_ANY_TAG = re.compile(r"<[^>]+>")
_BLANK_RUN = re.compile(r"\n{3,}")


def _escape(text: str) -> str:
    return html.escape(text, quote=False)


def _inline(text: str) -> str:
    text = _BOLD.sub(r"<strong>\1</strong>", text)
    text = _ITALIC.sub(r"<em>\1</em>", text)
    return _URL.sub(r'<a href="\1" target="_blank" rel="noopener noreferrer">\1</a>', text)


def to_rich_html(text: str) -> str:
    """
    Convert plain or markdown-like text to a small HTML subset.

    Supports ``#``/``##``/``###`` headings, ``-``/``*`` bullet lists, ``**bold**``,
    ``*italic*``, bare http(s) URLs and paragraphs (one per non-blank line).
    Everything else is HTML-escaped.
    """
    lines = (text or "").replace("\r\n", "\n").split("\n")
    parts: list[str] = []
    items: list[str] = []

    def flush_list() -> None:
        if items:
            parts.append("<ul>")
            parts.extend(f"<li>{item}</li>" for item in items)
            parts.append("</ul>")
            items.clear()

    for raw in lines:
        line = raw.rstrip()
        if not line.strip():
            flush_list()
            continue
        for pattern, tag in ((_H3, "h3"), (_H2, "h2"), (_H1, "h1")):
            match = pattern.match(line)
            if match:
                flush_list()
                parts.append(f"<{tag}>{_inline(_escape(match.group(1)))}</{tag}>")
                break
        else:
            match = _LIST_ITEM.match(line)
            if match:
                items.append(_inline(_escape(match.group(1))))
                continue
            flush_list()
            parts.append(f"<p>{_inline(_escape(line))}</p>")
    flush_list()
    return "\n".join(parts)


def html_to_plain_text(markup: str) -> str:
    """Strip HTML back to readable text for previews."""
    if not markup:
        return ""
    text = _BREAK_TAG.sub("\n", markup)
    text = _BLOCK_CLOSE.sub("\n", text)
    text = _BLOCK_OPEN.sub("\n", text)
    text = _ANY_TAG.sub("", text)
    text = html.unescape(text).replace("\xa0", " ")
    text = "\n".join(line.rstrip() for line in text.split("\n"))
    text = _BLANK_RUN.sub("\n\n", text)
    return text.strip()
