"""Client and formatting helpers for the content-management backend."""

from .client import (
    ContentBackendClient,
    ContentBackendError,
    get_backend_client,
    set_backend_client,
)
from .config import ContentBackendConfig
from .models import ContentItem, CreatePostPayload, PostSummary, UpdatePostPayload
from .rich_text import html_to_plain_text, to_rich_html

__all__ = [
    "ContentBackendClient",
    "ContentBackendConfig",
    "ContentBackendError",
    "ContentItem",
    "CreatePostPayload",
    "PostSummary",
    "UpdatePostPayload",
    "get_backend_client",
    "set_backend_client",
    "html_to_plain_text",
    "to_rich_html",
]
