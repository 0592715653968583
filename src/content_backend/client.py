"""Async HTTP client for the content-management backend."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from .config import ContentBackendConfig
from .models import ContentItem, CreatePostPayload, PostSummary, UpdatePostPayload

logger = logging.getLogger(__name__)

_THREAD_MESSAGE_PATHS = (
    ("messages",),
    ("chat_thread", "messages"),
    ("thread", "messages"),
    ("conversation", "messages"),
)


class ContentBackendError(Exception):
    """The backend answered with a non-2xx status or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _is_post(value: Any) -> bool:
    return isinstance(value, dict) and (
        isinstance(value.get("title"), str) or isinstance(value.get("post_type"), str)
    )


def _posts(value: Any) -> list[dict[str, Any]]:
    return [v for v in value if _is_post(v)] if isinstance(value, list) else []


def _bucket_for(kind: str) -> str:
    if kind in ("problem", "problems"):
        return "problems"
    if kind in ("idea", "ideas"):
        return "ideas"
    return "subjects"


def normalize_search_content(content: Any, kind: str) -> list[ContentItem]:
    """
    Normalize the ``content`` field of a search response.

    The backend returns either a flat list of posts or buckets keyed by
    ``subjects``/``problems``/``ideas``. The bucket matching the requested kind
    wins; if it holds no posts, the first bucket that does is used.
    """
    source: list[dict[str, Any]] = []
    if isinstance(content, list):
        source = _posts(content)
    elif isinstance(content, dict):
        source = _posts(content.get(_bucket_for(kind)))
        if not source:
            source = next((_posts(v) for v in content.values() if _posts(v)), [])

    items = []
    for post in source:
        post_id = post.get("id")
        items.append(
            ContentItem(
                title=post.get("title") or "Untitled",
                type=post.get("post_type") or kind,
                id=str(post_id) if post_id is not None else None,
                link=post.get("link") or post.get("url") or post.get("post_url") or None,
            )
        )
    return items


class ContentBackendClient:
    """
    Thin wrapper around the backend's post and chat-thread endpoints.

    Every request carries the service bearer token; calls made on behalf of a
    user also send that user's token in the ``token`` header.
    """

    def __init__(
        self,
        config: ContentBackendConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or ContentBackendConfig()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url.rstrip("/"),
                timeout=self.config.timeout,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _headers(self, user_token: str | None) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Authorization": f"Bearer {self.config.service_token}",
        }
        if user_token:
            headers["token"] = user_token
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        user_token: str | None = None,
        params: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        client = self._get_client()
        try:
            response = await client.request(
                method,
                path,
                params=params,
                json=json_body,
                headers=self._headers(user_token),
            )
        except httpx.HTTPError as e:
            raise ContentBackendError(f"API request failed: {e}") from e

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        if response.is_error:
            detail = payload.get("message") or response.reason_phrase
            raise ContentBackendError(
                f"API request failed: {response.status_code} - {detail}",
                status_code=response.status_code,
            )
        return payload

    async def search_posts(self, query: str, kind: str, user_token: str | None = None) -> list[ContentItem]:
        """Search posts of the given kind whose title contains query."""
        payload = await self._request(
            "GET",
            "/api/v1/posts",
            user_token=user_token,
            params={"type": kind, "q[title_cont]": query},
        )
        items = normalize_search_content(payload.get("content"), kind)
        logger.debug("Search %r (%s) returned %d items", query, kind, len(items))
        return items

    async def create_post(self, payload: CreatePostPayload, user_token: str | None = None) -> PostSummary | None:
        data = await self._request(
            "POST",
            "/api/v1/posts",
            user_token=user_token,
            json_body=payload.model_dump(exclude_none=True),
        )
        return _post_summary(data)

    async def update_post(
        self,
        content_id: str,
        payload: UpdatePostPayload,
        user_token: str | None = None,
    ) -> PostSummary | None:
        data = await self._request(
            "PUT",
            f"/posts/{content_id}/api_update",
            user_token=user_token,
            json_body=payload.model_dump(exclude_none=True),
        )
        return _post_summary(data)

    async def get_chat_thread(self, conversation_id: str, user_token: str | None = None) -> list[dict[str, Any]] | None:
        """Stored messages of a chat thread, or None when unavailable for any reason."""
        client = self._get_client()
        headers = {"Content-Type": "application/json"}
        if user_token:
            headers["Authorization"] = user_token
            headers["token"] = user_token
        if self.config.service_token:
            headers["X-Internal-Auth"] = self.config.service_token
        try:
            response = await client.get(f"/api/v1/chat_threads/{conversation_id}", headers=headers)
        except httpx.HTTPError as e:
            logger.warning("Failed to load backend messages for %s: %s", conversation_id, e)
            return None
        if response.is_error:
            logger.warning("Backend returned %s for chat thread %s", response.status_code, conversation_id)
            return None
        try:
            data = response.json()
        except ValueError:
            return None
        if not isinstance(data, dict):
            return None
        for path in _THREAD_MESSAGE_PATHS:
            node: Any = data
            for key in path:
                node = node.get(key) if isinstance(node, dict) else None
            if isinstance(node, list) and node:
                logger.info("Retrieved %d messages from backend for %s", len(node), conversation_id)
                return node
        return None

    async def decrease_tokens(self, user_token: str, amount: int) -> None:
        """Charge the user's token balance. Best-effort: failures are logged, never raised."""
        try:
            await self._request(
                "POST",
                "/api/v1/tokens/decrease",
                json_body={"utoken": user_token, "decrement_by": max(1, amount)},
            )
        except ContentBackendError as e:
            logger.warning("Token decrement failed: %s", e)


def _post_summary(data: dict[str, Any]) -> PostSummary | None:
    content = data.get("content")
    post = content.get("post") if isinstance(content, dict) else None
    return PostSummary.model_validate(post) if isinstance(post, dict) else None


_default_client: ContentBackendClient | None = None


def get_backend_client() -> ContentBackendClient:
    global _default_client
    if _default_client is None:
        _default_client = ContentBackendClient()
    return _default_client


def set_backend_client(client: ContentBackendClient | None) -> None:
    global _default_client
    _default_client = client
