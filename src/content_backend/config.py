from __future__ import annotations

import os

from pydantic import BaseModel, Field

try:  # Best-effort .env loading
    from dotenv import load_dotenv

    load_dotenv()
except ImportError:  # pragma: no cover - optional dependency
    pass


def _default_base_url() -> str:
    return (
        os.getenv("CONTENT_API_BASE_URL")
        or os.getenv("NEXT_PUBLIC_API_BASE_URL")
        or "http://localhost:3000"
    )


def _default_timeout() -> float | None:
    raw = os.getenv("CONTENT_BACKEND_TIMEOUT")
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


class ContentBackendConfig(BaseModel):
    """Connection settings for the content-management backend."""

    base_url: str = Field(
        default_factory=_default_base_url,
        description="Base URL of the content backend (no trailing slash needed).",
    )
    service_token: str = Field(
        default_factory=lambda: os.getenv("POST_TOKEN", ""),
        description="Bearer token identifying this service to the backend.",
    )
    timeout: float | None = Field(
        default_factory=_default_timeout,
        description="Per-request timeout in seconds; None leaves requests unbounded.",
    )
