"""Tool protocol and the content tools exposed to the model."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from src.content_backend import (
    ContentBackendClient,
    CreatePostPayload,
    UpdatePostPayload,
    get_backend_client,
    html_to_plain_text,
    to_rich_html,
)
from src.content_backend.models import NewPost, PostBody, PostChanges

from .errors import ToolArgumentsError
from .models import ToolDef, ToolResult
from .tool_cache import ToolResultCache, get_tool_cache, make_key

logger = logging.getLogger(__name__)


class ToolKind(str, Enum):
    """Closed set of tools the orchestrator can dispatch."""

    FIND_CONTENT = "find_content"
    CREATE_CONTENT = "create_content"
    EDIT_CONTENT = "edit_content"

    @classmethod
    def from_name(cls, name: str) -> ToolKind | None:
        try:
            return cls(name)
        except ValueError:
            return None


# ---------------------------------------------------------------------------
# Argument schemas
# ---------------------------------------------------------------------------


class _ToolArgs(BaseModel):
    # Models often send numeric ids; accept them as strings.
    model_config = ConfigDict(coerce_numbers_to_str=True)


class FindContentArgs(_ToolArgs):
    query: str
    type: str | None = "all"


class CreateContentArgs(_ToolArgs):
    title: str
    description: str
    content_type: str
    parent_id: str | None = None
    confirm: bool = False


class ContentChanges(_ToolArgs):
    title: str | None = None
    description: str | None = None


class EditContentArgs(_ToolArgs):
    content_id: str
    changes: ContentChanges
    confirm: bool = False


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "arguments"
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)


# ---------------------------------------------------------------------------
# Base tool
# ---------------------------------------------------------------------------


class BaseTool(ABC):
    """Base class for orchestrator tools."""

    args_model: type[BaseModel] = BaseModel

    @property
    @abstractmethod
    def kind(self) -> ToolKind:
        ...

    @property
    def name(self) -> str:
        return self.kind.value

    @property
    @abstractmethod
    def description(self) -> str:
        ...

    @property
    @abstractmethod
    def parameters(self) -> dict[str, Any]:
        """JSON Schema for parameters."""
        ...

    def parse_arguments(self, raw: Any) -> BaseModel:
        """Validate decoded JSON arguments against this tool's schema."""
        if not isinstance(raw, dict):
            raise ToolArgumentsError(self.name, "arguments must be a JSON object")
        try:
            return self.args_model.model_validate(raw)
        except ValidationError as e:
            raise ToolArgumentsError(self.name, _format_validation_error(e)) from e

    @abstractmethod
    async def execute(self, args: Any) -> ToolResult:
        ...

    def to_def(self) -> ToolDef:
        return ToolDef(name=self.name, description=self.description, parameters=self.parameters)

    def to_tool_schema(self) -> dict[str, Any]:
        """Standard function-calling schema for the chat-completions API."""
        return self.to_def().to_tool_schema()


class _ContentTool(BaseTool):
    def __init__(self, user_token: str | None, client: ContentBackendClient | None = None) -> None:
        self._user_token = user_token
        self._client = client or get_backend_client()


# ---------------------------------------------------------------------------
# find_content
# ---------------------------------------------------------------------------


class FindContentTool(_ContentTool):
    """Title search over subjects, problems and ideas, deduplicated through the tool cache."""

    args_model = FindContentArgs

    def __init__(
        self,
        user_token: str | None,
        client: ContentBackendClient | None = None,
        cache: ToolResultCache | None = None,
    ) -> None:
        super().__init__(user_token, client)
        self._cache = cache or get_tool_cache()

    @property
    def kind(self) -> ToolKind:
        return ToolKind.FIND_CONTENT

    @property
    def description(self) -> str:
        return "Search for content by type and query"

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "The search query for finding content"},
                "type": {
                    "type": "string",
                    "description": (
                        "The type of content to search for (subject, problem, idea, or all). "
                        'Defaults to "all" if not specified.'
                    ),
                },
            },
            "required": ["query"],
        }

    async def execute(self, args: FindContentArgs) -> ToolResult:
        kind = (args.type or "all").lower()
        key = make_key(self.name, {"query": args.query, "type": kind})
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Tool cache hit for %s", key)
            return ToolResult(success=True, payload=cached)

        items = await self._client.search_posts(args.query, kind, user_token=self._user_token)
        payload = {"items": [item.model_dump(exclude_none=True) for item in items]}
        self._cache.set(key, payload)
        return ToolResult(success=True, payload=payload)


# ---------------------------------------------------------------------------
# create_content / edit_content (preview until confirmed)
# ---------------------------------------------------------------------------


class CreateContentTool(_ContentTool):
    """Create a subject, problem or idea. Without confirm=true only a preview is returned."""

    args_model = CreateContentArgs

    @property
    def kind(self) -> ToolKind:
        return ToolKind.CREATE_CONTENT

    @property
    def description(self) -> str:
        return "Create new content (subject, problem, or idea)"

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "title": {"type": "string", "description": "The title of the content"},
                "description": {"type": "string", "description": "The description/body of the content"},
                "content_type": {
                    "type": "string",
                    "description": "The type of content: subject, problem, or idea",
                },
                "parent_id": {
                    "type": "string",
                    "description": "The parent ID (subject_id for problems, problem_id for ideas)",
                },
                "confirm": {
                    "type": "boolean",
                    "description": "Set to true only after the user reviews the preview and approves creation.",
                },
            },
            "required": ["title", "description", "content_type"],
        }

    async def execute(self, args: CreateContentArgs) -> ToolResult:
        html_body = to_rich_html(args.description)
        if not args.confirm:
            preview = {
                "title": args.title,
                "content_type": args.content_type,
                "description": args.description,
                "html": html_body,
                "plain_text": html_to_plain_text(html_body),
            }
            if args.parent_id:
                preview["parent_id"] = args.parent_id
            return ToolResult(
                success=True,
                payload={
                    "requires_confirmation": True,
                    "preview": preview,
                    "instructions": (
                        "Please confirm this post before creation by calling create_content "
                        'again with "confirm": true.'
                    ),
                },
            )

        post = NewPost(title=args.title, post_type=args.content_type, content=PostBody(body=html_body))
        if args.parent_id and args.content_type == "problem":
            post.subject_id = args.parent_id
        elif args.parent_id and args.content_type == "idea":
            post.problem_id = args.parent_id

        created = await self._client.create_post(CreatePostPayload(post=post), user_token=self._user_token)
        logger.info("Created %s %r", args.content_type, args.title)
        return ToolResult(
            success=True,
            payload={"post": created.model_dump(exclude_none=True) if created else None},
        )


class EditContentTool(_ContentTool):
    """Edit title and/or description of a post. Without confirm=true only a preview is returned."""

    args_model = EditContentArgs

    @property
    def kind(self) -> ToolKind:
        return ToolKind.EDIT_CONTENT

    @property
    def description(self) -> str:
        return "Edit existing content"

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "content_id": {"type": "string", "description": "The ID of the content to edit"},
                "changes": {
                    "type": "object",
                    "properties": {
                        "title": {"type": "string", "description": "New title for the content"},
                        "description": {"type": "string", "description": "New description for the content"},
                    },
                    "description": "The changes to apply to the content",
                },
                "confirm": {
                    "type": "boolean",
                    "description": "Set to true only after the user reviews the edit preview and approves updating.",
                },
            },
            "required": ["content_id", "changes"],
        }

    async def execute(self, args: EditContentArgs) -> ToolResult:
        title = args.changes.title
        description = args.changes.description
        html_body = to_rich_html(description) if description else None

        if not args.confirm:
            preview: dict[str, Any] = {"content_id": args.content_id}
            if title:
                preview["title"] = title
            if description and html_body is not None:
                preview["description"] = description
                preview["html"] = html_body
                preview["plain_text"] = html_to_plain_text(html_body)
            return ToolResult(
                success=True,
                payload={
                    "requires_confirmation": True,
                    "preview": preview,
                    "instructions": 'Please confirm this edit by calling edit_content again with "confirm": true.',
                },
            )

        changes = PostChanges()
        if title:
            changes.title = title
        if html_body:
            changes.content = PostBody(body=html_body)
            changes.content_attributes = PostBody(body=html_body)

        updated = await self._client.update_post(
            args.content_id,
            UpdatePostPayload(post=changes),
            user_token=self._user_token,
        )
        logger.info("Updated post %s", args.content_id)
        return ToolResult(
            success=True,
            payload={"post": updated.model_dump(exclude_none=True) if updated else None},
        )


def get_tools_for_user(
    user_token: str | None,
    client: ContentBackendClient | None = None,
    cache: ToolResultCache | None = None,
) -> list[BaseTool]:
    """Return the content tools bound to one caller's token."""
    return [
        FindContentTool(user_token, client, cache),
        CreateContentTool(user_token, client),
        EditContentTool(user_token, client),
    ]
