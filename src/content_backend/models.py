"""Request and result models for the content backend and the content tools."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ContentItem(BaseModel):
    """One search hit, normalized from whatever shape the backend returned."""

    title: str = "Untitled"
    type: str = ""
    id: str | None = None
    link: str | None = None


class PostBody(BaseModel):
    body: str


class NewPost(BaseModel):
    title: str
    post_type: str
    content: PostBody
    subject_id: str | None = None
    problem_id: str | None = None


class CreatePostPayload(BaseModel):
    post: NewPost


class PostChanges(BaseModel):
    title: str | None = None
    content: PostBody | None = None
    content_attributes: PostBody | None = None


class UpdatePostPayload(BaseModel):
    post: PostChanges = Field(default_factory=PostChanges)


class PostSummary(BaseModel):
    """Post returned by the backend after a create or update."""

    model_config = ConfigDict(extra="allow")

    link: str | None = None
    title: str | None = None
    content: Any = None
    post_type: str | None = None
    curated: bool | None = None
    group_id: str | None = None
    disabled: bool | None = None
    private: bool | None = None
    problem: str | None = None
    subject: str | None = None
