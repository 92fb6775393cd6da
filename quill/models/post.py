"""Blog post data models."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PostStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


def _unique_tags(tags: list[str] | None) -> list[str] | None:
    if tags is None:
        return None
    seen: list[str] = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


class PostCreate(BaseModel):
    """Fields an author supplies when creating a post."""

    title: str = Field(..., min_length=1, max_length=500)
    subtitle: str = Field("", max_length=1000)
    content: str = ""
    category: str = Field("General", max_length=100)
    tags: list[str] = []
    featured_image_url: str | None = Field(None, max_length=2048)
    status: PostStatus = PostStatus.DRAFT

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Title is required")
        return value

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, value: list[str]) -> list[str]:
        return _unique_tags(value) or []


class PostUpdate(BaseModel):
    """Partial update; slug, counters, and AI design fields are ignored."""

    model_config = ConfigDict(extra="ignore")

    title: str | None = Field(None, min_length=1, max_length=500)
    subtitle: str | None = Field(None, max_length=1000)
    content: str | None = None
    category: str | None = Field(None, max_length=100)
    tags: list[str] | None = None
    featured_image_url: str | None = Field(None, max_length=2048)
    status: PostStatus | None = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        if not value:
            raise ValueError("Title cannot be empty")
        return value

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, value: list[str] | None) -> list[str] | None:
        return _unique_tags(value)


class AuthorSummary(BaseModel):
    """Public author fields joined onto posts and comments."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    first_name: str = ""
    last_name: str = ""
    profile_image_url: str = ""


class PostResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    slug: str
    title: str
    subtitle: str
    content: str
    category: str
    tags: list[str]
    featured_image_url: str | None = None
    read_time: int
    status: PostStatus
    published_at: datetime | None = None
    views: int
    likes: int
    is_ai_designed: bool
    ai_designed_at: datetime | None = None
    ai_website_settings: dict[str, Any] | None = None
    created_at: datetime
    updated_at: datetime
    author: AuthorSummary | None = None


class PostSummary(BaseModel):
    """List view: everything but the content and the stored document."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    slug: str
    title: str
    subtitle: str
    category: str
    tags: list[str]
    featured_image_url: str | None = None
    read_time: int
    status: PostStatus
    published_at: datetime | None = None
    views: int
    likes: int
    is_ai_designed: bool
    created_at: datetime
    author: AuthorSummary | None = None
