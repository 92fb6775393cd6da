"""Comment and like request/response models.

Request bodies use the camelCase keys the web client sends
(``blogPostId``, ``commentId``).
"""

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from quill.models.post import AuthorSummary


def _non_blank(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Comment content cannot be empty")
    return value


CommentText = Annotated[str, Field(max_length=5000), AfterValidator(_non_blank)]


class CommentCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    blog_post_id: str = Field(..., alias="blogPostId", min_length=1)
    content: CommentText


class CommentUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    comment_id: str = Field(..., alias="commentId", min_length=1)
    content: CommentText


class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    blog_post_id: str
    user_id: str
    content: str
    created_at: datetime
    updated_at: datetime
    author: AuthorSummary | None = None


class LikeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    blog_post_id: str = Field(..., alias="blogPostId", min_length=1)
