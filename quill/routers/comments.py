"""Comment endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from quill.auth import get_current_user, get_optional_user
from quill.db import get_db
from quill.models.social import CommentCreate, CommentResponse, CommentUpdate
from quill.services import social
from quill.tables import User

router = APIRouter(prefix="/comments", tags=["comments"])


@router.get("")
def list_comments(
    blog_post_id: str = Query(..., alias="blogPostId", min_length=1),
    limit: int | None = Query(default=None, ge=1, le=100),
    user: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    """Comments on a post, newest first. Pass ``limit`` for a preview."""
    comments = social.list_comments(db, blog_post_id, limit=limit, viewer=user)
    return {"success": True, "comments": [CommentResponse.model_validate(c) for c in comments]}


@router.post("")
def create_comment(
    body: CommentCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    comment = social.create_comment(db, user, body.blog_post_id, body.content)
    return {"success": True, "comment": CommentResponse.model_validate(comment)}


@router.put("")
def update_comment(
    body: CommentUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    comment = social.update_comment(db, user, body.comment_id, body.content)
    return {"success": True, "comment": CommentResponse.model_validate(comment)}


@router.delete("")
def delete_comment(
    comment_id: str = Query(..., alias="commentId", min_length=1),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    social.delete_comment(db, user, comment_id)
    return {"success": True}
