"""Like endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from quill.auth import get_current_user
from quill.db import get_db
from quill.models.social import LikeRequest
from quill.services import social
from quill.tables import User

router = APIRouter(prefix="/like", tags=["likes"])


@router.post("")
def toggle_like(
    body: LikeRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Like the post, or unlike it if the caller already does."""
    state = social.toggle_like(db, user, body.blog_post_id)
    return {"success": True, "liked": state.liked, "likesCount": state.likes_count}


@router.get("/check")
def check_like(
    blog_post_id: str = Query(..., alias="blogPostId", min_length=1),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return {"success": True, "liked": social.is_liked(db, user, blog_post_id)}
