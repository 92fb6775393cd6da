"""Blog post endpoints."""

import logging

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from quill.auth import get_current_user, get_optional_user
from quill.db import get_db
from quill.models.post import PostCreate, PostResponse, PostStatus, PostSummary, PostUpdate
from quill.services import posts as post_service
from quill.services.errors import NotFoundError
from quill.services.html_template import fields_for_post, initial_template, render_template
from quill.tables import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/posts", tags=["posts"])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_post(
    data: PostCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a post owned by the caller."""
    post = post_service.create_post(db, user, data)
    return {"success": True, "post": PostResponse.model_validate(post)}


@router.get("")
def list_posts(
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    """Published posts, newest first."""
    posts = post_service.list_published(db, limit=limit, offset=offset)
    return {
        "success": True,
        "posts": [PostSummary.model_validate(p) for p in posts],
        "total": post_service.count_published(db),
    }


@router.get("/mine")
def list_my_posts(
    status_filter: PostStatus | None = Query(default=None, alias="status"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """The caller's posts in every status, newest first."""
    posts = post_service.list_user_posts(db, user, status_filter)
    return {"success": True, "posts": [PostSummary.model_validate(p) for p in posts]}


def _visible_post(db: Session, id_or_slug: str, user: User | None):
    post = post_service.resolve_post(db, id_or_slug)
    if not post_service.is_visible_to(post, user):
        raise NotFoundError("Blog post not found")
    return post


@router.get("/{id_or_slug}")
def get_post(
    id_or_slug: str,
    user: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    """A post by id or published slug. Drafts are visible to their owner only."""
    post = _visible_post(db, id_or_slug, user)
    return {"success": True, "post": PostResponse.model_validate(post)}


@router.get("/{id_or_slug}/page", response_class=HTMLResponse)
def render_post_page(
    id_or_slug: str,
    user: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    """The post's stored document with real values substituted in."""
    post = _visible_post(db, id_or_slug, user)
    document = post.ai_generated_html or initial_template()
    return HTMLResponse(content=render_template(document, fields_for_post(post)))


@router.put("/{post_id}")
def update_post(
    post_id: str,
    data: PostUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    post = post_service.update_post(db, user, post_id, data)
    return {"success": True, "post": PostResponse.model_validate(post)}


@router.delete("/{post_id}")
def delete_post(
    post_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    post_service.delete_post(db, user, post_id)
    return {"success": True}


@router.post("/{post_id}/view")
def record_view(post_id: str, db: Session = Depends(get_db)):
    """Count one view. Not deduplicated."""
    views = post_service.increment_views(db, post_id)
    return {"success": True, "views": views}


@router.post("/{post_id}/template/reset")
def reset_template(
    post_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Throw away the AI design and restore the default document."""
    post = post_service.reset_template(db, user, post_id)
    return {"success": True, "post": PostResponse.model_validate(post)}
