"""Serve AI-designed post documents as standalone pages."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from quill.auth import get_optional_user
from quill.config import get_settings
from quill.db import get_db
from quill.models.post import PostStatus
from quill.services import posts as post_service
from quill.services.errors import NotFoundError
from quill.tables import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/website", tags=["website"])

NOT_FOUND_PAGE = """<!DOCTYPE html>
<html lang="en">
<head><meta charset="UTF-8"><title>Not found</title></head>
<body><h1>Website not found or not designed</h1></body>
</html>
"""


def _not_found() -> HTMLResponse:
    return HTMLResponse(content=NOT_FOUND_PAGE, status_code=404)


@router.get("/{doc_id}", response_class=HTMLResponse)
def serve_website(
    doc_id: str,
    user: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    """The stored document, placeholders intact, for AI-designed posts.

    ``doc_id`` is a published post's slug or a post id. Drafts are served to
    their owner only.
    """
    try:
        post = post_service.resolve_post(db, doc_id)
    except NotFoundError:
        logger.debug("No post for website %s", doc_id)
        return _not_found()

    if not post_service.is_visible_to(post, user):
        return _not_found()
    if not post.is_ai_designed or not post.ai_generated_html:
        logger.debug("Post %s has no designed website", post.id)
        return _not_found()

    if post.status == PostStatus.PUBLISHED.value:
        cache_control = f"public, max-age={get_settings().website_cache_seconds}"
    else:
        cache_control = "private, no-store"
    return HTMLResponse(
        content=post.ai_generated_html,
        headers={"Cache-Control": cache_control},
    )
