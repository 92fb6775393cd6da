"""AI redesign endpoint."""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from quill.auth import get_current_user
from quill.db import get_db
from quill.models.design import AIDesignRequest
from quill.services import posts as post_service
from quill.services.ai_designer import redesign_post
from quill.tables import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai-design", tags=["ai-design"])


@router.post("")
async def redesign(
    body: AIDesignRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Restyle the caller's post from a free-text theme prompt.

    ``blogPostId`` may be the post id or its slug. The stored document is
    replaced only when the model returns a usable page.
    """
    if not body.blog_post_id:
        raise HTTPException(status_code=400, detail="Missing blogPostId")

    post = await asyncio.to_thread(post_service.resolve_post, db, body.blog_post_id)

    result = await redesign_post(db, post, user, body.theme_prompt)
    logger.info(
        "Post %s redesigned by %s (prompt %s)", post.id, user.id, result.analysis.verdict.value
    )
    return {"success": True, "message": "HTML modified successfully"}
