"""Blog post management.

Every mutating operation re-checks ownership against the stored row before
writing. Counters are never written from request data; they move only
through the atomic UPDATE helpers in this module and ``social``.
"""

import logging
import re
from datetime import datetime, timezone

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from quill.models.post import PostCreate, PostStatus, PostUpdate
from quill.services import events
from quill.services.errors import NotFoundError, OwnershipError
from quill.services.html_template import initial_template
from quill.services.read_time import calculate_read_time
from quill.services.rich_text import extract_featured_image
from quill.services.slugs import generate_unique_slug
from quill.tables import BlogPost, User

logger = logging.getLogger(__name__)

MAX_SLUG_ATTEMPTS = 3

_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def require_owner(
    post: BlogPost, user: User, message: str = "You can only modify your own blog posts"
) -> None:
    if post.user_id != user.id:
        raise OwnershipError(message)


def get_post(db: Session, post_id: str) -> BlogPost:
    """Fetch a post by id with its author loaded.

    Raises:
        NotFoundError: No post with that id.
    """
    post = db.scalar(
        select(BlogPost).options(joinedload(BlogPost.author)).where(BlogPost.id == post_id)
    )
    if post is None:
        raise NotFoundError("Blog post not found")
    return post


def get_post_by_slug(db: Session, slug: str) -> BlogPost:
    """Fetch a published post by slug."""
    post = db.scalar(
        select(BlogPost)
        .options(joinedload(BlogPost.author))
        .where(BlogPost.slug == slug, BlogPost.status == PostStatus.PUBLISHED.value)
    )
    if post is None:
        raise NotFoundError("Blog post not found")
    return post


def resolve_post(db: Session, id_or_slug: str) -> BlogPost:
    """Look up by id when the key looks like a UUID, otherwise by published slug."""
    if _UUID_RE.match(id_or_slug):
        try:
            return get_post(db, id_or_slug)
        except NotFoundError:
            pass
    return get_post_by_slug(db, id_or_slug)


def is_visible_to(post: BlogPost, user: User | None) -> bool:
    """Published posts are public; drafts and archived posts only to their owner."""
    if post.status == PostStatus.PUBLISHED.value:
        return True
    return user is not None and post.user_id == user.id


def create_post(db: Session, user: User, data: PostCreate) -> BlogPost:
    """Create a post with a unique slug, computed read time, and the initial template."""
    featured = data.featured_image_url or extract_featured_image(data.content)
    now = _now()

    for attempt in range(1, MAX_SLUG_ATTEMPTS + 1):
        post = BlogPost(
            user_id=user.id,
            slug=generate_unique_slug(db, data.title),
            title=data.title,
            subtitle=data.subtitle,
            content=data.content,
            category=data.category or "General",
            tags=list(data.tags),
            featured_image_url=featured,
            read_time=calculate_read_time(data.content),
            status=data.status.value,
            published_at=now if data.status is PostStatus.PUBLISHED else None,
            ai_generated_html=initial_template(),
            is_ai_designed=False,
            views=0,
            likes=0,
        )
        db.add(post)
        try:
            db.commit()
            break
        except IntegrityError:
            # Another request took the same slug between lookup and insert
            db.rollback()
            if attempt == MAX_SLUG_ATTEMPTS:
                raise
            logger.warning(
                "Slug collision for %r, attempt %d/%d", post.slug, attempt, MAX_SLUG_ATTEMPTS
            )

    logger.info("Created post %s (%s) for user %s", post.id, post.slug, user.id)
    events.publish(events.POST_CREATED, post_id=post.id, slug=post.slug, user_id=user.id)
    if post.status == PostStatus.PUBLISHED.value:
        events.publish(events.POST_PUBLISHED, post_id=post.id, slug=post.slug)
    return get_post(db, post.id)


def update_post(db: Session, user: User, post_id: str, data: PostUpdate) -> BlogPost:
    """Apply a partial update from the owner.

    Recomputes read time when content changes and stamps ``published_at``
    on every transition into published.
    """
    post = get_post(db, post_id)
    require_owner(post, user)

    changes = data.model_dump(exclude_unset=True)
    new_status = changes.pop("status", None)
    old_content = post.content

    for key, value in changes.items():
        if key == "title" and value is None:
            continue
        if key == "category" and not value:
            value = "General"
        if key in ("subtitle", "content") and value is None:
            value = ""
        if key == "tags" and value is None:
            value = []
        setattr(post, key, value)

    if "content" in changes:
        post.read_time = calculate_read_time(post.content)
        if "featured_image_url" not in changes and (
            post.featured_image_url is None
            or post.featured_image_url == extract_featured_image(old_content)
        ):
            # Auto-extracted image tracks the content
            post.featured_image_url = extract_featured_image(post.content)

    became_published = False
    if new_status is not None:
        new_status = PostStatus(new_status).value
        if new_status == PostStatus.PUBLISHED.value and post.status != new_status:
            post.published_at = _now()
            became_published = True
        post.status = new_status

    post.updated_at = _now()
    db.commit()
    logger.info("Updated post %s (%s)", post.id, ", ".join(sorted(data.model_fields_set)))
    if became_published:
        events.publish(events.POST_PUBLISHED, post_id=post.id, slug=post.slug)
    return get_post(db, post.id)


def delete_post(db: Session, user: User, post_id: str) -> None:
    post = get_post(db, post_id)
    require_owner(post, user, "You can only delete your own blog posts")
    slug = post.slug
    db.delete(post)
    db.commit()
    logger.info("Deleted post %s (%s)", post_id, slug)
    events.publish(events.POST_DELETED, post_id=post_id, slug=slug, user_id=user.id)


def list_published(db: Session, limit: int = 20, offset: int = 0) -> list[BlogPost]:
    """Published posts, newest ``published_at`` first, with authors joined."""
    stmt = (
        select(BlogPost)
        .options(joinedload(BlogPost.author))
        .where(BlogPost.status == PostStatus.PUBLISHED.value)
        .order_by(BlogPost.published_at.desc(), BlogPost.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(db.scalars(stmt))


def list_user_posts(db: Session, user: User, status: PostStatus | None = None) -> list[BlogPost]:
    stmt = (
        select(BlogPost)
        .options(joinedload(BlogPost.author))
        .where(BlogPost.user_id == user.id)
        .order_by(BlogPost.created_at.desc())
    )
    if status is not None:
        stmt = stmt.where(BlogPost.status == status.value)
    return list(db.scalars(stmt))


def increment_views(db: Session, post_id: str) -> int:
    """Atomically add one view; returns the new count."""
    result = db.execute(
        update(BlogPost).where(BlogPost.id == post_id).values(views=BlogPost.views + 1)
    )
    if result.rowcount == 0:
        db.rollback()
        raise NotFoundError("Blog post not found")
    views = db.scalar(select(BlogPost.views).where(BlogPost.id == post_id))
    db.commit()
    return views


def reset_template(db: Session, user: User, post_id: str) -> BlogPost:
    """Restore the initial document and clear the AI design state."""
    post = get_post(db, post_id)
    require_owner(post, user)
    post.ai_generated_html = initial_template()
    post.is_ai_designed = False
    post.ai_designed_at = None
    post.updated_at = _now()
    db.commit()
    logger.info("Reset template for post %s", post.id)
    return get_post(db, post.id)


def recalculate_read_time(db: Session, post_id: str) -> int:
    """Recompute and store the read time of one post."""
    post = get_post(db, post_id)
    post.read_time = calculate_read_time(post.content)
    db.commit()
    return post.read_time


def recalculate_all_read_times(db: Session) -> int:
    """Recompute read time for every post; returns how many changed."""
    updated = 0
    for post in db.scalars(select(BlogPost)):
        read_time = calculate_read_time(post.content)
        if read_time != post.read_time:
            post.read_time = read_time
            updated += 1
    db.commit()
    logger.info("Updated read times for %d blog posts", updated)
    return updated


def count_published(db: Session) -> int:
    return db.scalar(
        select(func.count(BlogPost.id)).where(BlogPost.status == PostStatus.PUBLISHED.value)
    ) or 0
