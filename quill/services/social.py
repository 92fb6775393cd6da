"""Likes, views, and comments."""

import logging
from dataclasses import dataclass

from sqlalchemy import case, delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from quill.services import events
from quill.services.errors import NotFoundError, OwnershipError
from quill.services.posts import is_visible_to
from quill.tables import BlogPost, Comment, Like, User

logger = logging.getLogger(__name__)


@dataclass
class LikeState:
    liked: bool
    likes_count: int


def _require_post(db: Session, post_id: str, viewer: User | None) -> None:
    """404 unless the post exists and *viewer* may see it."""
    post = db.scalar(select(BlogPost).where(BlogPost.id == post_id))
    if post is None or not is_visible_to(post, viewer):
        raise NotFoundError("Blog post not found")


def _likes_count(db: Session, post_id: str) -> int:
    return db.scalar(select(BlogPost.likes).where(BlogPost.id == post_id)) or 0


def toggle_like(db: Session, user: User, post_id: str) -> LikeState:
    """Unlike if liked, otherwise like; the counter moves in the same transaction.

    A concurrent duplicate like trips the unique (user, post) constraint; the
    whole transaction is rolled back and the post is reported as liked,
    counted once by the request that won.
    """
    _require_post(db, post_id, user)

    removed = db.execute(
        delete(Like).where(Like.user_id == user.id, Like.blog_post_id == post_id)
    ).rowcount
    if removed:
        db.execute(
            update(BlogPost)
            .where(BlogPost.id == post_id)
            .values(likes=case((BlogPost.likes > 0, BlogPost.likes - 1), else_=0))
        )
        state = LikeState(liked=False, likes_count=_likes_count(db, post_id))
        db.commit()
    else:
        try:
            db.add(Like(user_id=user.id, blog_post_id=post_id))
            db.flush()
            db.execute(
                update(BlogPost).where(BlogPost.id == post_id).values(likes=BlogPost.likes + 1)
            )
            state = LikeState(liked=True, likes_count=_likes_count(db, post_id))
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.info("Concurrent like by %s on %s resolved as liked", user.id, post_id)
            return LikeState(liked=True, likes_count=_likes_count(db, post_id))

    events.publish(
        events.LIKE_TOGGLED,
        post_id=post_id,
        user_id=user.id,
        liked=state.liked,
        likes=state.likes_count,
    )
    return state


def is_liked(db: Session, user: User, post_id: str) -> bool:
    return (
        db.scalar(
            select(Like.id).where(Like.user_id == user.id, Like.blog_post_id == post_id)
        )
        is not None
    )


def recount_likes(db: Session) -> int:
    """Reset every post's like counter from the like rows; returns posts fixed."""
    counts = dict(
        db.execute(select(Like.blog_post_id, func.count(Like.id)).group_by(Like.blog_post_id)).all()
    )
    fixed = 0
    for post in db.scalars(select(BlogPost)):
        actual = counts.get(post.id, 0)
        if post.likes != actual:
            logger.info("Post %s likes %d -> %d", post.id, post.likes, actual)
            post.likes = actual
            fixed += 1
    db.commit()
    return fixed


def list_comments(
    db: Session, post_id: str, limit: int | None = None, viewer: User | None = None
) -> list[Comment]:
    """Comments on a post, newest first; *limit* caps the result for previews.

    Comments on drafts are listed for the post's owner only.
    """
    _require_post(db, post_id, viewer)
    stmt = (
        select(Comment)
        .options(joinedload(Comment.author))
        .where(Comment.blog_post_id == post_id)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    return list(db.scalars(stmt))


def _get_comment(db: Session, comment_id: str) -> Comment:
    comment = db.scalar(
        select(Comment).options(joinedload(Comment.author)).where(Comment.id == comment_id)
    )
    if comment is None:
        raise NotFoundError("Comment not found")
    return comment


def create_comment(db: Session, user: User, post_id: str, content: str) -> Comment:
    _require_post(db, post_id, user)
    comment = Comment(blog_post_id=post_id, user_id=user.id, content=content.strip())
    db.add(comment)
    db.commit()
    events.publish(
        events.COMMENT_CREATED, comment_id=comment.id, post_id=post_id, user_id=user.id
    )
    return _get_comment(db, comment.id)


def update_comment(db: Session, user: User, comment_id: str, content: str) -> Comment:
    comment = _get_comment(db, comment_id)
    if comment.user_id != user.id:
        raise OwnershipError("You can only edit your own comments")
    comment.content = content.strip()
    db.commit()
    return _get_comment(db, comment.id)


def delete_comment(db: Session, user: User, comment_id: str) -> None:
    comment = _get_comment(db, comment_id)
    if comment.user_id != user.id:
        raise OwnershipError("You can only delete your own comments")
    db.delete(comment)
    db.commit()
    logger.info("Deleted comment %s", comment_id)
