"""ORM tables: users, blog posts, comments, likes."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from quill.db import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """Application mirror of a Clerk identity."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_id)
    clerk_user_id = Column(String(255), unique=True, nullable=False, index=True)
    email = Column(String(255), nullable=False, default="")
    username = Column(String(255), nullable=False, default="user")
    first_name = Column(String(255), nullable=False, default="")
    last_name = Column(String(255), nullable=False, default="")
    profile_image_url = Column(String(1024), nullable=False, default="")

    created_at = Column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
        onupdate=_utcnow,
    )

    blog_posts = relationship("BlogPost", back_populates="author")

    @property
    def display_name(self) -> str:
        return self.first_name or self.username or "Unknown Author"


class BlogPost(Base):
    """A post plus its placeholder-templated HTML document."""

    __tablename__ = "blog_posts"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    slug = Column(String(255), unique=True, nullable=False, index=True)

    # Content
    title = Column(String(500), nullable=False)
    subtitle = Column(String(1000), nullable=False, default="")
    content = Column(Text, nullable=False, default="")
    category = Column(String(100), nullable=False, default="General")
    tags = Column(JSON, nullable=False, default=list)
    featured_image_url = Column(String(2048), nullable=True)
    read_time = Column(Integer, nullable=False, default=1)

    # Publication
    status = Column(String(20), nullable=False, default="draft", index=True)
    published_at = Column(DateTime(timezone=True), nullable=True, index=True)

    # Counters: only touched through atomic UPDATE expressions
    views = Column(Integer, nullable=False, default=0)
    likes = Column(Integer, nullable=False, default=0)

    # AI design state
    ai_generated_html = Column(Text, nullable=True)
    is_ai_designed = Column(Boolean, nullable=False, default=False)
    ai_designed_at = Column(DateTime(timezone=True), nullable=True)
    ai_website_settings = Column(JSON, nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
        index=True,
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
        onupdate=_utcnow,
    )

    author = relationship("User", back_populates="blog_posts")
    comments = relationship(
        "Comment", back_populates="blog_post", cascade="all, delete-orphan"
    )
    like_rows = relationship(
        "Like", back_populates="blog_post", cascade="all, delete-orphan"
    )

    def publish_reference_time(self) -> datetime | None:
        return self.published_at or self.created_at


class Comment(Base):
    """Comment on a blog post."""

    __tablename__ = "comments"

    id = Column(String(36), primary_key=True, default=_new_id)
    blog_post_id = Column(
        String(36), ForeignKey("blog_posts.id", ondelete="CASCADE"), nullable=False
    )
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)

    created_at = Column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
        onupdate=_utcnow,
    )

    blog_post = relationship("BlogPost", back_populates="comments")
    author = relationship("User")

    __table_args__ = (
        Index("ix_comments_blog_post_created", blog_post_id, created_at.desc()),
    )


class Like(Base):
    """A user's like of a blog post. Row existence means liked."""

    __tablename__ = "likes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    blog_post_id = Column(
        String(36), ForeignKey("blog_posts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )

    blog_post = relationship("BlogPost", back_populates="like_rows")

    __table_args__ = (UniqueConstraint("user_id", "blog_post_id", name="likes_user_post_unique"),)
