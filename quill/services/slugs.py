"""URL slug generation for blog posts."""

import logging
import re

from sqlalchemy import select
from sqlalchemy.orm import Session

from quill.tables import BlogPost

logger = logging.getLogger(__name__)

FALLBACK_SLUG = "post"

_DISALLOWED_RE = re.compile(r"[^a-z0-9\s]")
_WHITESPACE_RE = re.compile(r"\s+")


def slugify(title: str) -> str:
    """Convert a title to a URL slug.

    >>> slugify("Hello, World! 2024")
    'hello-world-2024'
    """
    slug = _DISALLOWED_RE.sub("", (title or "").lower())
    # str.lower() can produce non-ASCII whitespace; \s covers it
    slug = _WHITESPACE_RE.sub("-", slug.strip())
    slug = slug.strip("-")
    return slug or FALLBACK_SLUG


def generate_unique_slug(db: Session, title: str) -> str:
    """Return a slug for *title* not used by any stored post.

    Collisions get a numeric suffix: ``base``, ``base-1``, ``base-2``, ...
    """
    base = slugify(title)
    taken = set(
        db.scalars(
            select(BlogPost.slug).where(
                (BlogPost.slug == base) | BlogPost.slug.like(f"{base}-%")
            )
        )
    )
    if base not in taken:
        return base

    counter = 1
    while f"{base}-{counter}" in taken:
        counter += 1
    slug = f"{base}-{counter}"
    logger.debug("Slug %s taken, using %s", base, slug)
    return slug
