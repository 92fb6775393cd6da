"""Mirror of Clerk identities in the users table."""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from quill.tables import User

logger = logging.getLogger(__name__)

DEFAULT_USERNAME = "user"


def fallback_username(username: str | None, email: str | None) -> str:
    """Username, else the local part of the email, else ``"user"``."""
    if username and username.strip():
        return username.strip()
    if email and "@" in email:
        local = email.split("@", 1)[0].strip()
        if local:
            return local
    return DEFAULT_USERNAME


def get_user_by_clerk_id(db: Session, clerk_user_id: str) -> User | None:
    return db.scalar(select(User).where(User.clerk_user_id == clerk_user_id))


def upsert_user(
    db: Session,
    clerk_user_id: str,
    *,
    email: str | None = None,
    username: str | None = None,
    first_name: str | None = None,
    last_name: str | None = None,
    profile_image_url: str | None = None,
) -> User:
    """Create or update the row for *clerk_user_id* and commit."""
    user = get_user_by_clerk_id(db, clerk_user_id)
    created = user is None
    if user is None:
        user = User(clerk_user_id=clerk_user_id)
        db.add(user)

    user.email = email or user.email or ""
    if username or not user.username:
        user.username = fallback_username(username, user.email)
    user.first_name = first_name if first_name is not None else (user.first_name or "")
    user.last_name = last_name if last_name is not None else (user.last_name or "")
    user.profile_image_url = (
        profile_image_url if profile_image_url is not None else (user.profile_image_url or "")
    )

    try:
        db.commit()
    except IntegrityError:
        # Concurrent first sign-in inserted the row first; update that one
        db.rollback()
        if not created:
            raise
        logger.info("User %s created concurrently, retrying as update", clerk_user_id)
        return upsert_user(
            db,
            clerk_user_id,
            email=email,
            username=username,
            first_name=first_name,
            last_name=last_name,
            profile_image_url=profile_image_url,
        )

    db.refresh(user)
    if created:
        logger.info("Created user %s for Clerk identity %s", user.id, clerk_user_id)
    return user


def get_or_create_user(db: Session, clerk_user_id: str) -> User:
    """Return the row for *clerk_user_id*, creating a bare one on first use."""
    user = get_user_by_clerk_id(db, clerk_user_id)
    if user is not None:
        return user
    return upsert_user(db, clerk_user_id)
