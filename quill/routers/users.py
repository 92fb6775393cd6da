"""User sync endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from quill.auth import get_clerk_user_id, get_current_user
from quill.db import get_db
from quill.models.user import UserResponse, UserSync
from quill.services.users import upsert_user
from quill.tables import User

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/sync")
def sync_user(
    body: UserSync,
    clerk_user_id: str = Depends(get_clerk_user_id),
    db: Session = Depends(get_db),
):
    """Upsert the caller's profile from the sign-in session."""
    user = upsert_user(
        db,
        clerk_user_id,
        email=body.email,
        username=body.username,
        first_name=body.first_name,
        last_name=body.last_name,
        profile_image_url=body.profile_image_url,
    )
    return {"success": True, "user": UserResponse.model_validate(user)}


@router.get("/me")
def read_me(user: User = Depends(get_current_user)):
    return {"success": True, "user": UserResponse.model_validate(user)}
