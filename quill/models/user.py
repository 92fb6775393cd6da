"""User sync models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class UserSync(BaseModel):
    """Profile fields pushed by the client after sign-in.

    The Clerk user id always comes from the verified session, never the body.
    """

    model_config = ConfigDict(extra="ignore")

    email: str | None = Field(None, max_length=255)
    username: str | None = Field(None, max_length=255)
    first_name: str | None = Field(None, max_length=255)
    last_name: str | None = Field(None, max_length=255)
    profile_image_url: str | None = Field(None, max_length=1024)


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    clerk_user_id: str
    email: str
    username: str
    first_name: str
    last_name: str
    profile_image_url: str
    created_at: datetime
    updated_at: datetime
