"""Video schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from estatedesk.schemas.base import BaseSchema, UserSummary


class VideoCreate(BaseSchema):
    """Schema for creating a video."""

    title: str = Field(..., min_length=1, max_length=255)
    video_url: str = Field(..., min_length=1)
    thumbnail_url: str | None = None
    is_published: bool = True


class VideoUpdate(BaseSchema):
    """Schema for updating a video. All fields optional."""

    title: str | None = Field(None, min_length=1, max_length=255)
    video_url: str | None = Field(None, min_length=1)
    thumbnail_url: str | None = None
    is_published: bool | None = None


class VideoRead(BaseSchema):
    """Schema for reading video data."""

    id: UUID
    title: str
    video_url: str
    thumbnail_url: str | None
    is_published: bool
    created_by: UUID
    created_at: datetime
    updated_at: datetime
    feedback_count: int = 0
    user: UserSummary | None = None
