"""Video feedback schemas."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import field_validator

from estatedesk.schemas.base import BaseSchema, ContactSummary, VideoSummary


def _require_object(value: Any) -> Any:
    if not isinstance(value, dict):
        raise ValueError("responses must be a valid JSON object")
    return value


class FeedbackCreate(BaseSchema):
    """Public submission: question/answer pairs for a video."""

    video_id: UUID
    responses: dict[str, Any]
    contact_id: UUID | None = None

    @field_validator("responses", mode="before")
    @classmethod
    def responses_is_object(cls, value: Any) -> Any:
        return _require_object(value)


class FeedbackUpdate(BaseSchema):
    """Schema for updating feedback (admin). All fields optional."""

    video_id: UUID | None = None
    responses: dict[str, Any] | None = None
    contact_id: UUID | None = None

    @field_validator("responses", mode="before")
    @classmethod
    def responses_is_object(cls, value: Any) -> Any:
        if value is None:
            return value
        return _require_object(value)


class FeedbackRead(BaseSchema):
    """Schema for reading feedback data."""

    id: UUID
    video_id: UUID
    responses: dict[str, Any]
    contact_id: UUID | None
    created_at: datetime
    updated_at: datetime
    video: VideoSummary | None = None
    contact: ContactSummary | None = None
