"""Base schema configuration and the shared response envelopes."""

from datetime import datetime
from typing import Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class BaseSchema(BaseModel):
    """Base schema with common configuration.

    Attributes are snake_case in Python and camelCase on the wire.
    """

    model_config = ConfigDict(
        from_attributes=True,  # Enable ORM mode
        str_strip_whitespace=True,
        validate_assignment=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class TimestampMixin(BaseModel):
    """Mixin for created_at/updated_at timestamps."""

    created_at: datetime
    updated_at: datetime


class IDMixin(BaseModel):
    """Mixin for UUID primary key."""

    id: UUID


# =============================================================================
# ENVELOPES
# =============================================================================


class Pagination(BaseSchema):
    total: int
    page: int
    limit: int
    pages: int


class Envelope(BaseSchema, Generic[T]):
    """Single-object response: {success, data, message}."""

    success: bool = True
    data: T | None = None
    message: str | None = None


class ListEnvelope(BaseSchema, Generic[T]):
    """Unpaginated collection: {success, count, data}."""

    success: bool = True
    count: int
    data: list[T]


class PaginatedEnvelope(BaseSchema, Generic[T]):
    """Paginated collection: {success, data, pagination}."""

    success: bool = True
    data: list[T]
    pagination: Pagination


class MessageResponse(BaseSchema):
    """Acknowledgement without a payload (deletes, webhook receipts)."""

    success: bool = True
    message: str


# =============================================================================
# JOINED SUMMARIES
# =============================================================================


class UserSummary(BaseSchema):
    id: UUID
    name: str


class ContactSummary(BaseSchema):
    id: UUID
    name: str
    phone_number: str
    email: str | None = None


class VideoSummary(BaseSchema):
    id: UUID
    title: str
    video_url: str
    thumbnail_url: str | None = None
