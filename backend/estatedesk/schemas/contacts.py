"""Contact schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from estatedesk.schemas.base import BaseSchema


def unique_tags(tags: list[str]) -> list[str]:
    """Drop empty and repeated tags, keeping first-seen order."""
    seen: dict[str, None] = {}
    for tag in tags:
        tag = tag.strip()
        if tag:
            seen.setdefault(tag, None)
    return list(seen)


class ContactBase(BaseSchema):
    """Base contact schema."""

    email: str | None = Field(None, max_length=255)
    address: str | None = None
    notes: str | None = None
    status: str | None = Field(None, max_length=50)  # lead, client, former_client
    pipeline_stage: str | None = Field(None, max_length=100)
    pin: str | None = Field(None, max_length=20)


class ContactCreate(ContactBase):
    """Schema for creating a contact."""

    name: str = Field(..., min_length=1, max_length=255)
    phone_number: str = Field(..., min_length=1, max_length=50)
    tags: list[str] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, value: list[str]) -> list[str]:
        return unique_tags(value)


class ContactUpdate(ContactBase):
    """Schema for updating a contact. All fields optional."""

    name: str | None = Field(None, min_length=1, max_length=255)
    phone_number: str | None = Field(None, min_length=1, max_length=50)
    tags: list[str] | None = None

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, value: list[str] | None) -> list[str] | None:
        return unique_tags(value) if value is not None else None


class ContactRead(ContactBase):
    """Schema for reading contact data."""

    id: UUID
    name: str
    phone_number: str
    tags: list[str]
    created_by: UUID
    created_at: datetime
    updated_at: datetime


class TagsRequest(BaseSchema):
    """Tags to add to or remove from a contact."""

    tags: list[str]


class PipelineStageRequest(BaseSchema):
    """New pipeline stage. Free text; stages are not a fixed list."""

    pipeline_stage: str = Field(..., max_length=100)


class PinLookupRequest(BaseSchema):
    phone_number: str = Field(..., min_length=1, max_length=50)


class ContactPinRead(BaseSchema):
    id: UUID
    name: str
    phone_number: str
    pin: str
