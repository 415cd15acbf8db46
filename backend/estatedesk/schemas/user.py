"""User schemas."""

from datetime import datetime
from uuid import UUID

from estatedesk.db.models import UserRole
from estatedesk.schemas.base import BaseSchema


class UserRead(BaseSchema):
    """Schema for reading user data."""

    id: UUID
    name: str
    email: str | None
    phone_number: str | None
    role: UserRole
    created_at: datetime
    updated_at: datetime
