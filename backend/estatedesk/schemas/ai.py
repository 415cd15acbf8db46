"""AI conversation schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from estatedesk.db.models import DeliveryStatus, SenderType
from estatedesk.schemas.base import BaseSchema, ListEnvelope, UserSummary


class ContactName(BaseSchema):
    id: UUID
    name: str


class ReplyRequest(BaseSchema):
    """A user's reply to the assistant."""

    message: str = Field(..., min_length=1)
    contact_id: UUID


class AiMessageRead(BaseSchema):
    """Schema for reading a conversation message."""

    id: UUID
    message: str
    sender_type: SenderType
    user_id: UUID
    contact_id: UUID
    created_at: datetime
    delivery_status: DeliveryStatus | None = None


class AiMessageDetail(AiMessageRead):
    """Thread entry with the participants attached."""

    user: UserSummary | None = None
    contact: ContactName | None = None


class ConversationSummary(BaseSchema):
    """Mailbox row: one per contact, carrying the newest message."""

    contact_id: UUID
    contact_name: str | None
    last_message: AiMessageRead


class ConversationThread(ListEnvelope[AiMessageDetail]):
    """Messages of one conversation, oldest first."""

    contact_id: UUID
