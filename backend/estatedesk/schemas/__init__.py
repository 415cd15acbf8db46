"""Pydantic schemas for API request/response validation."""

from estatedesk.schemas.base import (
    ContactSummary,
    Envelope,
    ListEnvelope,
    MessageResponse,
    PaginatedEnvelope,
    Pagination,
    UserSummary,
    VideoSummary,
)
from estatedesk.schemas.user import UserRead
from estatedesk.schemas.contacts import (
    ContactCreate,
    ContactPinRead,
    ContactRead,
    ContactUpdate,
    PinLookupRequest,
    PipelineStageRequest,
    TagsRequest,
)
from estatedesk.schemas.calculations import CalculationCreate, CalculationRead, CalculationUpdate
from estatedesk.schemas.questionnaires import (
    QuestionnaireCreate,
    QuestionnaireRead,
    QuestionnaireUpdate,
)
from estatedesk.schemas.videos import VideoCreate, VideoRead, VideoUpdate
from estatedesk.schemas.feedbacks import FeedbackCreate, FeedbackRead, FeedbackUpdate
from estatedesk.schemas.ai import (
    AiMessageDetail,
    AiMessageRead,
    ConversationSummary,
    ConversationThread,
    ReplyRequest,
)

__all__ = [
    # Envelopes
    "Envelope",
    "ListEnvelope",
    "MessageResponse",
    "PaginatedEnvelope",
    "Pagination",
    "ContactSummary",
    "UserSummary",
    "VideoSummary",
    # User
    "UserRead",
    # Contacts
    "ContactCreate",
    "ContactPinRead",
    "ContactRead",
    "ContactUpdate",
    "PinLookupRequest",
    "PipelineStageRequest",
    "TagsRequest",
    # Calculations
    "CalculationCreate",
    "CalculationRead",
    "CalculationUpdate",
    # Questionnaires
    "QuestionnaireCreate",
    "QuestionnaireRead",
    "QuestionnaireUpdate",
    # Videos
    "VideoCreate",
    "VideoRead",
    "VideoUpdate",
    # Feedbacks
    "FeedbackCreate",
    "FeedbackRead",
    "FeedbackUpdate",
    # AI conversations
    "AiMessageDetail",
    "AiMessageRead",
    "ConversationSummary",
    "ConversationThread",
    "ReplyRequest",
]
