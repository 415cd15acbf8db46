"""
SQLAlchemy 2.0 Models for EstateDesk.

Uses modern declarative syntax with Mapped[] type annotations.
All models use UUID primary keys. Column types are portable (Uuid, JSON with a
JSONB variant) so the same metadata runs on PostgreSQL and on SQLite in tests.

Ownership: contacts, calculations, questionnaires and videos carry a
created_by column pointing at the owning user. Video feedback has no owner.
"""

from datetime import datetime
from enum import Enum as PyEnum
from typing import Any, Optional
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum as SAEnum,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
    func,
    select,
)
from sqlalchemy.orm import Mapped, column_property, mapped_column, relationship

from estatedesk.db.base import Base, JsonType, utcnow


# =============================================================================
# ENUMS
# =============================================================================


class UserRole(str, PyEnum):
    """Two-value role; ADMIN sees every row, USER only its own."""

    USER = "USER"
    ADMIN = "ADMIN"


class SenderType(str, PyEnum):
    """Author of an AI conversation message."""

    AI = "AI"
    USER = "USER"


class DeliveryStatus(str, PyEnum):
    """Outbound webhook delivery state of a USER message."""

    PENDING = "PENDING"
    DELIVERED = "DELIVERED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


def _enum(enum_cls: type[PyEnum], name: str) -> SAEnum:
    return SAEnum(enum_cls, name=name, values_callable=lambda members: [m.value for m in members])


def _created_at() -> Mapped[datetime]:
    return mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )


def _updated_at() -> Mapped[datetime]:
    return mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
        nullable=False,
    )


# =============================================================================
# MODELS
# =============================================================================


class User(Base):
    """
    Platform user.

    Accounts are provisioned by the signup service; this API only reads them
    to resolve the caller and to validate inbound webhook payloads.
    """

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(Uuid(), primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), unique=True, nullable=True)
    phone_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    role: Mapped[UserRole] = mapped_column(
        _enum(UserRole, "user_role"), default=UserRole.USER, nullable=False
    )
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()


class Contact(Base):
    """
    A lead or client of the business.

    Tags are stored as a JSON array treated as an ordered set.
    """

    __tablename__ = "contacts"
    __table_args__ = (
        Index("idx_contacts_created_by", "created_by"),
        Index("idx_contacts_owner_phone", "created_by", "phone_number"),
    )

    id: Mapped[UUID] = mapped_column(Uuid(), primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone_number: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tags: Mapped[list[str]] = mapped_column(JsonType, default=list, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)  # lead, client, former_client
    pipeline_stage: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    pin: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    created_by: Mapped[UUID] = mapped_column(
        Uuid(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()


class InvestmentCalculation(Base):
    """Saved output of the investment calculator for a contact."""

    __tablename__ = "investment_calculations"
    __table_args__ = (
        Index("idx_calculations_created_by", "created_by"),
        Index("idx_calculations_contact", "contact_id"),
    )

    id: Mapped[UUID] = mapped_column(Uuid(), primary_key=True, default=uuid4)
    property_type: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    market_area: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    investment_amount: Mapped[Optional[float]] = mapped_column(Numeric(14, 2, asdecimal=False), nullable=True)
    hold_period: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # years
    annual_return_rate: Mapped[Optional[float]] = mapped_column(Float, nullable=True)  # percent
    property_management_fee: Mapped[Optional[float]] = mapped_column(Float, nullable=True)  # percent
    vacancy_rate: Mapped[Optional[float]] = mapped_column(Float, nullable=True)  # percent
    monthly_cash_flow: Mapped[Optional[float]] = mapped_column(Numeric(14, 2, asdecimal=False), nullable=True)
    annual_cash_flow: Mapped[Optional[float]] = mapped_column(Numeric(14, 2, asdecimal=False), nullable=True)
    total_return: Mapped[Optional[float]] = mapped_column(Numeric(14, 2, asdecimal=False), nullable=True)
    roi: Mapped[Optional[float]] = mapped_column(Float, nullable=True)  # percent
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    contact_id: Mapped[UUID] = mapped_column(
        Uuid(), ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False
    )
    created_by: Mapped[UUID] = mapped_column(
        Uuid(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()

    contact: Mapped["Contact"] = relationship("Contact", lazy="selectin")
    user: Mapped["User"] = relationship("User", lazy="selectin")


class InvestorQuestionnaire(Base):
    """Investor intake survey answered for a contact."""

    __tablename__ = "investor_questionnaires"
    __table_args__ = (
        Index("idx_questionnaires_created_by", "created_by"),
        Index("idx_questionnaires_contact", "contact_id"),
    )

    id: Mapped[UUID] = mapped_column(Uuid(), primary_key=True, default=uuid4)
    is_accredited_investor: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    has_invested_before: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    looking_timeframe: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    primary_investment_goal: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    investment_timeline: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    capital_to_invest: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    use_financing: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    markets_interested: Mapped[list[str]] = mapped_column(JsonType, default=list, nullable=False)
    property_types_interested: Mapped[list[str]] = mapped_column(JsonType, default=list, nullable=False)
    investment_timeframe: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    contact_id: Mapped[UUID] = mapped_column(
        Uuid(), ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False
    )
    created_by: Mapped[UUID] = mapped_column(
        Uuid(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()

    contact: Mapped["Contact"] = relationship("Contact", lazy="selectin")
    user: Mapped["User"] = relationship("User", lazy="selectin")


class Video(Base):
    """Instructional video shown to contacts."""

    __tablename__ = "videos"
    __table_args__ = (Index("idx_videos_created_by", "created_by"),)

    id: Mapped[UUID] = mapped_column(Uuid(), primary_key=True, default=uuid4)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    video_url: Mapped[str] = mapped_column(Text, nullable=False)  # YouTube, Vimeo, or hosted URL
    thumbnail_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_published: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_by: Mapped[UUID] = mapped_column(
        Uuid(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()

    user: Mapped["User"] = relationship("User", lazy="selectin")


class VideoFeedback(Base):
    """
    Answers submitted after watching a video.

    Submitted without authentication; no owner column. The video FK is
    RESTRICT so the database backs up the application-level delete guard.
    """

    __tablename__ = "video_feedbacks"
    __table_args__ = (
        Index("idx_video_feedbacks_video", "video_id"),
        Index("idx_video_feedbacks_contact", "contact_id"),
    )

    id: Mapped[UUID] = mapped_column(Uuid(), primary_key=True, default=uuid4)
    video_id: Mapped[UUID] = mapped_column(
        Uuid(), ForeignKey("videos.id", ondelete="RESTRICT"), nullable=False
    )
    responses: Mapped[dict[str, Any]] = mapped_column(JsonType, nullable=False)
    contact_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid(), ForeignKey("contacts.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()

    video: Mapped["Video"] = relationship("Video", lazy="selectin")
    contact: Mapped[Optional["Contact"]] = relationship("Contact", lazy="selectin")


# Read-only count exposed as feedbackCount on video responses
Video.feedback_count = column_property(
    select(func.count(VideoFeedback.id))
    .where(VideoFeedback.video_id == Video.id)
    .correlate_except(VideoFeedback)
    .scalar_subquery()
)


class AiMessage(Base):
    """
    One message of the AI assistant conversation for a (user, contact) pair.

    Rows are append-only. USER rows also track delivery of the outbound
    reply webhook, which the worker performs out of the request path.
    """

    __tablename__ = "ai_messages"
    __table_args__ = (
        Index("idx_ai_messages_conversation", "user_id", "contact_id", "created_at"),
        Index("idx_ai_messages_delivery", "delivery_status", "next_attempt_at"),
    )

    id: Mapped[UUID] = mapped_column(Uuid(), primary_key=True, default=uuid4)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    sender_type: Mapped[SenderType] = mapped_column(_enum(SenderType, "sender_type"), nullable=False)
    user_id: Mapped[UUID] = mapped_column(
        Uuid(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    contact_id: Mapped[UUID] = mapped_column(
        Uuid(), ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = _created_at()

    # Outbound delivery tracking (USER rows only)
    delivery_status: Mapped[Optional[DeliveryStatus]] = mapped_column(
        _enum(DeliveryStatus, "delivery_status"), nullable=True
    )
    delivery_attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_delivery_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    next_attempt_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    delivered_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    user: Mapped["User"] = relationship("User", lazy="selectin")
    contact: Mapped["Contact"] = relationship("Contact", lazy="selectin")
