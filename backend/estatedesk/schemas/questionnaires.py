"""Investor questionnaire schemas."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field, field_validator

from estatedesk.schemas.base import BaseSchema, ContactSummary, UserSummary


def _list_or_empty(value: Any) -> Any:
    # Anything that is not a list is stored as an empty list
    return value if isinstance(value, list) else []


class QuestionnaireCreate(BaseSchema):
    """Schema for creating a questionnaire. Every answer must be present."""

    is_accredited_investor: bool | None
    has_invested_before: bool | None
    looking_timeframe: str | None = Field(..., max_length=255)
    primary_investment_goal: str | None = Field(..., max_length=255)
    investment_timeline: str | None = Field(..., max_length=255)
    capital_to_invest: str | None = Field(..., max_length=255)
    use_financing: bool | None
    markets_interested: list[str]
    property_types_interested: list[str]
    investment_timeframe: str | None = Field(..., max_length=255)
    contact_id: UUID
    notes: str | None = None

    @field_validator("markets_interested", "property_types_interested", mode="before")
    @classmethod
    def coerce_lists(cls, value: Any) -> Any:
        return _list_or_empty(value)


class QuestionnaireUpdate(BaseSchema):
    """Schema for updating a questionnaire. All fields optional."""

    is_accredited_investor: bool | None = None
    has_invested_before: bool | None = None
    looking_timeframe: str | None = Field(None, max_length=255)
    primary_investment_goal: str | None = Field(None, max_length=255)
    investment_timeline: str | None = Field(None, max_length=255)
    capital_to_invest: str | None = Field(None, max_length=255)
    use_financing: bool | None = None
    markets_interested: list[str] | None = None
    property_types_interested: list[str] | None = None
    investment_timeframe: str | None = Field(None, max_length=255)
    contact_id: UUID | None = None
    notes: str | None = None

    @field_validator("markets_interested", "property_types_interested", mode="before")
    @classmethod
    def coerce_lists(cls, value: Any) -> Any:
        return _list_or_empty(value)


class QuestionnaireRead(BaseSchema):
    """Schema for reading questionnaire data."""

    id: UUID
    is_accredited_investor: bool | None
    has_invested_before: bool | None
    looking_timeframe: str | None
    primary_investment_goal: str | None
    investment_timeline: str | None
    capital_to_invest: str | None
    use_financing: bool | None
    markets_interested: list[str]
    property_types_interested: list[str]
    investment_timeframe: str | None
    notes: str | None
    contact_id: UUID
    created_by: UUID
    created_at: datetime
    updated_at: datetime
    contact: ContactSummary | None = None
    user: UserSummary | None = None
