"""Investment calculation schemas.

Create requires every calculator field to be present in the body. Presence is
what is checked: an explicit null is accepted and stored as-is.
"""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from estatedesk.schemas.base import BaseSchema, ContactSummary, UserSummary


class CalculationCreate(BaseSchema):
    """Schema for creating an investment calculation."""

    property_type: str | None = Field(..., max_length=255)  # e.g. "Single Family Residence"
    market_area: str | None = Field(..., max_length=255)  # e.g. "Indianapolis, IN"
    investment_amount: float | None
    hold_period: int | None  # years
    annual_return_rate: float | None  # percent
    property_management_fee: float | None  # percent
    vacancy_rate: float | None  # percent
    monthly_cash_flow: float | None
    annual_cash_flow: float | None
    total_return: float | None
    roi: float | None  # percent
    contact_id: UUID
    notes: str | None = None


class CalculationUpdate(BaseSchema):
    """Schema for updating a calculation. All fields optional."""

    property_type: str | None = Field(None, max_length=255)
    market_area: str | None = Field(None, max_length=255)
    investment_amount: float | None = None
    hold_period: int | None = None
    annual_return_rate: float | None = None
    property_management_fee: float | None = None
    vacancy_rate: float | None = None
    monthly_cash_flow: float | None = None
    annual_cash_flow: float | None = None
    total_return: float | None = None
    roi: float | None = None
    contact_id: UUID | None = None
    notes: str | None = None


class CalculationRead(BaseSchema):
    """Schema for reading calculation data."""

    id: UUID
    property_type: str | None
    market_area: str | None
    investment_amount: float | None
    hold_period: int | None
    annual_return_rate: float | None
    property_management_fee: float | None
    vacancy_rate: float | None
    monthly_cash_flow: float | None
    annual_cash_flow: float | None
    total_return: float | None
    roi: float | None
    notes: str | None
    contact_id: UUID
    created_by: UUID
    created_at: datetime
    updated_at: datetime
    contact: ContactSummary | None = None
    user: UserSummary | None = None
