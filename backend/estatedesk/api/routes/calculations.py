"""Investment calculation CRUD routes."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, status
from sqlalchemy import select

from estatedesk.api.deps import (
    CurrentUser,
    DbSession,
    delete_owned_or_404,
    ensure_contact_owned,
    get_scoped_resource_or_404,
    scope_to_owner,
    update_owned_or_404,
)
from estatedesk.api.pagination import ListQuery, paginate
from estatedesk.db.models import InvestmentCalculation
from estatedesk.schemas import (
    CalculationCreate,
    CalculationRead,
    CalculationUpdate,
    Envelope,
    MessageResponse,
    PaginatedEnvelope,
)

router = APIRouter(prefix="/calculations", tags=["calculations"])

NOT_FOUND = "Investment calculation not found"

CALCULATION_SORT_FIELDS = {
    "createdAt": InvestmentCalculation.created_at,
    "updatedAt": InvestmentCalculation.updated_at,
    "investmentAmount": InvestmentCalculation.investment_amount,
    "roi": InvestmentCalculation.roi,
    "totalReturn": InvestmentCalculation.total_return,
    "propertyType": InvestmentCalculation.property_type,
    "marketArea": InvestmentCalculation.market_area,
}


async def _reload(db: DbSession, calculation_id: UUID) -> InvestmentCalculation:
    result = await db.execute(
        select(InvestmentCalculation)
        .where(InvestmentCalculation.id == calculation_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


@router.get("", response_model=PaginatedEnvelope[CalculationRead])
async def list_calculations(
    current_user: CurrentUser,
    db: DbSession,
    params: ListQuery,
    contact_id: Annotated[UUID | None, Query(alias="contactId")] = None,
    property_type: Annotated[str | None, Query(alias="propertyType")] = None,
    market_area: Annotated[str | None, Query(alias="marketArea")] = None,
) -> PaginatedEnvelope[CalculationRead]:
    """
    List investment calculations visible to the caller.

    Filters:
    - contactId: Calculations for one contact
    - propertyType: Exact property type
    - marketArea: Exact market area
    """
    query = scope_to_owner(select(InvestmentCalculation), InvestmentCalculation, current_user)
    if contact_id:
        query = query.where(InvestmentCalculation.contact_id == contact_id)
    if property_type:
        query = query.where(InvestmentCalculation.property_type == property_type)
    if market_area:
        query = query.where(InvestmentCalculation.market_area == market_area)

    calculations, pagination = await paginate(db, query, params, CALCULATION_SORT_FIELDS)
    return PaginatedEnvelope[CalculationRead](
        data=[CalculationRead.model_validate(c) for c in calculations],
        pagination=pagination,
    )


@router.post("", response_model=Envelope[CalculationRead], status_code=status.HTTP_201_CREATED)
async def create_calculation(
    data: CalculationCreate,
    current_user: CurrentUser,
    db: DbSession,
) -> Envelope[CalculationRead]:
    """Create a calculation for one of the caller's contacts."""
    await ensure_contact_owned(db, data.contact_id, current_user.id)

    calculation = InvestmentCalculation(created_by=current_user.id, **data.model_dump())
    db.add(calculation)
    await db.commit()
    calculation = await _reload(db, calculation.id)
    return Envelope[CalculationRead](
        data=CalculationRead.model_validate(calculation),
        message="Investment calculation created successfully",
    )


@router.get("/{calculation_id}", response_model=Envelope[CalculationRead])
async def get_calculation(
    calculation_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> Envelope[CalculationRead]:
    """Get a specific calculation by ID."""
    calculation = await get_scoped_resource_or_404(
        db, InvestmentCalculation, calculation_id, current_user, detail=NOT_FOUND
    )
    return Envelope[CalculationRead](data=CalculationRead.model_validate(calculation))


@router.put("/{calculation_id}", response_model=Envelope[CalculationRead])
async def update_calculation(
    calculation_id: UUID,
    data: CalculationUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> Envelope[CalculationRead]:
    """Update a calculation. Moving it to another contact requires owning that contact."""
    values = data.model_dump(exclude_unset=True)
    if values.get("contact_id") is not None:
        await ensure_contact_owned(db, values["contact_id"], current_user.id)
    else:
        values.pop("contact_id", None)

    await update_owned_or_404(
        db, InvestmentCalculation, calculation_id, current_user.id, values, detail=NOT_FOUND
    )
    await db.commit()
    calculation = await _reload(db, calculation_id)
    return Envelope[CalculationRead](
        data=CalculationRead.model_validate(calculation),
        message="Investment calculation updated successfully",
    )


@router.delete("/{calculation_id}", response_model=MessageResponse)
async def delete_calculation(
    calculation_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> MessageResponse:
    """Delete a calculation."""
    await delete_owned_or_404(db, InvestmentCalculation, calculation_id, current_user.id, detail=NOT_FOUND)
    await db.commit()
    return MessageResponse(message="Investment calculation deleted successfully")
