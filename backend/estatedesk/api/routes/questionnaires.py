"""Investor questionnaire CRUD routes."""

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
from estatedesk.db.models import InvestorQuestionnaire
from estatedesk.schemas import (
    Envelope,
    MessageResponse,
    PaginatedEnvelope,
    QuestionnaireCreate,
    QuestionnaireRead,
    QuestionnaireUpdate,
)

router = APIRouter(prefix="/questionnaires", tags=["questionnaires"])

NOT_FOUND = "Investor questionnaire not found"

QUESTIONNAIRE_SORT_FIELDS = {
    "createdAt": InvestorQuestionnaire.created_at,
    "updatedAt": InvestorQuestionnaire.updated_at,
    "investmentTimeframe": InvestorQuestionnaire.investment_timeframe,
    "capitalToInvest": InvestorQuestionnaire.capital_to_invest,
}


async def _reload(db: DbSession, questionnaire_id: UUID) -> InvestorQuestionnaire:
    result = await db.execute(
        select(InvestorQuestionnaire)
        .where(InvestorQuestionnaire.id == questionnaire_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


@router.get("", response_model=PaginatedEnvelope[QuestionnaireRead])
async def list_questionnaires(
    current_user: CurrentUser,
    db: DbSession,
    params: ListQuery,
    contact_id: Annotated[UUID | None, Query(alias="contactId")] = None,
) -> PaginatedEnvelope[QuestionnaireRead]:
    """List questionnaires visible to the caller, optionally for one contact."""
    query = scope_to_owner(select(InvestorQuestionnaire), InvestorQuestionnaire, current_user)
    if contact_id:
        query = query.where(InvestorQuestionnaire.contact_id == contact_id)

    questionnaires, pagination = await paginate(db, query, params, QUESTIONNAIRE_SORT_FIELDS)
    return PaginatedEnvelope[QuestionnaireRead](
        data=[QuestionnaireRead.model_validate(q) for q in questionnaires],
        pagination=pagination,
    )


@router.post("", response_model=Envelope[QuestionnaireRead], status_code=status.HTTP_201_CREATED)
async def create_questionnaire(
    data: QuestionnaireCreate,
    current_user: CurrentUser,
    db: DbSession,
) -> Envelope[QuestionnaireRead]:
    """Record a questionnaire for one of the caller's contacts."""
    await ensure_contact_owned(db, data.contact_id, current_user.id)

    questionnaire = InvestorQuestionnaire(created_by=current_user.id, **data.model_dump())
    db.add(questionnaire)
    await db.commit()
    questionnaire = await _reload(db, questionnaire.id)
    return Envelope[QuestionnaireRead](
        data=QuestionnaireRead.model_validate(questionnaire),
        message="Investor questionnaire created successfully",
    )


@router.get("/{questionnaire_id}", response_model=Envelope[QuestionnaireRead])
async def get_questionnaire(
    questionnaire_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> Envelope[QuestionnaireRead]:
    """Get a specific questionnaire by ID."""
    questionnaire = await get_scoped_resource_or_404(
        db, InvestorQuestionnaire, questionnaire_id, current_user, detail=NOT_FOUND
    )
    return Envelope[QuestionnaireRead](data=QuestionnaireRead.model_validate(questionnaire))


@router.put("/{questionnaire_id}", response_model=Envelope[QuestionnaireRead])
async def update_questionnaire(
    questionnaire_id: UUID,
    data: QuestionnaireUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> Envelope[QuestionnaireRead]:
    """Update a questionnaire."""
    values = data.model_dump(exclude_unset=True)
    if values.get("contact_id") is not None:
        await ensure_contact_owned(db, values["contact_id"], current_user.id)
    else:
        values.pop("contact_id", None)

    await update_owned_or_404(
        db, InvestorQuestionnaire, questionnaire_id, current_user.id, values, detail=NOT_FOUND
    )
    await db.commit()
    questionnaire = await _reload(db, questionnaire_id)
    return Envelope[QuestionnaireRead](
        data=QuestionnaireRead.model_validate(questionnaire),
        message="Investor questionnaire updated successfully",
    )


@router.delete("/{questionnaire_id}", response_model=MessageResponse)
async def delete_questionnaire(
    questionnaire_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> MessageResponse:
    """Delete a questionnaire."""
    await delete_owned_or_404(
        db, InvestorQuestionnaire, questionnaire_id, current_user.id, detail=NOT_FOUND
    )
    await db.commit()
    return MessageResponse(message="Investor questionnaire deleted successfully")
