"""Contact CRUD routes, tag and pipeline mutators, and contact-scoped lists."""

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
from estatedesk.api.routes.calculations import CALCULATION_SORT_FIELDS
from estatedesk.api.routes.feedbacks import FEEDBACK_SORT_FIELDS
from estatedesk.api.routes.questionnaires import QUESTIONNAIRE_SORT_FIELDS
from estatedesk.db.models import Contact, InvestmentCalculation, InvestorQuestionnaire, VideoFeedback
from estatedesk.errors import NotFoundError
from estatedesk.schemas import (
    CalculationRead,
    ContactCreate,
    ContactPinRead,
    ContactRead,
    ContactUpdate,
    Envelope,
    FeedbackRead,
    MessageResponse,
    PaginatedEnvelope,
    PinLookupRequest,
    PipelineStageRequest,
    QuestionnaireRead,
    TagsRequest,
)
from estatedesk.schemas.contacts import unique_tags

router = APIRouter(prefix="/contacts", tags=["contacts"])

NOT_FOUND = "Contact not found"
REQUIRED_COLUMNS = ("name", "phone_number", "tags")

CONTACT_SORT_FIELDS = {
    "createdAt": Contact.created_at,
    "updatedAt": Contact.updated_at,
    "name": Contact.name,
    "status": Contact.status,
    "pipelineStage": Contact.pipeline_stage,
}


async def _reload(db: DbSession, contact_id: UUID) -> Contact:
    result = await db.execute(
        select(Contact).where(Contact.id == contact_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


@router.get("", response_model=PaginatedEnvelope[ContactRead])
async def list_contacts(
    current_user: CurrentUser,
    db: DbSession,
    params: ListQuery,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
    pipeline_stage: Annotated[str | None, Query(alias="pipelineStage")] = None,
) -> PaginatedEnvelope[ContactRead]:
    """
    List contacts visible to the caller.

    Filters:
    - status: Exact status match
    - pipelineStage: Exact pipeline stage match
    """
    query = scope_to_owner(select(Contact), Contact, current_user)
    if status_filter:
        query = query.where(Contact.status == status_filter)
    if pipeline_stage:
        query = query.where(Contact.pipeline_stage == pipeline_stage)

    contacts, pagination = await paginate(db, query, params, CONTACT_SORT_FIELDS)
    return PaginatedEnvelope[ContactRead](
        data=[ContactRead.model_validate(c) for c in contacts],
        pagination=pagination,
    )


@router.post("", response_model=Envelope[ContactRead], status_code=status.HTTP_201_CREATED)
async def create_contact(
    data: ContactCreate,
    current_user: CurrentUser,
    db: DbSession,
) -> Envelope[ContactRead]:
    """Create a new contact owned by the caller."""
    contact = Contact(created_by=current_user.id, **data.model_dump())
    db.add(contact)
    await db.commit()
    contact = await _reload(db, contact.id)
    return Envelope[ContactRead](
        data=ContactRead.model_validate(contact),
        message="Contact created successfully",
    )


@router.post("/pin", response_model=Envelope[ContactPinRead])
async def get_contact_pin_by_phone(
    data: PinLookupRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> Envelope[ContactPinRead]:
    """Look up the PIN of one of the caller's contacts by phone number."""
    query = scope_to_owner(
        select(Contact).where(Contact.phone_number == data.phone_number),
        Contact,
        current_user,
    )
    result = await db.execute(query.order_by(Contact.created_at.desc()).limit(1))
    contact = result.scalar_one_or_none()
    if contact is None or not contact.pin:
        raise NotFoundError("Contact not found or PIN not set")
    return Envelope[ContactPinRead](data=ContactPinRead.model_validate(contact))


@router.get("/{contact_id}", response_model=Envelope[ContactRead])
async def get_contact(
    contact_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> Envelope[ContactRead]:
    """Get a specific contact by ID."""
    contact = await get_scoped_resource_or_404(db, Contact, contact_id, current_user, detail=NOT_FOUND)
    return Envelope[ContactRead](data=ContactRead.model_validate(contact))


@router.put("/{contact_id}", response_model=Envelope[ContactRead])
async def update_contact(
    contact_id: UUID,
    data: ContactUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> Envelope[ContactRead]:
    """Update a contact."""
    values = data.model_dump(exclude_unset=True)
    # name, phone number and tags cannot be cleared
    values = {k: v for k, v in values.items() if v is not None or k not in REQUIRED_COLUMNS}
    await update_owned_or_404(db, Contact, contact_id, current_user.id, values, detail=NOT_FOUND)
    await db.commit()
    contact = await _reload(db, contact_id)
    return Envelope[ContactRead](
        data=ContactRead.model_validate(contact),
        message="Contact updated successfully",
    )


@router.delete("/{contact_id}", response_model=MessageResponse)
async def delete_contact(
    contact_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> MessageResponse:
    """Delete a contact."""
    await delete_owned_or_404(db, Contact, contact_id, current_user.id, detail=NOT_FOUND)
    await db.commit()
    return MessageResponse(message="Contact deleted successfully")


# =============================================================================
# TAGS & PIPELINE
# =============================================================================


async def _replace_tags(db: DbSession, contact_id: UUID, user_id: UUID, tags: list[str]) -> Contact:
    await update_owned_or_404(db, Contact, contact_id, user_id, {"tags": tags}, detail=NOT_FOUND)
    await db.commit()
    return await _reload(db, contact_id)


@router.put("/{contact_id}/tags/add", response_model=Envelope[ContactRead])
async def add_tags(
    contact_id: UUID,
    data: TagsRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> Envelope[ContactRead]:
    """Add tags to a contact. Tags already present are left alone."""
    contact = await ensure_contact_owned(db, contact_id, current_user.id)
    tags = unique_tags([*contact.tags, *data.tags])
    contact = await _replace_tags(db, contact_id, current_user.id, tags)
    return Envelope[ContactRead](
        data=ContactRead.model_validate(contact),
        message="Tags added successfully",
    )


@router.put("/{contact_id}/tags/remove", response_model=Envelope[ContactRead])
async def remove_tags(
    contact_id: UUID,
    data: TagsRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> Envelope[ContactRead]:
    """Remove tags from a contact. Tags the contact does not have are ignored."""
    contact = await ensure_contact_owned(db, contact_id, current_user.id)
    to_remove = {tag.strip() for tag in data.tags}
    tags = [tag for tag in contact.tags if tag not in to_remove]
    contact = await _replace_tags(db, contact_id, current_user.id, tags)
    return Envelope[ContactRead](
        data=ContactRead.model_validate(contact),
        message="Tags removed successfully",
    )


@router.put("/{contact_id}/pipeline-stage", response_model=Envelope[ContactRead])
async def update_pipeline_stage(
    contact_id: UUID,
    data: PipelineStageRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> Envelope[ContactRead]:
    """Move a contact to another pipeline stage."""
    await update_owned_or_404(
        db, Contact, contact_id, current_user.id, {"pipeline_stage": data.pipeline_stage}, detail=NOT_FOUND
    )
    await db.commit()
    contact = await _reload(db, contact_id)
    return Envelope[ContactRead](
        data=ContactRead.model_validate(contact),
        message="Pipeline stage updated successfully",
    )


# =============================================================================
# CONTACT-SCOPED LISTS
# =============================================================================


@router.get("/{contact_id}/calculations", response_model=PaginatedEnvelope[CalculationRead])
async def list_contact_calculations(
    contact_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
    params: ListQuery,
) -> PaginatedEnvelope[CalculationRead]:
    """List the caller's calculations for one of their contacts."""
    await ensure_contact_owned(db, contact_id, current_user.id)
    query = select(InvestmentCalculation).where(
        InvestmentCalculation.contact_id == contact_id,
        InvestmentCalculation.created_by == current_user.id,
    )
    rows, pagination = await paginate(db, query, params, CALCULATION_SORT_FIELDS)
    return PaginatedEnvelope[CalculationRead](
        data=[CalculationRead.model_validate(r) for r in rows],
        pagination=pagination,
    )


@router.get("/{contact_id}/questionnaires", response_model=PaginatedEnvelope[QuestionnaireRead])
async def list_contact_questionnaires(
    contact_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
    params: ListQuery,
) -> PaginatedEnvelope[QuestionnaireRead]:
    """List the caller's questionnaires for one of their contacts."""
    await ensure_contact_owned(db, contact_id, current_user.id)
    query = select(InvestorQuestionnaire).where(
        InvestorQuestionnaire.contact_id == contact_id,
        InvestorQuestionnaire.created_by == current_user.id,
    )
    rows, pagination = await paginate(db, query, params, QUESTIONNAIRE_SORT_FIELDS)
    return PaginatedEnvelope[QuestionnaireRead](
        data=[QuestionnaireRead.model_validate(r) for r in rows],
        pagination=pagination,
    )


@router.get("/{contact_id}/feedbacks", response_model=PaginatedEnvelope[FeedbackRead])
async def list_contact_feedbacks(
    contact_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
    params: ListQuery,
) -> PaginatedEnvelope[FeedbackRead]:
    """List video feedback left for one of the caller's contacts."""
    await ensure_contact_owned(db, contact_id, current_user.id)
    query = select(VideoFeedback).where(VideoFeedback.contact_id == contact_id)
    rows, pagination = await paginate(db, query, params, FEEDBACK_SORT_FIELDS)
    return PaginatedEnvelope[FeedbackRead](
        data=[FeedbackRead.model_validate(r) for r in rows],
        pagination=pagination,
    )
