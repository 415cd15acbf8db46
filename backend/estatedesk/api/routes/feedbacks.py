"""
Video feedback routes.

Submitting feedback is public: anyone holding a video link can answer its
questions. Everything else is restricted to ADMIN callers.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import delete, select, update

from estatedesk.api.deps import AdminUser, DbSession, get_resource_or_404, require_role
from estatedesk.api.pagination import ListQuery, paginate
from estatedesk.db.models import Contact, UserRole, Video, VideoFeedback
from estatedesk.errors import NotFoundError
from estatedesk.schemas import (
    Envelope,
    FeedbackCreate,
    FeedbackRead,
    FeedbackUpdate,
    MessageResponse,
    PaginatedEnvelope,
)

router = APIRouter(prefix="/feedbacks", tags=["feedbacks"])

NOT_FOUND = "Video feedback not found"

FEEDBACK_SORT_FIELDS = {
    "createdAt": VideoFeedback.created_at,
    "updatedAt": VideoFeedback.updated_at,
}


async def _reload(db: DbSession, feedback_id: UUID) -> VideoFeedback:
    result = await db.execute(
        select(VideoFeedback)
        .where(VideoFeedback.id == feedback_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def _check_references(db: DbSession, video_id: UUID | None, contact_id: UUID | None) -> None:
    if video_id is not None:
        await get_resource_or_404(db, Video, video_id, detail="Video not found")
    if contact_id is not None:
        await get_resource_or_404(db, Contact, contact_id, detail="Contact not found")


async def _list(db: DbSession, params, *conditions) -> PaginatedEnvelope[FeedbackRead]:
    query = select(VideoFeedback).where(*conditions)
    feedbacks, pagination = await paginate(db, query, params, FEEDBACK_SORT_FIELDS)
    return PaginatedEnvelope[FeedbackRead](
        data=[FeedbackRead.model_validate(f) for f in feedbacks],
        pagination=pagination,
    )


@router.post("", response_model=Envelope[FeedbackRead], status_code=status.HTTP_201_CREATED)
async def create_feedback(data: FeedbackCreate, db: DbSession) -> Envelope[FeedbackRead]:
    """Submit feedback for a video. No authentication required."""
    await _check_references(db, data.video_id, data.contact_id)

    feedback = VideoFeedback(**data.model_dump())
    db.add(feedback)
    await db.commit()
    feedback = await _reload(db, feedback.id)
    return Envelope[FeedbackRead](
        data=FeedbackRead.model_validate(feedback),
        message="Video feedback created successfully",
    )


@router.get("", response_model=PaginatedEnvelope[FeedbackRead])
async def list_feedbacks(
    _admin: AdminUser,
    db: DbSession,
    params: ListQuery,
    video_id: Annotated[UUID | None, Query(alias="videoId")] = None,
    contact_id: Annotated[UUID | None, Query(alias="contactId")] = None,
) -> PaginatedEnvelope[FeedbackRead]:
    """
    List all feedback.

    Filters:
    - videoId: Feedback for one video
    - contactId: Feedback left by one contact
    """
    conditions = []
    if video_id:
        conditions.append(VideoFeedback.video_id == video_id)
    if contact_id:
        conditions.append(VideoFeedback.contact_id == contact_id)
    return await _list(db, params, *conditions)


@router.get(
    "/videos/{video_id}",
    response_model=PaginatedEnvelope[FeedbackRead],
    dependencies=[Depends(require_role(UserRole.ADMIN))],
)
async def list_video_feedbacks(video_id: UUID, db: DbSession, params: ListQuery) -> PaginatedEnvelope[FeedbackRead]:
    """List feedback for one video."""
    await get_resource_or_404(db, Video, video_id, detail="Video not found")
    return await _list(db, params, VideoFeedback.video_id == video_id)


@router.get(
    "/contacts/{contact_id}",
    response_model=PaginatedEnvelope[FeedbackRead],
    dependencies=[Depends(require_role(UserRole.ADMIN))],
)
async def list_contact_feedbacks(
    contact_id: UUID, db: DbSession, params: ListQuery
) -> PaginatedEnvelope[FeedbackRead]:
    """List feedback left by one contact."""
    await get_resource_or_404(db, Contact, contact_id, detail="Contact not found")
    return await _list(db, params, VideoFeedback.contact_id == contact_id)


@router.get("/{feedback_id}", response_model=Envelope[FeedbackRead])
async def get_feedback(feedback_id: UUID, _admin: AdminUser, db: DbSession) -> Envelope[FeedbackRead]:
    feedback = await get_resource_or_404(db, VideoFeedback, feedback_id, detail=NOT_FOUND)
    return Envelope[FeedbackRead](data=FeedbackRead.model_validate(feedback))


@router.put("/{feedback_id}", response_model=Envelope[FeedbackRead])
async def update_feedback(
    feedback_id: UUID,
    data: FeedbackUpdate,
    _admin: AdminUser,
    db: DbSession,
) -> Envelope[FeedbackRead]:
    """Update feedback. A new videoId or contactId must reference an existing row."""
    values = data.model_dump(exclude_unset=True)
    # video and responses are required columns
    for key in ("video_id", "responses"):
        if values.get(key) is None:
            values.pop(key, None)
    await _check_references(db, values.get("video_id"), values.get("contact_id"))

    stmt = update(VideoFeedback).where(VideoFeedback.id == feedback_id)
    stmt = stmt.values(**values) if values else stmt.values(updated_at=VideoFeedback.updated_at)
    result = await db.execute(stmt)
    if result.rowcount == 0:
        raise NotFoundError(NOT_FOUND)
    await db.commit()

    feedback = await _reload(db, feedback_id)
    return Envelope[FeedbackRead](
        data=FeedbackRead.model_validate(feedback),
        message="Video feedback updated successfully",
    )


@router.delete("/{feedback_id}", response_model=MessageResponse)
async def delete_feedback(feedback_id: UUID, _admin: AdminUser, db: DbSession) -> MessageResponse:
    result = await db.execute(delete(VideoFeedback).where(VideoFeedback.id == feedback_id))
    if result.rowcount == 0:
        raise NotFoundError(NOT_FOUND)
    await db.commit()
    return MessageResponse(message="Video feedback deleted successfully")
