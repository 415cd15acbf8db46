"""Video CRUD routes and publish toggle."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, status
from sqlalchemy import select

from estatedesk.api.deps import (
    CurrentUser,
    DbSession,
    delete_owned,
    get_scoped_resource_or_404,
    scope_to_owner,
    update_owned_or_404,
)
from estatedesk.api.pagination import ListQuery, paginate
from estatedesk.db.models import Video, VideoFeedback
from estatedesk.errors import BadRequestError, NotFoundError
from estatedesk.schemas import (
    Envelope,
    MessageResponse,
    PaginatedEnvelope,
    VideoCreate,
    VideoRead,
    VideoUpdate,
)

router = APIRouter(prefix="/videos", tags=["videos"])

NOT_FOUND = "Video not found or access denied"

VIDEO_SORT_FIELDS = {
    "createdAt": Video.created_at,
    "updatedAt": Video.updated_at,
    "title": Video.title,
    "isPublished": Video.is_published,
}


async def _reload(db: DbSession, video_id: UUID) -> Video:
    result = await db.execute(
        select(Video).where(Video.id == video_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


@router.get("", response_model=PaginatedEnvelope[VideoRead])
async def list_videos(
    current_user: CurrentUser,
    db: DbSession,
    params: ListQuery,
    is_published: Annotated[str | None, Query(alias="isPublished")] = None,
) -> PaginatedEnvelope[VideoRead]:
    """
    List videos visible to the caller.

    Filters:
    - isPublished: "true" for published videos, any other value for unpublished
    """
    query = scope_to_owner(select(Video), Video, current_user)
    if is_published is not None:
        query = query.where(Video.is_published == (is_published == "true"))

    videos, pagination = await paginate(db, query, params, VIDEO_SORT_FIELDS)
    return PaginatedEnvelope[VideoRead](
        data=[VideoRead.model_validate(v) for v in videos],
        pagination=pagination,
    )


@router.post("", response_model=Envelope[VideoRead], status_code=status.HTTP_201_CREATED)
async def create_video(
    data: VideoCreate,
    current_user: CurrentUser,
    db: DbSession,
) -> Envelope[VideoRead]:
    """Create a video. Videos are published unless isPublished is false."""
    video = Video(created_by=current_user.id, **data.model_dump())
    db.add(video)
    await db.commit()
    video = await _reload(db, video.id)
    return Envelope[VideoRead](
        data=VideoRead.model_validate(video),
        message="Video created successfully",
    )


@router.get("/{video_id}", response_model=Envelope[VideoRead])
async def get_video(
    video_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> Envelope[VideoRead]:
    """Get a specific video by ID."""
    video = await get_scoped_resource_or_404(db, Video, video_id, current_user, detail="Video not found")
    return Envelope[VideoRead](data=VideoRead.model_validate(video))


@router.put("/{video_id}", response_model=Envelope[VideoRead])
async def update_video(
    video_id: UUID,
    data: VideoUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> Envelope[VideoRead]:
    """Update a video."""
    values = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None or k == "thumbnail_url"}
    await update_owned_or_404(db, Video, video_id, current_user.id, values, detail=NOT_FOUND)
    await db.commit()
    video = await _reload(db, video_id)
    return Envelope[VideoRead](
        data=VideoRead.model_validate(video),
        message="Video updated successfully",
    )


@router.delete("/{video_id}", response_model=MessageResponse)
async def delete_video(
    video_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> MessageResponse:
    """
    Delete a video that has no feedback.

    The "no feedback" guard is part of the DELETE statement. When nothing was
    deleted a follow-up read tells a missing video apart from one that still
    has feedback.
    """
    has_feedback = (
        select(VideoFeedback.id).where(VideoFeedback.video_id == Video.id).correlate(Video).exists()
    )
    deleted = await delete_owned(
        db, Video, video_id, current_user.id, extra_conditions=[~has_feedback]
    )
    if not deleted:
        result = await db.execute(
            select(Video.id).where(Video.id == video_id, Video.created_by == current_user.id)
        )
        if result.scalar_one_or_none() is None:
            raise NotFoundError(NOT_FOUND)
        raise BadRequestError("Cannot delete video with existing feedback")

    await db.commit()
    return MessageResponse(message="Video deleted successfully")


@router.patch("/{video_id}/publish", response_model=Envelope[VideoRead])
async def toggle_publish_status(
    video_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> Envelope[VideoRead]:
    """Flip a video between published and unpublished."""
    await update_owned_or_404(
        db, Video, video_id, current_user.id, {"is_published": ~Video.is_published}, detail=NOT_FOUND
    )
    await db.commit()
    video = await _reload(db, video_id)
    state = "published" if video.is_published else "unpublished"
    return Envelope[VideoRead](
        data=VideoRead.model_validate(video),
        message=f"Video {state} successfully",
    )
