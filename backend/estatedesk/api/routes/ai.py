"""
AI assistant conversation routes.

Endpoints:
- POST /ai/webhook - n8n delivers an assistant message (no user auth)
- POST /ai/reply - The user answers; delivery to n8n is queued for the worker
- GET /ai/conversations - Mailbox: newest message per contact
- GET /ai/conversations/{contact_id} - One thread, oldest first
- DELETE /ai/conversations - Clear the caller's history

The inbound webhook always answers 200 so n8n never retries a payload that
will never succeed. Rejections are only visible in the server log.
"""

import hmac
import logging
from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Query, Request, status
from sqlalchemy import delete, func, select

from estatedesk.api.deps import CurrentUser, DbSession, ensure_contact_owned
from estatedesk.config import get_settings
from estatedesk.db.base import utcnow
from estatedesk.db.models import AiMessage, Contact, SenderType, User
from estatedesk.errors import NotAuthenticatedError
from estatedesk.schemas import (
    AiMessageDetail,
    AiMessageRead,
    ConversationSummary,
    ConversationThread,
    Envelope,
    ListEnvelope,
    MessageResponse,
    ReplyRequest,
)
from estatedesk.services.broadcast import manager
from estatedesk.services.reply_webhook import initial_delivery_status

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/ai", tags=["ai"])
settings = get_settings()


def _received(reason: str) -> Envelope[AiMessageRead]:
    return Envelope[AiMessageRead](message=f"Received, but {reason}.")


def _parse_uuid(value: Any) -> UUID | None:
    try:
        return UUID(str(value))
    except ValueError:
        return None


def _check_webhook_secret(request: Request) -> None:
    if not settings.ai_webhook_secret:
        return
    provided = request.headers.get("X-Webhook-Secret", "")
    if not hmac.compare_digest(provided.encode(), settings.ai_webhook_secret.encode()):
        logger.warning("Webhook rejected: bad or missing X-Webhook-Secret")
        raise NotAuthenticatedError("Invalid webhook secret")


@router.post("/webhook", response_model=Envelope[AiMessageRead])
async def handle_webhook_message(request: Request, db: DbSession) -> Envelope[AiMessageRead]:
    """
    Store an assistant message sent by n8n and push it to the user's sockets.

    Body: {"message": str, "contactId": uuid, "userId": uuid}
    """
    _check_webhook_secret(request)

    try:
        payload = await request.json()
    except ValueError:
        logger.error("Webhook Error: body is not valid JSON")
        return _received("the body is not valid JSON")

    if not isinstance(payload, dict):
        logger.error("Webhook Error: body is not a JSON object")
        return _received("missing required fields")

    message = payload.get("message")
    raw_contact_id = payload.get("contactId")
    raw_user_id = payload.get("userId")
    if not message or not raw_contact_id or not raw_user_id or not isinstance(message, str):
        logger.error("Webhook Error: Missing required fields (message, contactId, userId): %s", payload)
        return _received("missing required fields")

    user_id = _parse_uuid(raw_user_id)
    contact_id = _parse_uuid(raw_contact_id)
    if user_id is None or contact_id is None:
        logger.error("Webhook Error: malformed ids userId=%r contactId=%r", raw_user_id, raw_contact_id)
        return _received("contact or user id is malformed")

    try:
        user = await db.get(User, user_id)
        if user is None:
            logger.error("Webhook Error: User with ID %s not found.", user_id)
            return _received("user not found")

        result = await db.execute(
            select(Contact.id).where(Contact.id == contact_id, Contact.created_by == user_id)
        )
        if result.scalar_one_or_none() is None:
            logger.error(
                "Webhook Error: Contact with ID %s not found or doesn't belong to user %s.",
                contact_id,
                user_id,
            )
            return _received("contact not found or invalid")

        ai_message = AiMessage(
            message=message,
            sender_type=SenderType.AI,
            user_id=user_id,
            contact_id=contact_id,
        )
        db.add(ai_message)
        await db.commit()
    except Exception:
        logger.exception("Error in handle_webhook_message")
        await db.rollback()
        return _received("internal server error occurred")

    data = AiMessageRead.model_validate(ai_message)
    await manager.send_to_user(
        user_id,
        {"type": "newMessage", "data": data.model_dump(mode="json", by_alias=True)},
    )

    return Envelope[AiMessageRead](data=data, message="AI message received and saved.")


@router.post("/reply", response_model=Envelope[AiMessageRead], status_code=status.HTTP_201_CREATED)
async def handle_user_reply(
    data: ReplyRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> Envelope[AiMessageRead]:
    """
    Save the user's reply and queue it for the n8n reply webhook.

    The webhook is never called here; the worker delivers PENDING rows. Without
    a configured webhook URL the row is stored as SKIPPED.
    """
    await ensure_contact_owned(db, data.contact_id, current_user.id)

    delivery_status = initial_delivery_status(settings.n8n_reply_webhook_url)
    user_message = AiMessage(
        message=data.message,
        sender_type=SenderType.USER,
        user_id=current_user.id,
        contact_id=data.contact_id,
        delivery_status=delivery_status,
        next_attempt_at=utcnow() if settings.n8n_reply_webhook_url else None,
    )
    db.add(user_message)
    await db.commit()

    if settings.n8n_reply_webhook_url:
        message = "User message saved. AI response queued."
    else:
        logger.warning("N8N_REPLY_WEBHOOK_URL is not configured. Skipping AI response trigger.")
        message = "User message saved. AI response trigger skipped (Webhook URL not configured)."

    return Envelope[AiMessageRead](data=AiMessageRead.model_validate(user_message), message=message)


@router.get("/conversations", response_model=ListEnvelope[ConversationSummary])
async def get_conversation_list(current_user: CurrentUser, db: DbSession) -> ListEnvelope[ConversationSummary]:
    """One entry per contact the caller has talked about, most recent conversation first."""
    ranked = (
        select(
            AiMessage.id,
            func.row_number()
            .over(
                partition_by=AiMessage.contact_id,
                order_by=(AiMessage.created_at.desc(), AiMessage.id.desc()),
            )
            .label("position"),
        )
        .where(AiMessage.user_id == current_user.id)
        .subquery()
    )
    result = await db.execute(
        select(AiMessage, Contact.name)
        .join(ranked, ranked.c.id == AiMessage.id)
        .join(Contact, Contact.id == AiMessage.contact_id)
        .where(ranked.c.position == 1)
        .order_by(AiMessage.created_at.desc(), AiMessage.id.desc())
    )

    conversations = [
        ConversationSummary(
            contact_id=last_message.contact_id,
            contact_name=contact_name or None,
            last_message=AiMessageRead.model_validate(last_message),
        )
        for last_message, contact_name in result.all()
    ]
    return ListEnvelope[ConversationSummary](count=len(conversations), data=conversations)


@router.get("/conversations/{contact_id}", response_model=ConversationThread)
async def get_conversation(contact_id: UUID, current_user: CurrentUser, db: DbSession) -> ConversationThread:
    """Messages exchanged about one of the caller's contacts, oldest first."""
    await ensure_contact_owned(db, contact_id, current_user.id)

    result = await db.execute(
        select(AiMessage)
        .where(AiMessage.user_id == current_user.id, AiMessage.contact_id == contact_id)
        .order_by(AiMessage.created_at.asc(), AiMessage.id.asc())
    )
    messages = [AiMessageDetail.model_validate(m) for m in result.scalars().all()]
    return ConversationThread(count=len(messages), data=messages, contact_id=contact_id)


@router.delete("/conversations", response_model=MessageResponse)
async def clear_conversation_history(
    current_user: CurrentUser,
    db: DbSession,
    contact_id: Annotated[UUID | None, Query(alias="contactId")] = None,
) -> MessageResponse:
    """Delete the caller's messages, optionally only those about one contact."""
    stmt = delete(AiMessage).where(AiMessage.user_id == current_user.id)
    if contact_id:
        stmt = stmt.where(AiMessage.contact_id == contact_id)
    await db.execute(stmt)
    await db.commit()
    return MessageResponse(message="User's conversation history cleared successfully")
