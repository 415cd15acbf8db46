"""
Outbound delivery of user replies to the n8n reply webhook.

POST /ai/reply only records the message. Rows start PENDING when a webhook
URL is configured (SKIPPED otherwise) and the worker hands them to n8n here:

    PENDING --2xx--> DELIVERED
    PENDING --error--> PENDING (next_attempt_at pushed back)
    PENDING --error, attempts exhausted--> FAILED
"""

import logging
from datetime import datetime, timedelta

import httpx
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from estatedesk.config import get_settings
from estatedesk.db.base import utcnow
from estatedesk.db.models import AiMessage, DeliveryStatus, SenderType

logger = logging.getLogger(__name__)
settings = get_settings()


def initial_delivery_status(webhook_url: str | None) -> DeliveryStatus:
    return DeliveryStatus.PENDING if webhook_url else DeliveryStatus.SKIPPED


def build_payload(message: AiMessage) -> dict[str, str]:
    """Body n8n expects: the conversation key plus the user's text."""
    return {
        "userId": str(message.user_id),
        "contactId": str(message.contact_id),
        "message": message.message,
    }


def backoff_delay(attempts: int) -> timedelta:
    """Exponential backoff after the given number of failed attempts, capped."""
    seconds = settings.reply_webhook_backoff_base_seconds * 2 ** max(attempts - 1, 0)
    return timedelta(seconds=min(seconds, settings.reply_webhook_backoff_max_seconds))


async def get_due_replies(db: AsyncSession, now: datetime, limit: int) -> list[AiMessage]:
    """
    PENDING user replies whose next attempt is due, oldest first.

    Rows are locked with SKIP LOCKED until the caller commits its claim; see
    claim_due_replies.
    """
    stmt = (
        select(AiMessage)
        .where(
            AiMessage.sender_type == SenderType.USER,
            AiMessage.delivery_status == DeliveryStatus.PENDING,
            or_(AiMessage.next_attempt_at.is_(None), AiMessage.next_attempt_at <= now),
        )
        .order_by(AiMessage.created_at, AiMessage.id)
        .limit(limit)
        .with_for_update(skip_locked=True)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


def mark_delivered(message: AiMessage, now: datetime) -> None:
    message.delivery_status = DeliveryStatus.DELIVERED
    message.delivered_at = now
    message.next_attempt_at = None
    message.last_delivery_error = None


def mark_failed_attempt(message: AiMessage, error: str, now: datetime) -> None:
    """
    Record a failed attempt.

    Retries are scheduled until reply_webhook_max_attempts is reached, after
    which the row is FAILED for good. The message itself is kept either way.
    """
    message.last_delivery_error = error[:500]
    if message.delivery_attempts >= settings.reply_webhook_max_attempts:
        message.delivery_status = DeliveryStatus.FAILED
        message.next_attempt_at = None
    else:
        message.delivery_status = DeliveryStatus.PENDING
        message.next_attempt_at = now + backoff_delay(message.delivery_attempts)


def record_failure(message: AiMessage, error: Exception, now: datetime) -> None:
    mark_failed_attempt(message, f"{type(error).__name__}: {error}", now)
    if message.delivery_status == DeliveryStatus.FAILED:
        logger.error(
            "Reply %s failed permanently after %d attempts: %s",
            message.id,
            message.delivery_attempts,
            type(error).__name__,
        )
    else:
        logger.warning(
            "Reply %s delivery attempt %d failed (%s), retrying at %s",
            message.id,
            message.delivery_attempts,
            type(error).__name__,
            message.next_attempt_at.isoformat(),
        )


async def deliver_reply(client: httpx.AsyncClient, webhook_url: str, message: AiMessage) -> None:
    """POST one reply to n8n. Raises httpx.HTTPError on transport errors and non-2xx answers."""
    response = await client.post(webhook_url, json=build_payload(message))
    response.raise_for_status()


async def claim_due_replies(db: AsyncSession, now: datetime, limit: int) -> list[AiMessage]:
    """
    Take one batch of due replies for this worker and commit the claim.

    Each claimed row counts an attempt and has next_attempt_at pushed out by
    the lease, so other workers skip it once the row locks are released. A
    worker that dies mid-delivery leaves the row to be picked up again when
    the lease runs out.
    """
    replies = await get_due_replies(db, now, limit)
    lease_until = now + timedelta(seconds=settings.reply_webhook_lease_seconds)
    for message in replies:
        message.delivery_attempts += 1
        message.next_attempt_at = lease_until
    await db.commit()
    return replies


async def process_pending_replies(
    db: AsyncSession,
    client: httpx.AsyncClient,
    *,
    webhook_url: str | None,
    batch_size: int = 10,
    now: datetime | None = None,
) -> int:
    """
    Attempt delivery of one batch of due replies.

    The batch is claimed before any request goes out. Each outcome is then
    committed on its own so one slow or failing delivery does not hold back
    the others. Returns the number of rows attempted.
    """
    if not webhook_url:
        return 0

    now = now or utcnow()
    replies = await claim_due_replies(db, now, batch_size)
    if replies:
        logger.info("Claimed %d pending replies", len(replies))

    for message in replies:
        try:
            await deliver_reply(client, webhook_url, message)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            record_failure(message, e, now)
        except Exception as e:
            logger.exception("Unexpected error delivering reply %s", message.id)
            record_failure(message, e, now)
        else:
            mark_delivered(message, now)
            logger.info("Triggered n8n reply webhook for contact %s", message.contact_id)
        await db.commit()

    return len(replies)
