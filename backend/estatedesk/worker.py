"""
Background worker delivering queued user replies to n8n.

Usage:
    python -m estatedesk.worker

Polls ai_messages for PENDING user replies that are due and POSTs them to
N8N_REPLY_WEBHOOK_URL. Run it as a separate process next to the API.
"""

import asyncio
import logging

import httpx

from estatedesk.config import get_settings
from estatedesk.db.session import AsyncSessionLocal
from estatedesk.services.reply_webhook import process_pending_replies

settings = get_settings()
logger = logging.getLogger(__name__)


async def run_once(client: httpx.AsyncClient) -> int:
    """Process one batch. Returns the number of replies attempted."""
    async with AsyncSessionLocal() as db:
        return await process_pending_replies(
            db,
            client,
            webhook_url=settings.n8n_reply_webhook_url,
            batch_size=settings.worker_batch_size,
        )


async def worker_loop() -> None:
    """Main worker loop - polls for and delivers pending replies."""
    logger.info(
        "Worker starting (poll interval: %ss, batch size: %s)",
        settings.worker_poll_interval_seconds,
        settings.worker_batch_size,
    )
    if not settings.n8n_reply_webhook_url:
        logger.warning("N8N_REPLY_WEBHOOK_URL not set - replies are stored as SKIPPED and nothing is delivered")

    async with httpx.AsyncClient(timeout=settings.reply_webhook_timeout_seconds) as client:
        while True:
            try:
                processed = await run_once(client)
            except Exception:
                logger.exception("Error in worker loop")
                processed = 0
            # Drain a full batch before sleeping
            if processed < settings.worker_batch_size:
                await asyncio.sleep(settings.worker_poll_interval_seconds)


def main() -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    try:
        asyncio.run(worker_loop())
    except KeyboardInterrupt:
        logger.info("Worker stopped")


if __name__ == "__main__":
    main()
