"""Services for external integrations."""

from estatedesk.services.broadcast import manager
from estatedesk.services.reply_webhook import process_pending_replies

__all__ = ["manager", "process_pending_replies"]
