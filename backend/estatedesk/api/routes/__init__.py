"""API routes package."""

from estatedesk.api.routes import (
    ai,
    auth,
    calculations,
    contacts,
    feedbacks,
    questionnaires,
    videos,
    ws,
)

__all__ = [
    "ai",
    "auth",
    "calculations",
    "contacts",
    "feedbacks",
    "questionnaires",
    "videos",
    "ws",
]
