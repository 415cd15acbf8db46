"""
EstateDesk FastAPI Application Entry Point.

Run with: uvicorn estatedesk.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

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
from estatedesk.config import get_settings
from estatedesk.errors import register_error_handlers

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup/shutdown."""
    logging.basicConfig(level=settings.log_level)
    if not settings.n8n_reply_webhook_url:
        logger.warning("N8N_REPLY_WEBHOOK_URL not set - user replies will not reach the assistant")
    yield


app = FastAPI(
    title=settings.app_name,
    description="Real-estate CRM API",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Include routers
app.include_router(auth.router)
app.include_router(contacts.router)
app.include_router(calculations.router)
app.include_router(questionnaires.router)
app.include_router(videos.router)
app.include_router(feedbacks.router)
app.include_router(ai.router)
app.include_router(ws.router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}
