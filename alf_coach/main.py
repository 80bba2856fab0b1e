"""FastAPI application entry point."""

from __future__ import annotations

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from alf_coach.api.router import api_router
from alf_coach.config import get_settings
from alf_coach.db.client import get_supabase_client
from alf_coach.utils.logging import setup_logging

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan — startup and shutdown."""
    settings = get_settings()
    setup_logging(settings.log_level)
    logger.info("alfcoach.starting", port=settings.port, model=settings.gemini_model)

    get_supabase_client()
    logger.info("alfcoach.supabase_connected")

    if not settings.gemini_api_key:
        logger.warning("alfcoach.model_key_missing")

    yield

    logger.info("alfcoach.shutdown")


app = FastAPI(
    title="ALF Coach",
    description="AI-assisted project-based lesson planning: stage chats, prompt orchestration, project store",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")


@app.get("/")
async def root():
    """Service info endpoint."""
    return {"service": "alf-coach", "version": "0.1.0"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "service": "alf-coach", "version": "0.1.0"}
