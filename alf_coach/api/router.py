"""Main API router — aggregates all endpoint modules."""

from fastapi import APIRouter

from alf_coach.api.chat import router as chat_router
from alf_coach.api.projects import router as projects_router

api_router = APIRouter()

api_router.include_router(projects_router, prefix="/projects", tags=["projects"])
api_router.include_router(chat_router, prefix="/projects", tags=["chat"])
