"""Pydantic request/response models for the API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from alf_coach.db.models import ChatMessage, Project, Stage


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# --- Projects ---


class ProjectCreate(_CamelModel):
    """Onboarding wizard payload."""

    title: str = Field(..., min_length=1, max_length=200)
    educator_perspective: str = Field(..., alias="educatorPerspective", min_length=1)
    subject: str | None = None
    age_group: str | None = Field(default=None, alias="ageGroup")
    project_scope: str | None = Field(default=None, alias="projectScope")
    studio_theme: str | None = Field(default=None, alias="studioTheme")
    location: str | None = None

    def to_project(self) -> Project:
        return Project(**self.model_dump())


class ProjectSummaryResponse(_CamelModel):
    """Dashboard row."""

    id: str
    title: str
    stage: Stage
    subject: str | None = None
    age_group: str | None = Field(default=None, alias="ageGroup")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")


# --- Chat ---


class ChatRequest(BaseModel):
    """One educator message."""

    message: str = Field(..., min_length=1, max_length=8000)


class TurnResponse(_CamelModel):
    """Outcome of a chat turn."""

    stage: Stage
    reply: ChatMessage
    state: str
    can_advance: bool = Field(..., alias="canAdvance")
    valid: bool
    errors: list[str] = Field(default_factory=list)
    project: Project


class AdvanceRequest(BaseModel):
    """Advance to the next stage; ``finalize`` closes Assignments explicitly."""

    finalize: bool = False


class ReviseRequest(BaseModel):
    """Re-enter an earlier stage."""

    stage: Stage


# --- Prompt preview ---


class PromptManifest(BaseModel):
    """Which sections a composed prompt contains."""

    composed_at: str
    stage: str
    sections: list[str]
    age_band: str | None = None
    studio_theme: str | None = None
    estimated_tokens: int


class ComposeResponse(BaseModel):
    """Composed system prompt with provenance."""

    prompt: str
    manifest: PromptManifest
    warnings: list[str] = Field(default_factory=list)


def turn_response(outcome: Any) -> TurnResponse:
    """Build a TurnResponse from a coach TurnOutcome."""
    return TurnResponse(
        stage=outcome.stage,
        reply=outcome.reply,
        state=outcome.state_name,
        can_advance=outcome.can_advance,
        valid=outcome.valid,
        errors=outcome.errors,
        project=outcome.project,
    )
