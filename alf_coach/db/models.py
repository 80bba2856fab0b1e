"""Database models / type definitions.

These mirror the Supabase ``projects`` table. Stored documents use the
camelCase keys of the web client, except the store-managed
``created_at``/``updated_at`` columns. Python code uses snake_case
attributes and dumps with ``by_alias=True`` before writing.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Stage(str, Enum):
    """Coarse, linear progress marker for a project."""

    IDEATION = "Ideation"
    CURRICULUM = "Curriculum"
    ASSIGNMENTS = "Assignments"
    COMPLETED = "Completed"


STAGE_ORDER: list[Stage] = [Stage.IDEATION, Stage.CURRICULUM, Stage.ASSIGNMENTS, Stage.COMPLETED]

CHAT_FIELDS: dict[Stage, str] = {
    Stage.IDEATION: "ideationChat",
    Stage.CURRICULUM: "curriculumChat",
    Stage.ASSIGNMENTS: "assignmentChat",
}


class _Document(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_document(self) -> dict[str, Any]:
        """Serialise with stored (camelCase) keys, dropping unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Assignment(_Document):
    """One assessable task produced in the Assignments stage."""

    title: str
    description: str = ""
    rubric: str = ""


class IdeationSummary(_Document):
    """The three foundations settled during Ideation."""

    big_idea: str = Field(default="", alias="bigIdea")
    essential_question: str = Field(default="", alias="essentialQuestion")
    challenge: str = ""

    @field_validator("big_idea", "essential_question", "challenge", mode="before")
    @classmethod
    def _null_is_blank(cls, value: Any) -> Any:
        return "" if value is None else value

    def is_complete(self) -> bool:
        return all(v.strip() for v in (self.big_idea, self.essential_question, self.challenge))


class ChatMessage(_Document):
    """One entry of a stage transcript.

    ``id`` is generated client-side and used to deduplicate repeated writes.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    role: Literal["user", "assistant"]
    chat_response: str = Field(default="", alias="chatResponse")
    suggestions: list[str] | None = None
    is_stage_complete: bool | None = Field(default=None, alias="isStageComplete")
    new_assignment: Assignment | None = Field(default=None, alias="newAssignment")
    curriculum_append: str | None = Field(default=None, alias="curriculumAppend")
    summary: IdeationSummary | None = None
    created_at: datetime = Field(default_factory=_utcnow, alias="createdAt")

    @model_validator(mode="before")
    @classmethod
    def _accept_content_key(cls, data: Any) -> Any:
        # Older transcripts stored the text under "content".
        if isinstance(data, dict) and "content" in data and "chatResponse" not in data:
            data = dict(data)
            data["chatResponse"] = data.pop("content") or ""
        return data

    @classmethod
    def user(cls, text: str) -> ChatMessage:
        return cls(role="user", chat_response=text)

    @classmethod
    def assistant(cls, text: str, **fields: Any) -> ChatMessage:
        return cls(role="assistant", chat_response=text, **fields)


class Project(_Document):
    """The persisted per-lesson-plan document."""

    id: str | None = None
    title: str = ""
    age_group: str | None = Field(default=None, alias="ageGroup")
    subject: str | None = None
    educator_perspective: str | None = Field(default=None, alias="educatorPerspective")
    project_scope: str | None = Field(default=None, alias="projectScope")
    studio_theme: str | None = Field(default=None, alias="studioTheme")
    location: str | None = None
    stage: Stage = Stage.IDEATION
    core_idea: str | None = Field(default=None, alias="coreIdea")
    essential_question: str | None = Field(default=None, alias="essentialQuestion")
    challenge: str | None = None
    curriculum_draft: str | None = Field(default=None, alias="curriculumDraft")
    assignments: list[Assignment] = Field(default_factory=list)
    ideation_chat: list[ChatMessage] = Field(default_factory=list, alias="ideationChat")
    curriculum_chat: list[ChatMessage] = Field(default_factory=list, alias="curriculumChat")
    assignment_chat: list[ChatMessage] = Field(default_factory=list, alias="assignmentChat")
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def chat_for(self, stage: Stage) -> list[ChatMessage]:
        """Return the transcript owned by ``stage``; Completed owns none."""
        field = CHAT_FIELDS.get(stage)
        if field is None:
            return []
        return getattr(self, _ATTR_BY_FIELD[field])


_ATTR_BY_FIELD = {
    "ideationChat": "ideation_chat",
    "curriculumChat": "curriculum_chat",
    "assignmentChat": "assignment_chat",
}
