"""Per-stage response contracts for model replies.

Model output is never trusted verbatim: it is decoded, validated against the
schema of the stage that asked for it, and handed back as either a
``ValidReply`` or an ``InvalidReply``.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from alf_coach.db.models import Assignment, ChatMessage, IdeationSummary, Stage

MAX_SUGGESTIONS = 4

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```", re.IGNORECASE)


class StageReply(BaseModel):
    """Keys every chat-stage reply shares."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    chat_response: str = Field(..., alias="chatResponse", min_length=1)
    suggestions: list[str] | None = None
    is_stage_complete: bool = Field(default=False, alias="isStageComplete")

    @field_validator("chat_response", mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("suggestions", mode="before")
    @classmethod
    def _normalise_suggestions(cls, value: Any) -> Any:
        if value is None:
            return None
        if not isinstance(value, list):
            raise ValueError("suggestions must be a list")
        cleaned: list[str] = []
        for item in value:
            # Older prompts asked for {id, text, category} objects.
            if isinstance(item, dict):
                item = item.get("text")
            if isinstance(item, str) and item.strip():
                cleaned.append(item.strip())
        return cleaned[:MAX_SUGGESTIONS] or None

    @field_validator("is_stage_complete", mode="before")
    @classmethod
    def _null_is_false(cls, value: Any) -> Any:
        return False if value is None else value

    def message_fields(self) -> dict[str, Any]:
        """Stage-specific fields to copy onto the stored assistant message."""
        return {}

    def to_message(self) -> ChatMessage:
        return ChatMessage.assistant(
            self.chat_response,
            suggestions=self.suggestions,
            is_stage_complete=self.is_stage_complete,
            **self.message_fields(),
        )


class IdeationReply(StageReply):
    summary: IdeationSummary | None = None

    def message_fields(self) -> dict[str, Any]:
        return {"summary": self.summary} if self.summary else {}


class CurriculumReply(StageReply):
    curriculum_append: str | None = Field(default=None, alias="curriculumAppend")

    @field_validator("curriculum_append", mode="before")
    @classmethod
    def _blank_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def message_fields(self) -> dict[str, Any]:
        return {"curriculum_append": self.curriculum_append} if self.curriculum_append else {}


class AssignmentReply(StageReply):
    new_assignment: Assignment | None = Field(default=None, alias="newAssignment")

    def message_fields(self) -> dict[str, Any]:
        return {"new_assignment": self.new_assignment} if self.new_assignment else {}


class SummaryReply(BaseModel):
    """One-shot Ideation finalisation reply."""

    model_config = ConfigDict(extra="ignore")

    summary: IdeationSummary


REPLY_SCHEMAS: dict[Stage, type[StageReply]] = {
    Stage.IDEATION: IdeationReply,
    Stage.CURRICULUM: CurriculumReply,
    Stage.ASSIGNMENTS: AssignmentReply,
}


@dataclass
class ValidReply:
    reply: Any


@dataclass
class InvalidReply:
    errors: list[str] = field(default_factory=list)
    raw: Any = None


ReplyResult = ValidReply | InvalidReply


def decode_reply_text(text: str) -> dict[str, Any]:
    """Recover a JSON object from model text.

    Tries the whole text, then a fenced ```json block, then the outermost
    ``{...}`` span. Raises ValueError when none of them is a JSON object.
    """
    stripped = (text or "").strip()
    if not stripped:
        raise ValueError("Empty model reply")

    candidates = [stripped]
    fenced = _FENCED_JSON.search(stripped)
    if fenced:
        candidates.append(fenced.group(1))
    first, last = stripped.find("{"), stripped.rfind("}")
    if first != -1 and last > first:
        candidates.append(stripped[first : last + 1])

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    raise ValueError("Model reply is not a JSON object")


def _validate(schema: type[BaseModel], raw: Any) -> ReplyResult:
    if isinstance(raw, str):
        try:
            payload = decode_reply_text(raw)
        except ValueError as e:
            return InvalidReply(errors=[str(e)], raw=raw)
    elif isinstance(raw, dict):
        payload = raw
    else:
        return InvalidReply(errors=[f"Unsupported reply type: {type(raw).__name__}"], raw=raw)

    if "error" in payload and payload["error"]:
        error = payload["error"]
        message = error.get("message") if isinstance(error, dict) else str(error)
        return InvalidReply(errors=[message or "Model returned an error"], raw=raw)

    try:
        return ValidReply(reply=schema.model_validate(payload))
    except ValidationError as e:
        errors = [
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}" for err in e.errors()
        ]
        return InvalidReply(errors=errors, raw=raw)


def parse_reply(stage: Stage, raw: Any) -> ReplyResult:
    """Validate a chat reply against the contract of ``stage``."""
    schema = REPLY_SCHEMAS.get(stage)
    if schema is None:
        return InvalidReply(errors=[f"Stage '{stage.value}' has no reply contract"], raw=raw)
    return _validate(schema, raw)


def parse_summary(raw: Any) -> ReplyResult:
    """Validate the one-shot Ideation summary reply."""
    return _validate(SummaryReply, raw)
