"""Coach service — runs one chat turn end to end.

Load the project, assemble the stage prompt, call the model once, validate the
reply against the stage contract, merge structured fields, persist.

Delivery rules: the model is called at most once per user turn and is never
retried. Document writes carry message ids and the store skips ids it already
has, so a write can be replayed safely.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

import structlog

from alf_coach.core import stages
from alf_coach.core.contracts import (
    AssignmentReply,
    CurriculumReply,
    IdeationReply,
    InvalidReply,
    StageReply,
    ValidReply,
    parse_reply,
    parse_summary,
)
from alf_coach.core.conversation import (
    APOLOGY,
    ChatState,
    Idle,
    ModelFailed,
    ModelReplied,
    UserSent,
    can_advance,
    initial_state,
    reduce,
    state_name,
)
from alf_coach.core.llm import ModelClient, ModelClientError, get_model_client, to_model_history
from alf_coach.db.models import ChatMessage, Project, Stage
from alf_coach.db.project_store import ProjectStore, get_project_store
from alf_coach.prompts.orchestrator import build_stage_prompt, build_summary_prompt, compose_stage_prompt
from alf_coach.utils.logging import bind_project

logger = structlog.get_logger()

FINALIZE_REQUEST = "Please finalize the Ideation stage and summarize what we agreed on."


class TurnInProgressError(RuntimeError):
    """A model request for this project is already in flight."""


@dataclass
class TurnOutcome:
    """Result of one turn, valid or not."""

    project: Project
    stage: Stage
    reply: ChatMessage
    state: ChatState
    valid: bool = True
    errors: list[str] = field(default_factory=list)

    @property
    def can_advance(self) -> bool:
        return can_advance(self.state.messages)

    @property
    def state_name(self) -> str:
        return state_name(self.state)


def merge_reply_fields(project: Project, reply: StageReply) -> dict[str, Any]:
    """Top-level project fields a validated reply writes back."""
    if isinstance(reply, IdeationReply) and reply.summary:
        return stages.apply_summary(reply.summary)
    if isinstance(reply, CurriculumReply) and reply.curriculum_append:
        draft = (project.curriculum_draft or "").rstrip()
        addition = reply.curriculum_append.strip()
        return {"curriculumDraft": f"{draft}\n\n{addition}" if draft else addition}
    if isinstance(reply, AssignmentReply) and reply.new_assignment:
        assignments = [a.to_document() for a in project.assignments]
        assignments.append(reply.new_assignment.to_document())
        return {"assignments": assignments}
    return {}


class StageCoach:
    """Drives the stage chats of a project."""

    def __init__(self, store: ProjectStore, model: ModelClient) -> None:
        self.store = store
        self.model = model
        self._in_flight: set[str] = set()

    def create_project(self, project: Project) -> Project:
        """Create a project at onboarding with the Ideation chat already greeted."""
        seeded = project.model_copy(
            update={
                "stage": Stage.IDEATION,
                "ideation_chat": [
                    ChatMessage.assistant(stages.greeting_for(Stage.IDEATION, project))
                ],
            }
        )
        return self.store.create_project(seeded)

    def current_state(self, project: Project) -> ChatState:
        """Conversation state of the project's current stage as stored."""
        if project.stage == Stage.COMPLETED:
            return Idle(tuple(project.assignment_chat))
        return initial_state(
            project.chat_for(project.stage), stages.greeting_for(project.stage, project)
        )

    async def _call_model(self, history: list[dict[str, Any]], prompt: str) -> str | None:
        try:
            return await self.model.generate(history, prompt)
        except ModelClientError as e:
            logger.warning("coach.model_failed", error=str(e))
            return None

    async def send_message(self, project_id: str, text: str) -> TurnOutcome:
        """Send one educator message in the project's current stage."""
        text = text.strip()
        if not text:
            raise ValueError("Message is empty")
        if project_id in self._in_flight:
            raise TurnInProgressError(f"A reply for project '{project_id}' is still pending")

        project = self.store.require_project(project_id)
        stage = project.stage
        if stage == Stage.COMPLETED:
            raise stages.StageTransitionError("Project is completed; revise a stage to keep chatting")
        bind_project(project_id, stage.value)

        stored = project.chat_for(stage)
        state = initial_state(stored, stages.greeting_for(stage, project))
        state = reduce(state, UserSent(ChatMessage.user(text)))

        self._in_flight.add(project_id)
        try:
            prompt = build_stage_prompt(project, stage, latest_message=text)
            raw = await self._call_model(to_model_history(state.messages), prompt)
            result = parse_reply(stage, raw) if raw is not None else InvalidReply(
                errors=["Model call failed"]
            )

            extra: dict[str, Any] = {}
            if isinstance(result, ValidReply):
                reply = result.reply.to_message()
                state = reduce(state, ModelReplied(reply))
                extra = merge_reply_fields(project, result.reply)
            else:
                logger.warning("coach.reply_rejected", errors=result.errors)
                state = reduce(state, ModelFailed("; ".join(result.errors)))
                reply = state.messages[-1]

            fresh = list(state.messages[len(stored):])
            updated = self.store.append_messages(project_id, stage, fresh, extra=extra)
        finally:
            self._in_flight.discard(project_id)

        outcome = TurnOutcome(
            project=updated,
            stage=stage,
            reply=reply,
            state=state,
            valid=isinstance(result, ValidReply),
            errors=[] if isinstance(result, ValidReply) else result.errors,
        )
        logger.info(
            "coach.turn_completed",
            valid=outcome.valid,
            state=outcome.state_name,
            merged=sorted(extra),
        )
        return outcome

    async def finalize_ideation(self, project_id: str) -> TurnOutcome:
        """One-shot summary call that closes Ideation on the educator's request."""
        project = self.store.require_project(project_id)
        if project.stage != Stage.IDEATION:
            raise stages.StageTransitionError(
                f"Ideation can only be finalized during Ideation, not '{project.stage.value}'"
            )
        bind_project(project_id, Stage.IDEATION.value)

        history = to_model_history(project.ideation_chat)
        history.append({"role": "user", "parts": [{"text": FINALIZE_REQUEST}]})
        raw = await self._call_model(history, build_summary_prompt(project))
        result = parse_summary(raw) if raw is not None else InvalidReply(errors=["Model call failed"])

        if isinstance(result, ValidReply) and not result.reply.summary.is_complete():
            result = InvalidReply(errors=["summary: incomplete foundations"], raw=raw)

        if isinstance(result, ValidReply):
            fields, recap = stages.finalize_ideation(project, result.reply.summary)
            updated = self.store.append_messages(project_id, Stage.IDEATION, [recap], extra=fields)
            reply = recap
        else:
            logger.warning("coach.summary_rejected", errors=result.errors)
            reply = ChatMessage.assistant(APOLOGY)
            updated = self.store.append_messages(project_id, Stage.IDEATION, [reply])

        state = self.current_state(updated)
        logger.info("coach.ideation_finalized", valid=isinstance(result, ValidReply))
        return TurnOutcome(
            project=updated,
            stage=Stage.IDEATION,
            reply=reply,
            state=state,
            valid=isinstance(result, ValidReply),
            errors=[] if isinstance(result, ValidReply) else result.errors,
        )

    def advance_stage(self, project_id: str, finalize: bool = False) -> Project:
        """Move the project one stage forward if the guard allows it."""
        project = self.store.require_project(project_id)
        updates = stages.advance(project, finalize=finalize)
        target = Stage(updates.pop("stage"))
        updated = self.store.set_stage(project_id, target, extra=updates)
        logger.info(
            "coach.stage_advanced",
            id=project_id,
            from_stage=project.stage.value,
            to_stage=updated.stage.value,
        )
        return updated

    def start_revision(self, project_id: str, target: Stage) -> Project:
        """Re-enter an earlier stage with a recap message."""
        project = self.store.require_project(project_id)
        updates, recap = stages.start_revision(project, target)
        updated = self.store.append_messages(project_id, target, [recap], extra=updates)
        logger.info(
            "coach.revision_started",
            id=project_id,
            from_stage=project.stage.value,
            to_stage=target.value,
        )
        return updated

    def preview_prompt(self, project_id: str, stage: Stage | None = None, summary: bool = False) -> dict[str, Any]:
        """Compose the system prompt the next turn would use, with its manifest."""
        project = self.store.require_project(project_id)
        target = stage or project.stage
        if target == Stage.COMPLETED and not summary:
            raise stages.StageTransitionError("Completed projects have no chat prompt")
        return compose_stage_prompt(project, target, summary=summary)


@lru_cache
def get_coach() -> StageCoach:
    """Get cached coach instance."""
    return StageCoach(get_project_store(), get_model_client())
