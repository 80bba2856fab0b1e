"""Stage progression — the linear Ideation → Curriculum → Assignments → Completed flow."""

from __future__ import annotations

from typing import Any

from alf_coach.core.conversation import can_advance
from alf_coach.db.models import CHAT_FIELDS, STAGE_ORDER, ChatMessage, IdeationSummary, Project, Stage


class StageTransitionError(ValueError):
    """Raised when a requested stage change is not allowed."""


def next_stage(stage: Stage) -> Stage | None:
    index = STAGE_ORDER.index(stage)
    return STAGE_ORDER[index + 1] if index + 1 < len(STAGE_ORDER) else None


def greeting_for(stage: Stage, project: Project) -> str:
    """Opening assistant message for a freshly entered stage."""
    title = project.title or "your project"
    if stage == Stage.IDEATION:
        return (
            f"Welcome! Let's build the foundation for **\"{title}\"**. We'll settle three things "
            "together: a Big Idea, an Essential Question and a Challenge. To start, what theme or "
            "big idea do you want this project to explore?"
        )
    if stage == Stage.CURRICULUM:
        return (
            f"Great foundations for **\"{title}\"**. Now let's map the learning journey. "
            "What phases do you picture students moving through on the way to the Challenge?"
        )
    if stage == Stage.ASSIGNMENTS:
        return (
            f"Let's create some assignments for **\"{title}\"**. Based on the curriculum, what's "
            "the first task or milestone you'd like to design?"
        )
    raise ValueError(f"Stage '{stage.value}' has no chat")


class StageCompleteGuard:
    """Transition guard: the current stage's chat must end in a completed reply.

    Assignments may also be closed by an explicit educator finalize, matching
    the "Save & View Summary" action of the web client.
    """

    name = "stage-complete"

    def check(self, project: Project, finalize: bool = False) -> None:
        stage = project.stage
        if stage == Stage.COMPLETED:
            raise StageTransitionError("Project is already completed")
        if stage == Stage.ASSIGNMENTS and finalize:
            return
        if not can_advance(project.chat_for(stage)):
            raise StageTransitionError(
                f"Stage '{stage.value}' is not complete: the latest assistant reply "
                "has not marked it complete"
            )

    def allows(self, project: Project, finalize: bool = False) -> bool:
        try:
            self.check(project, finalize)
        except StageTransitionError:
            return False
        return True


def advance(project: Project, finalize: bool = False, guard: StageCompleteGuard | None = None) -> dict[str, Any]:
    """Return the partial document update that moves ``project`` one stage forward.

    The next stage's chat is seeded with its greeting when empty; a transcript
    left over from an earlier pass (after a revision) is kept.
    """
    (guard or StageCompleteGuard()).check(project, finalize)
    target = next_stage(project.stage)
    if target is None:
        raise StageTransitionError("Project is already completed")

    updates: dict[str, Any] = {"stage": target.value}
    chat_field = CHAT_FIELDS.get(target)
    if chat_field and not project.chat_for(target):
        updates[chat_field] = [ChatMessage.assistant(greeting_for(target, project)).to_document()]
    return updates


def apply_summary(summary: IdeationSummary) -> dict[str, Any]:
    """Map an Ideation summary onto the project's top-level fields."""
    fields: dict[str, Any] = {}
    if summary.big_idea.strip():
        fields["coreIdea"] = summary.big_idea.strip()
    if summary.essential_question.strip():
        fields["essentialQuestion"] = summary.essential_question.strip()
    if summary.challenge.strip():
        fields["challenge"] = summary.challenge.strip()
    return fields


def finalize_ideation(project: Project, summary: IdeationSummary) -> tuple[dict[str, Any], ChatMessage]:
    """Close Ideation from a one-shot summary instead of waiting for the chat to flag it.

    Returns the field updates and a recap message flagged complete, which is
    what lets the guard pass on the following ``advance``.
    """
    if project.stage != Stage.IDEATION:
        raise StageTransitionError(
            f"Ideation can only be finalized during Ideation, not '{project.stage.value}'"
        )
    if not summary.is_complete():
        raise StageTransitionError("Summary is missing a Big Idea, Essential Question or Challenge")

    recap = ChatMessage.assistant(
        "Here's the foundation we settled on:\n\n"
        f"- **Big Idea:** {summary.big_idea}\n"
        f"- **Essential Question:** {summary.essential_question}\n"
        f"- **Challenge:** {summary.challenge}\n\n"
        "When you're ready, we can move on to the Learning Journey.",
        is_stage_complete=True,
        summary=summary,
    )
    return apply_summary(summary), recap


def _recap_text(project: Project, target: Stage) -> str:
    lines = [f"Let's revisit the **{target.value}** stage. Here's where things stand:", ""]
    if target == Stage.IDEATION:
        lines += [
            f"- **Big Idea:** {project.core_idea or 'Not yet defined'}",
            f"- **Essential Question:** {project.essential_question or 'Not yet defined'}",
            f"- **Challenge:** {project.challenge or 'Not yet defined'}",
        ]
    elif target == Stage.CURRICULUM:
        lines.append(project.curriculum_draft or "_The curriculum draft is empty._")
    else:
        if project.assignments:
            lines += [f"{i}. {a.title}" for i, a in enumerate(project.assignments, start=1)]
        else:
            lines.append("_No assignments yet._")
    lines += ["", "What would you like to change?"]
    return "\n".join(lines)


def start_revision(project: Project, target: Stage) -> tuple[dict[str, Any], ChatMessage]:
    """Re-enter an earlier stage's chat with a synthesized recap message.

    This is the only backward transition. The recap is not flagged complete, so
    the stage has to be completed again before advancing.
    """
    if target not in CHAT_FIELDS:
        raise StageTransitionError(f"Stage '{target.value}' has no chat to revise")
    if STAGE_ORDER.index(target) >= STAGE_ORDER.index(project.stage):
        raise StageTransitionError(
            f"Can only revise an earlier stage; project is in '{project.stage.value}'"
        )
    return {"stage": target.value}, ChatMessage.assistant(_recap_text(project, target))
