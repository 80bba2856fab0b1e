"""Tests for stage progression, finalization and revision."""

import pytest

from alf_coach.core.stages import (
    StageCompleteGuard,
    StageTransitionError,
    advance,
    apply_summary,
    finalize_ideation,
    greeting_for,
    next_stage,
    start_revision,
)
from alf_coach.db.models import Assignment, ChatMessage, IdeationSummary, Project, Stage

SUMMARY = IdeationSummary(
    big_idea="Machines can care",
    essential_question="How can robots help people?",
    challenge="Build a helper bot for the library",
)


def _project(stage: Stage = Stage.IDEATION, **fields) -> Project:
    return Project(id="p1", title="Bots for Good", stage=stage, **fields)


def _done() -> list[ChatMessage]:
    return [ChatMessage.user("Ok"), ChatMessage.assistant("Done", is_stage_complete=True)]


class TestNextStage:
    def test_linear_order(self):
        assert next_stage(Stage.IDEATION) == Stage.CURRICULUM
        assert next_stage(Stage.CURRICULUM) == Stage.ASSIGNMENTS
        assert next_stage(Stage.ASSIGNMENTS) == Stage.COMPLETED
        assert next_stage(Stage.COMPLETED) is None

    def test_greeting_names_project(self):
        assert "Bots for Good" in greeting_for(Stage.ASSIGNMENTS, _project())

    def test_completed_has_no_greeting(self):
        with pytest.raises(ValueError):
            greeting_for(Stage.COMPLETED, _project())


class TestGuard:
    def test_blocks_incomplete_stage(self):
        project = _project(ideation_chat=[ChatMessage.assistant("Hi"), ChatMessage.user("Robots")])
        guard = StageCompleteGuard()
        assert guard.allows(project) is False
        with pytest.raises(StageTransitionError, match="not complete"):
            guard.check(project)

    def test_allows_complete_stage(self):
        assert StageCompleteGuard().allows(_project(ideation_chat=_done())) is True

    def test_assignments_finalize_bypasses_flag(self):
        project = _project(Stage.ASSIGNMENTS, assignment_chat=[ChatMessage.assistant("Hi")])
        guard = StageCompleteGuard()
        assert guard.allows(project) is False
        assert guard.allows(project, finalize=True) is True

    def test_finalize_does_not_bypass_other_stages(self):
        project = _project(Stage.CURRICULUM, curriculum_chat=[ChatMessage.assistant("Hi")])
        assert StageCompleteGuard().allows(project, finalize=True) is False

    def test_completed_never_advances(self):
        assert StageCompleteGuard().allows(_project(Stage.COMPLETED), finalize=True) is False


class TestAdvance:
    def test_ideation_to_curriculum_seeds_greeting(self):
        updates = advance(_project(ideation_chat=_done()))
        assert updates["stage"] == "Curriculum"
        chat = updates["curriculumChat"]
        assert len(chat) == 1
        assert chat[0]["role"] == "assistant"
        assert "Bots for Good" in chat[0]["chatResponse"]

    def test_existing_next_chat_is_kept(self):
        earlier = [ChatMessage.assistant("Earlier pass")]
        updates = advance(_project(ideation_chat=_done(), curriculum_chat=earlier))
        assert updates == {"stage": "Curriculum"}

    def test_assignments_to_completed(self):
        updates = advance(_project(Stage.ASSIGNMENTS), finalize=True)
        assert updates == {"stage": "Completed"}

    def test_incomplete_stage_raises(self):
        with pytest.raises(StageTransitionError):
            advance(_project(ideation_chat=[ChatMessage.assistant("Hi")]))

    def test_completed_raises(self):
        with pytest.raises(StageTransitionError, match="already completed"):
            advance(_project(Stage.COMPLETED))


class TestFinalizeIdeation:
    def test_apply_summary(self):
        assert apply_summary(SUMMARY) == {
            "coreIdea": "Machines can care",
            "essentialQuestion": "How can robots help people?",
            "challenge": "Build a helper bot for the library",
        }

    def test_apply_partial_summary(self):
        assert apply_summary(IdeationSummary(big_idea=" Rivers ")) == {"coreIdea": "Rivers"}

    def test_recap_is_flagged_complete(self):
        fields, recap = finalize_ideation(_project(), SUMMARY)
        assert fields["coreIdea"] == "Machines can care"
        assert recap.is_stage_complete is True
        assert "How can robots help people?" in recap.chat_response
        project = _project(ideation_chat=[ChatMessage.user("Wrap up"), recap])
        assert StageCompleteGuard().allows(project)

    def test_incomplete_summary_raises(self):
        with pytest.raises(StageTransitionError, match="missing"):
            finalize_ideation(_project(), IdeationSummary(big_idea="Only this"))

    def test_outside_ideation_raises(self):
        with pytest.raises(StageTransitionError):
            finalize_ideation(_project(Stage.CURRICULUM), SUMMARY)


class TestStartRevision:
    def test_back_to_ideation_recaps_foundations(self):
        project = _project(Stage.CURRICULUM, core_idea="Machines can care")
        updates, recap = start_revision(project, Stage.IDEATION)
        assert updates == {"stage": "Ideation"}
        assert "Machines can care" in recap.chat_response
        assert "Not yet defined" in recap.chat_response
        assert recap.is_stage_complete is None

    def test_back_to_curriculum_shows_draft(self):
        project = _project(Stage.ASSIGNMENTS, curriculum_draft="## Phase 1")
        _, recap = start_revision(project, Stage.CURRICULUM)
        assert "## Phase 1" in recap.chat_response

    def test_from_completed_lists_assignments(self):
        project = _project(Stage.COMPLETED, assignments=[Assignment(title="Prototype")])
        _, recap = start_revision(project, Stage.ASSIGNMENTS)
        assert "1. Prototype" in recap.chat_response

    def test_forward_target_raises(self):
        with pytest.raises(StageTransitionError, match="earlier stage"):
            start_revision(_project(Stage.IDEATION), Stage.CURRICULUM)

    def test_same_stage_raises(self):
        with pytest.raises(StageTransitionError):
            start_revision(_project(Stage.CURRICULUM), Stage.CURRICULUM)

    def test_completed_target_raises(self):
        with pytest.raises(StageTransitionError, match="no chat"):
            start_revision(_project(Stage.COMPLETED), Stage.COMPLETED)
