"""Tests for document models and API request models."""

import pytest
from pydantic import ValidationError

from alf_coach.api.models import ChatRequest, ProjectCreate
from alf_coach.db.models import ChatMessage, IdeationSummary, Project, Stage


class TestChatMessage:
    def test_ids_are_unique(self):
        assert ChatMessage.user("a").id != ChatMessage.user("a").id

    def test_legacy_content_key(self):
        message = ChatMessage.model_validate({"role": "user", "content": "Hello"})
        assert message.chat_response == "Hello"

    def test_document_uses_camel_case(self):
        doc = ChatMessage.assistant("Done", is_stage_complete=True).to_document()
        assert doc["chatResponse"] == "Done"
        assert doc["isStageComplete"] is True
        assert "suggestions" not in doc
        assert "createdAt" in doc

    def test_invalid_role(self):
        with pytest.raises(ValidationError):
            ChatMessage(role="system", chat_response="x")


class TestProject:
    def test_defaults(self):
        project = Project(title="Stars")
        assert project.stage == Stage.IDEATION
        assert project.assignments == []
        assert project.chat_for(Stage.IDEATION) == []

    def test_load_from_stored_document(self):
        project = Project.model_validate(
            {
                "id": "p1",
                "title": "Stars",
                "ageGroup": "Ages 8-10",
                "stage": "Curriculum",
                "curriculumChat": [{"role": "assistant", "chatResponse": "Hi"}],
            }
        )
        assert project.age_group == "Ages 8-10"
        assert project.stage == Stage.CURRICULUM
        assert project.chat_for(Stage.CURRICULUM)[0].chat_response == "Hi"
        assert project.chat_for(Stage.COMPLETED) == []

    def test_unknown_stage(self):
        with pytest.raises(ValidationError):
            Project.model_validate({"title": "Stars", "stage": "Brainstorm"})


class TestIdeationSummary:
    def test_complete(self):
        assert IdeationSummary(big_idea="A", essential_question="B", challenge="C").is_complete()

    def test_blank_part(self):
        assert not IdeationSummary(big_idea="A", essential_question=" ", challenge="C").is_complete()


class TestRequestModels:
    def test_project_create_requires_perspective(self):
        with pytest.raises(ValidationError):
            ProjectCreate.model_validate({"title": "Stars"})

    def test_project_create_to_project(self):
        data = ProjectCreate.model_validate(
            {"title": "Stars", "educatorPerspective": "Look up", "ageGroup": "Ages 8-10"}
        )
        project = data.to_project()
        assert project.age_group == "Ages 8-10"
        assert project.educator_perspective == "Look up"

    def test_chat_request_not_empty(self):
        with pytest.raises(ValidationError):
            ChatRequest(message="")
