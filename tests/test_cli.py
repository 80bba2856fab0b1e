"""Tests for the alf CLI."""

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from alf_coach.cli.main import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def mock_client():
    with patch("alf_coach.cli.main.CoachClient") as MockClass:
        client = MagicMock()
        MockClass.return_value = client
        yield client


class TestProjectCommands:
    def test_project_list(self, runner, mock_client):
        mock_client.list_projects.return_value = [
            {"id": "p1", "title": "Bots for Good", "stage": "Ideation", "subject": "Robotics", "ageGroup": None}
        ]
        result = runner.invoke(cli, ["project", "list"])
        assert result.exit_code == 0
        assert "Bots for Good" in result.output
        assert "AGEGROUP" in result.output

    def test_project_list_by_stage(self, runner, mock_client):
        mock_client.list_projects.return_value = []
        result = runner.invoke(cli, ["project", "list", "--stage", "Curriculum"])
        assert result.exit_code == 0
        mock_client.list_projects.assert_called_once_with(stage="Curriculum")
        assert "No results." in result.output

    def test_project_create(self, runner, mock_client):
        mock_client.create_project.return_value = {"id": "p1", "title": "Stars"}
        result = runner.invoke(
            cli,
            ["project", "create", "--title", "Stars", "--perspective", "Look up", "--age-group", "Ages 8-10"],
        )
        assert result.exit_code == 0
        mock_client.create_project.assert_called_once_with(
            {"title": "Stars", "educatorPerspective": "Look up", "ageGroup": "Ages 8-10"}
        )

    def test_project_show_json(self, runner, mock_client):
        mock_client.get_project.return_value = {"id": "p1", "title": "Stars"}
        result = runner.invoke(cli, ["--format", "json", "project", "show", "p1"])
        assert result.exit_code == 0
        assert json.loads(result.output)["title"] == "Stars"


class TestChatCommands:
    def test_chat_prints_reply_and_suggestions(self, runner, mock_client):
        mock_client.send_message.return_value = {
            "stage": "Ideation",
            "reply": {"chatResponse": "What draws you to robots?", "suggestions": ["Helpers"]},
            "valid": True,
            "canAdvance": False,
        }
        result = runner.invoke(cli, ["chat", "p1", "Robots"])
        assert result.exit_code == 0
        mock_client.send_message.assert_called_once_with("p1", "Robots")
        assert "What draws you to robots?" in result.output
        assert "[1] Helpers" in result.output
        assert "alf advance" not in result.output

    def test_chat_hints_advance(self, runner, mock_client):
        mock_client.send_message.return_value = {
            "stage": "Ideation",
            "reply": {"chatResponse": "Done!"},
            "valid": True,
            "canAdvance": True,
        }
        result = runner.invoke(cli, ["chat", "p1", "Yes"])
        assert "Ideation is complete" in result.output

    def test_finalize(self, runner, mock_client):
        mock_client.finalize_ideation.return_value = {
            "stage": "Ideation",
            "reply": {"chatResponse": "Here's the foundation"},
            "valid": True,
            "canAdvance": True,
        }
        result = runner.invoke(cli, ["finalize", "p1"])
        assert result.exit_code == 0
        mock_client.finalize_ideation.assert_called_once_with("p1")


class TestStageCommands:
    def test_advance(self, runner, mock_client):
        mock_client.advance.return_value = {"stage": "Curriculum"}
        result = runner.invoke(cli, ["advance", "p1"])
        assert result.exit_code == 0
        mock_client.advance.assert_called_once_with("p1", finalize=False)
        assert "Curriculum" in result.output

    def test_advance_finalize(self, runner, mock_client):
        mock_client.advance.return_value = {"stage": "Completed"}
        result = runner.invoke(cli, ["advance", "p1", "--finalize"])
        mock_client.advance.assert_called_once_with("p1", finalize=True)
        assert "Completed" in result.output

    def test_revise(self, runner, mock_client):
        mock_client.revise.return_value = {"stage": "Ideation"}
        result = runner.invoke(cli, ["revise", "p1", "Ideation"])
        assert result.exit_code == 0
        mock_client.revise.assert_called_once_with("p1", "Ideation")

    def test_revise_rejects_completed(self, runner, mock_client):
        result = runner.invoke(cli, ["revise", "p1", "Completed"])
        assert result.exit_code != 0

    def test_prompt(self, runner, mock_client):
        mock_client.preview_prompt.return_value = {
            "prompt": "You are a coach.",
            "manifest": {},
            "warnings": ["No age lens for age group ''"],
        }
        result = runner.invoke(cli, ["prompt", "p1", "--stage", "Curriculum"])
        assert result.exit_code == 0
        mock_client.preview_prompt.assert_called_once_with("p1", stage="Curriculum", summary=False)
        assert "You are a coach." in result.output
