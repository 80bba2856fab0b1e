"""Test fixtures — mock Supabase client, fake model client and shared test data."""

from __future__ import annotations

import copy
import json
from datetime import datetime, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from alf_coach.core.coach import StageCoach
from alf_coach.core.llm import ModelClient
from alf_coach.db.client import SupabaseClient
from alf_coach.db.models import ChatMessage, Project
from alf_coach.db.project_store import ProjectStore


class MockSupabaseClient(SupabaseClient):
    """In-memory mock of the Supabase client for testing."""

    def __init__(self):
        self._tables: dict[str, list[dict[str, Any]]] = {"projects": []}

    @property
    def client(self):
        return MagicMock()

    def insert(self, table: str, data: dict[str, Any]) -> dict[str, Any]:
        record = {
            "id": str(uuid4()),
            "created_at": datetime.now(timezone.utc).isoformat(),
            "updated_at": datetime.now(timezone.utc).isoformat(),
            **copy.deepcopy(data),
        }
        self._tables.setdefault(table, []).append(record)
        return copy.deepcopy(record)

    def select(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        order_by: str | None = None,
        ascending: bool = True,
        limit: int | None = None,
        columns: str = "*",
    ) -> list[dict[str, Any]]:
        rows = self._tables.get(table, [])
        if filters:
            for key, value in filters.items():
                rows = [r for r in rows if r.get(key) == value]
        if order_by:
            rows = sorted(rows, key=lambda r: r.get(order_by, 0), reverse=not ascending)
        if limit:
            rows = rows[:limit]
        if columns != "*":
            wanted = columns.split(",")
            rows = [{k: v for k, v in r.items() if k in wanted} for r in rows]
        return copy.deepcopy(rows)

    def update(self, table: str, id: str, data: dict[str, Any]) -> dict[str, Any]:
        for row in self._tables.get(table, []):
            if row["id"] == id:
                row.update(copy.deepcopy(data))
                row["updated_at"] = datetime.now(timezone.utc).isoformat()
                return copy.deepcopy(row)
        raise ValueError(f"Row {id} not found in {table}")

    def reset(self):
        for table in self._tables:
            self._tables[table] = []


def _reply_json(text: str = "Tell me more.", **fields: Any) -> str:
    """Model reply text in the shape the stage contracts expect."""
    return json.dumps({"chatResponse": text, **fields})


@pytest.fixture
def mock_db() -> MockSupabaseClient:
    """Fresh mock database for each test."""
    return MockSupabaseClient()


@pytest.fixture
def store(mock_db) -> ProjectStore:
    return ProjectStore(mock_db)


@pytest.fixture
def fake_model() -> MagicMock:
    """Model client whose ``generate`` is an AsyncMock returning a plain reply."""
    model = MagicMock(spec=ModelClient)
    model.generate = AsyncMock(return_value=_reply_json())
    return model


@pytest.fixture
def coach(store, fake_model) -> StageCoach:
    return StageCoach(store, fake_model)


@pytest.fixture
def sample_project() -> Project:
    """Onboarding data for a middle-school robotics unit."""
    return Project(
        title="Bots for Good",
        subject="Robotics",
        age_group="Ages 11-14",
        educator_perspective="I want students to build robots that help our school community.",
        project_scope="Multi-week Unit",
        studio_theme="Maker Studio",
        location="Portland, OR",
    )


@pytest.fixture
def completed_ideation_chat() -> list[ChatMessage]:
    return [
        ChatMessage.assistant("Welcome! What big idea do you want to explore?"),
        ChatMessage.user("Robots as helpers"),
        ChatMessage.assistant("Those foundations look solid.", is_stage_complete=True),
    ]


@pytest.fixture
def app(mock_db, store, coach):
    """FastAPI test app with mocked dependencies."""
    from alf_coach.core.coach import get_coach
    from alf_coach.db.client import get_supabase_client
    from alf_coach.db.project_store import get_project_store
    from alf_coach.main import app as _app

    _app.dependency_overrides[get_supabase_client] = lambda: mock_db
    _app.dependency_overrides[get_project_store] = lambda: store
    _app.dependency_overrides[get_coach] = lambda: coach

    yield _app

    _app.dependency_overrides.clear()


@pytest.fixture
def client(app) -> TestClient:
    """HTTP test client."""
    return TestClient(app)
