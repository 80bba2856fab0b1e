"""Store layer for project documents."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog

from alf_coach.config import get_settings
from alf_coach.db.client import SupabaseClient, get_supabase_client
from alf_coach.db.models import CHAT_FIELDS, ChatMessage, Project, Stage

logger = structlog.get_logger()

# Dashboard rows do not need the chat transcripts.
LIST_COLUMNS = "id,title,stage,subject,ageGroup,studioTheme,created_at,updated_at"


class ProjectNotFoundError(ValueError):
    """The project document does not exist."""


class ProjectWriteError(RuntimeError):
    """A write to the document store failed."""


class ProjectStore:
    """Store operations for projects.

    Writes are partial-field updates. Chat appends are read-modify-write with
    deduplication by message id, so replaying a write after a partial failure
    never duplicates a message. Concurrent writers are last-write-wins.
    """

    def __init__(self, db: SupabaseClient, table: str = "projects") -> None:
        self.db = db
        self.table = table

    def create_project(self, project: Project) -> Project:
        """Insert a new project from onboarding data."""
        data = project.to_document()
        data.pop("id", None)
        data.pop("created_at", None)
        data.pop("updated_at", None)
        try:
            row = self.db.insert(self.table, data)
        except Exception as e:
            logger.error("project.create_failed", error=str(e))
            raise ProjectWriteError(f"Could not create project: {e}") from e
        created = Project.model_validate(row)
        logger.info("project.created", id=created.id, title=created.title)
        return created

    def get_project(self, project_id: str) -> Project | None:
        """Get a project by ID."""
        row = self.db.get(self.table, project_id)
        if not row:
            return None
        return Project.model_validate(row)

    def require_project(self, project_id: str) -> Project:
        """Get a project by ID or raise ProjectNotFoundError."""
        project = self.get_project(project_id)
        if project is None:
            logger.warning("project.not_found", id=project_id)
            raise ProjectNotFoundError(f"Project '{project_id}' not found")
        return project

    def list_projects(self, stage: Stage | None = None) -> list[Project]:
        """List projects, newest first, without their chats."""
        filters = {"stage": stage.value} if stage else None
        rows = self.db.select(
            self.table,
            filters=filters,
            order_by="created_at",
            ascending=False,
            columns=LIST_COLUMNS,
        )
        return [Project.model_validate(row) for row in rows]

    def update_project(self, project_id: str, fields: dict[str, Any]) -> Project:
        """Partial update using stored (camelCase) keys."""
        data = dict(fields)
        data["updated_at"] = datetime.now(timezone.utc).isoformat()
        try:
            row = self.db.update(self.table, project_id, data)
        except ValueError as e:
            raise ProjectNotFoundError(f"Project '{project_id}' not found") from e
        except Exception as e:
            logger.error("project.write_failed", id=project_id, fields=sorted(fields), error=str(e))
            raise ProjectWriteError(f"Could not update project '{project_id}': {e}") from e
        logger.info("project.updated", id=project_id, fields=sorted(fields))
        return Project.model_validate(row)

    def set_stage(self, project_id: str, stage: Stage, extra: dict[str, Any] | None = None) -> Project:
        """Write a new stage, together with any fields that must land with it."""
        fields = dict(extra or {})
        fields["stage"] = stage.value
        return self.update_project(project_id, fields)

    def append_messages(
        self,
        project_id: str,
        stage: Stage,
        messages: list[ChatMessage],
        extra: dict[str, Any] | None = None,
    ) -> Project:
        """Append messages to a stage transcript, skipping ids already stored.

        ``extra`` fields are written in the same update so that merged
        structured fields and the message that produced them land together.
        """
        chat_field = CHAT_FIELDS.get(stage)
        if chat_field is None:
            raise ValueError(f"Stage '{stage.value}' has no chat")

        current = self.require_project(project_id)
        stored = current.chat_for(stage)
        seen = {m.id for m in stored}
        fresh = [m for m in messages if m.id not in seen]
        if len(fresh) < len(messages):
            logger.info(
                "project.duplicate_messages_skipped",
                id=project_id,
                skipped=len(messages) - len(fresh),
            )

        fields: dict[str, Any] = dict(extra or {})
        if fresh:
            fields[chat_field] = [m.to_document() for m in stored + fresh]
        if not fields:
            return current
        return self.update_project(project_id, fields)


def get_project_store() -> ProjectStore:
    """Get ProjectStore instance."""
    return ProjectStore(get_supabase_client(), get_settings().projects_table)
