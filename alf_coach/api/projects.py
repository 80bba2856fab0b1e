"""Project endpoints — onboarding, dashboard, stage transitions, prompt preview."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from alf_coach.api.models import (
    AdvanceRequest,
    ComposeResponse,
    ProjectCreate,
    ProjectSummaryResponse,
    ReviseRequest,
)
from alf_coach.core.coach import StageCoach, get_coach
from alf_coach.core.stages import StageTransitionError
from alf_coach.db.models import Project, Stage
from alf_coach.db.project_store import (
    ProjectNotFoundError,
    ProjectStore,
    ProjectWriteError,
    get_project_store,
)

router = APIRouter()


@router.post("", response_model=Project, status_code=201)
async def create_project(
    data: ProjectCreate,
    coach: StageCoach = Depends(get_coach),
) -> Project:
    """Create a project from the onboarding wizard."""
    try:
        return coach.create_project(data.to_project())
    except ProjectWriteError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.get("", response_model=list[ProjectSummaryResponse])
async def list_projects(
    stage: Stage | None = None,
    store: ProjectStore = Depends(get_project_store),
) -> list[ProjectSummaryResponse]:
    """Dashboard listing, newest first."""
    return [
        ProjectSummaryResponse(
            id=p.id,
            title=p.title,
            stage=p.stage,
            subject=p.subject,
            age_group=p.age_group,
            updated_at=p.updated_at,
        )
        for p in store.list_projects(stage=stage)
    ]


@router.get("/{project_id}", response_model=Project)
async def get_project(
    project_id: str,
    store: ProjectStore = Depends(get_project_store),
) -> Project:
    """Get a project by ID."""
    project = store.get_project(project_id)
    if not project:
        raise HTTPException(status_code=404, detail=f"Project '{project_id}' not found")
    return project


@router.post("/{project_id}/advance", response_model=Project)
async def advance_project(
    project_id: str,
    data: AdvanceRequest | None = None,
    coach: StageCoach = Depends(get_coach),
) -> Project:
    """Move to the next stage once the current one is complete."""
    try:
        return coach.advance_stage(project_id, finalize=data.finalize if data else False)
    except ProjectNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StageTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ProjectWriteError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.post("/{project_id}/revise", response_model=Project)
async def revise_project(
    project_id: str,
    data: ReviseRequest,
    coach: StageCoach = Depends(get_coach),
) -> Project:
    """Go back to an earlier stage's chat."""
    try:
        return coach.start_revision(project_id, data.stage)
    except ProjectNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StageTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ProjectWriteError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.get("/{project_id}/prompt", response_model=ComposeResponse)
async def preview_prompt(
    project_id: str,
    stage: Stage | None = None,
    summary: bool = False,
    coach: StageCoach = Depends(get_coach),
) -> ComposeResponse:
    """Show the system prompt the next turn would send."""
    try:
        return ComposeResponse(**coach.preview_prompt(project_id, stage=stage, summary=summary))
    except ProjectNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StageTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
