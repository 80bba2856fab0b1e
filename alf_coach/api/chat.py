"""Chat endpoints — one turn per request."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from alf_coach.api.models import ChatRequest, TurnResponse, turn_response
from alf_coach.core.coach import StageCoach, TurnInProgressError, get_coach
from alf_coach.core.stages import StageTransitionError
from alf_coach.db.project_store import ProjectNotFoundError, ProjectWriteError

router = APIRouter()


@router.post("/{project_id}/chat", response_model=TurnResponse)
async def send_message(
    project_id: str,
    data: ChatRequest,
    coach: StageCoach = Depends(get_coach),
) -> TurnResponse:
    """Send a educator message in the project's current stage.

    Model failures are not HTTP errors: the reply is the apology message and
    ``valid`` is false.
    """
    try:
        outcome = await coach.send_message(project_id, data.message)
    except ProjectNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (StageTransitionError, TurnInProgressError) as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ProjectWriteError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return turn_response(outcome)


@router.post("/{project_id}/finalize-ideation", response_model=TurnResponse)
async def finalize_ideation(
    project_id: str,
    coach: StageCoach = Depends(get_coach),
) -> TurnResponse:
    """Summarize the Ideation chat into the project's foundations."""
    try:
        outcome = await coach.finalize_ideation(project_id)
    except ProjectNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StageTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ProjectWriteError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return turn_response(outcome)
