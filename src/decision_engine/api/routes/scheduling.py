"""POST schedule: place a batch of proposed actions for one relationship."""

from datetime import date

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from action_scheduler.errors import SchedulingValidationError
from action_scheduler.models import ProposedAction
from decision_engine.errors import DataStoreError

from ..auth import verify_worker_token

logger = structlog.get_logger(__name__)

router = APIRouter()


class ScheduleRequest(BaseModel):
    """Batch scheduling request body."""

    proposals: list[ProposedAction] = Field(..., min_length=1)
    max_actions_per_day: int | None = Field(default=None, ge=1)
    horizon_days: int | None = Field(default=None, ge=1)
    create: bool = False
    today: date | None = None


@router.post("/users/{user_id}/relationships/{relationship_id}/schedule")
async def schedule(
    user_id: str,
    relationship_id: str,
    body: ScheduleRequest,
    request: Request,
    _auth: None = Depends(verify_worker_token),
):
    """Assign conflict-free due dates, optionally inserting the new actions."""
    log = logger.bind(user_id=user_id, relationship_id=relationship_id)
    log.info("schedule.received", proposals=len(body.proposals), create=body.create)

    try:
        result = await request.app.state.scheduling_service.schedule(
            user_id,
            relationship_id,
            body.proposals,
            body.today or date.today(),
            max_actions_per_day=body.max_actions_per_day,
            horizon_days=body.horizon_days,
            create=body.create,
        )
    except SchedulingValidationError as e:
        raise HTTPException(status_code=422, detail=e.message)
    except DataStoreError as e:
        log.error("schedule.data_store_unavailable", error=str(e))
        return JSONResponse(status_code=503, content={"error": "Data store unavailable"})

    log.info("schedule.complete", fallbacks=result.fallback_count, created=result.created)
    return result.to_dict()
