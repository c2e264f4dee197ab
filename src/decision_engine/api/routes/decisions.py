"""Decision endpoints: best action, actions by lane, urgency/value matrix."""

from datetime import date

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from decision_engine.errors import DataStoreError
from decision_engine.models.action import ActionLane

from ..auth import verify_worker_token

logger = structlog.get_logger(__name__)

router = APIRouter()

ALLOWED_DURATIONS = (5, 10, 15)


def _unavailable(log, error: DataStoreError) -> JSONResponse:
    log.error("decisions.data_store_unavailable", error=str(error))
    return JSONResponse(status_code=503, content={"error": "Data store unavailable"})


@router.get("/users/{user_id}/best-action")
async def best_action(
    user_id: str,
    request: Request,
    duration: int | None = Query(default=None, description="Minutes available: 5, 10 or 15"),
    today: date | None = Query(default=None),
    _auth: None = Depends(verify_worker_token),
):
    """The single best next move for a user, optionally limited by duration."""
    if duration is not None and duration not in ALLOWED_DURATIONS:
        raise HTTPException(
            status_code=422,
            detail=f"duration must be one of {', '.join(str(d) for d in ALLOWED_DURATIONS)}",
        )

    log = logger.bind(user_id=user_id, duration=duration)
    try:
        result = await request.app.state.decision_service.best_action(
            user_id, today or date.today(), max_duration_minutes=duration
        )
    except DataStoreError as e:
        return _unavailable(log, e)

    log.info("decisions.best_action", found=result.found)
    return result.to_dict()


@router.get("/users/{user_id}/actions-by-lane")
async def actions_by_lane(
    user_id: str,
    request: Request,
    lane: ActionLane | None = Query(default=None),
    today: date | None = Query(default=None),
    _auth: None = Depends(verify_worker_token),
):
    """Pending actions grouped by lane, each lane in selection order."""
    log = logger.bind(user_id=user_id, lane=lane.value if lane else None)
    try:
        grouped = await request.app.state.decision_service.actions_by_lane(
            user_id, today or date.today(), lane=lane
        )
    except DataStoreError as e:
        return _unavailable(log, e)

    return {
        "user_id": user_id,
        "lanes": {name: [r.to_dict() for r in items] for name, items in grouped.items()},
    }


@router.get("/users/{user_id}/urgency-value-matrix")
async def urgency_value_matrix(
    user_id: str,
    request: Request,
    today: date | None = Query(default=None),
    _auth: None = Depends(verify_worker_token),
):
    """Relationships classified into urgency/value quadrants."""
    log = logger.bind(user_id=user_id)
    try:
        matrix = await request.app.state.decision_service.urgency_value_matrix(
            user_id, today or date.today()
        )
    except DataStoreError as e:
        return _unavailable(log, e)

    return {
        "user_id": user_id,
        "quadrants": {
            quadrant: [uv.to_dict() for uv in items]
            for quadrant, items in matrix["quadrants"].items()
        },
        "relationships": {
            rel_id: uv.to_dict() for rel_id, uv in matrix["relationships"].items()
        },
    }
