"""Health check endpoint."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter()


@router.get("/health")
async def health(request: Request):
    """Check data store connectivity."""
    if await request.app.state.postgres.verify_connectivity():
        return {"status": "ok"}
    return JSONResponse(status_code=503, content={"status": "unhealthy"})
