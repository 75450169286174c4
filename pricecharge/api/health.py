"""Health check endpoint."""

from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel
import time

router = APIRouter()

# Track start time for uptime calculation
_start_time = time.time()


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database_ready: bool
    automation_running: bool
    version: str
    uptime_seconds: Optional[float]


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    from ..main import app_state, VERSION

    uptime = time.time() - _start_time if _start_time else None
    automation = app_state.automation

    return HealthResponse(
        status="ok",
        database_ready=app_state.repository is not None,
        automation_running=bool(automation and automation.scheduler.running),
        version=VERSION,
        uptime_seconds=uptime
    )
