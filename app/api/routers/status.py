"""
Status router - service banner and health check.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from app.api.deps import get_job_queue
from app.models.api import HealthResponse
from app.services import InProcessJobQueue

router = APIRouter(tags=["status"])

SERVICE_BANNER = "YouTube Video Analysis MCP Server"


@router.get("/", response_class=PlainTextResponse)
async def root() -> str:
    """Return the service banner."""
    return SERVICE_BANNER


@router.get("/health", response_model=HealthResponse)
async def health(
    queue: InProcessJobQueue = Depends(get_job_queue),
) -> HealthResponse:
    """
    Report queue depth for monitoring.

    Args:
        queue: Injected job queue

    Returns:
        Health status with queued and in-flight delivery counts
    """
    return HealthResponse(
        status="closed" if queue.closed else "ok",
        queue_size=queue.get_queue_size(),
        in_flight=queue.get_in_flight_count(),
    )
