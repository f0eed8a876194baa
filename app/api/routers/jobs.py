"""
Jobs router - handles video analysis job operations.

Provides endpoints for job creation, status polling and listing with
status filtering and pagination.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.deps import (
    ValidatedJobId,
    get_app_settings,
    get_job_store,
    get_job_submitter,
)
from app.api.errors import handle_endpoint_error
from app.core.config import Settings
from app.models.api import CreateJobResponse, JobListResponse, JobResponse
from app.models.errors import job_not_found_error
from app.models.jobs import JobStatus
from app.models.requests import CreateJobRequest
from app.services import JobStore, JobSubmitter

router = APIRouter(prefix="/api/jobs", tags=["jobs"])


@router.post("", status_code=201, response_model=CreateJobResponse)
async def create_job(
    request: CreateJobRequest,
    submitter: JobSubmitter = Depends(get_job_submitter),
) -> dict[str, Any]:
    """
    Create a video analysis job and queue it for processing.

    Args:
        request: Video URL, question and optional model/resolution override
        submitter: Injected job submitter

    Returns:
        Created job ID, status and video details
    """
    try:
        submission = await submitter.submit(
            video_url=request.video_url,
            question=request.question,
            model=request.model,
            force_low_resolution=request.force_low_resolution,
        )
    except Exception as e:
        raise handle_endpoint_error(e, "Failed to create job") from e

    return submission.to_dict()


# Note: List route must come BEFORE parameterized route to avoid FastAPI
# matching the empty path as a job_id parameter
@router.get("", response_model=JobListResponse)
async def list_jobs(
    status: JobStatus | None = Query(None, description="Filter by job status"),
    limit: int | None = Query(None, ge=1, description="Maximum jobs to return"),
    offset: int = Query(0, ge=0, description="Number of jobs to skip"),
    store: JobStore = Depends(get_job_store),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    """
    List jobs, newest first, with optional status filtering.

    Args:
        status: Optional status filter
        limit: Page size (capped at the configured maximum)
        offset: Page offset
        store: Injected job store
        settings: Injected settings

    Returns:
        Page of jobs
    """
    effective_limit = min(
        limit or settings.job_list_default_limit, settings.job_list_max_limit
    )

    try:
        jobs = await store.list_jobs(
            status=status, limit=effective_limit, offset=offset
        )
    except Exception as e:
        raise handle_endpoint_error(e, "Failed to fetch jobs") from e

    return {
        "jobs": [job.to_dict() for job in jobs],
        "total": len(jobs),
        "limit": effective_limit,
        "offset": offset,
    }


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(
    job_id: str = Depends(ValidatedJobId()),
    store: JobStore = Depends(get_job_store),
) -> dict[str, Any]:
    """
    Get status and results of a specific job.

    Args:
        job_id: UUID of the job
        store: Injected job store

    Returns:
        Full job record including result or error
    """
    try:
        job = await store.get_by_id(job_id)
    except Exception as e:
        raise handle_endpoint_error(e, "Failed to fetch job") from e

    if not job:
        raise HTTPException(
            status_code=404, detail=job_not_found_error(job_id).to_dict()
        )

    return job.to_dict()
