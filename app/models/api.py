"""
Pydantic models for API responses.

These models define the response schemas for the video analysis API.
"""

from __future__ import annotations

from pydantic import BaseModel

from app.models.jobs import JobStatus


class CreateJobResponse(BaseModel):
    """Response for job creation."""

    job_id: str
    status: JobStatus
    video_title: str
    channel: str
    duration_seconds: int
    using_low_resolution: bool


class JobResponse(BaseModel):
    """Full job record."""

    job_id: str
    status: JobStatus
    youtube_url: str
    question: str
    model: str
    created_at: str
    started_at: str | None = None
    completed_at: str | None = None
    processing_time: int | None = None
    estimated_duration: int | None = None
    use_low_resolution: bool = False
    result: str | None = None
    error: str | None = None


class JobListResponse(BaseModel):
    """Response for job listing."""

    jobs: list[JobResponse]
    total: int
    limit: int
    offset: int


class HealthResponse(BaseModel):
    """Response for /health endpoint."""

    status: str
    queue_size: int
    in_flight: int
