"""
Job Submitter - creates video analysis jobs and enqueues them.

Input problems (bad URL, unresolvable video) are rejected here,
synchronously, before any job record exists.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

from app.core.validators import extract_video_id
from app.models.jobs import Job, JobStatus, utc_now
from app.services.job_queue_service import InProcessJobQueue, QueueClosedError
from app.services.job_store import JobStore
from app.services.resolution import (
    DEFAULT_LOW_RESOLUTION_THRESHOLD,
    should_use_low_resolution,
)
from app.services.video_metadata import MetadataResolver, VideoMetadata

logger = logging.getLogger(__name__)


class InvalidVideoURLError(ValueError):
    """Raised when a source reference is not a recognized YouTube URL."""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"Invalid YouTube URL format: {url}")


@dataclass(frozen=True)
class SubmissionResult:
    """A created job together with the metadata used to create it."""

    job: Job
    metadata: VideoMetadata

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to the job-creation response payload.

        Returns:
            Dictionary with job identity, status and video details
        """
        return {
            "job_id": self.job.id,
            "status": self.job.status.value,
            "video_title": self.metadata.title,
            "channel": self.metadata.channel,
            "duration_seconds": self.metadata.duration_seconds,
            "using_low_resolution": self.job.use_low_resolution,
        }


class JobSubmitter:
    """Validates a request, records a pending job and queues its delivery."""

    def __init__(
        self,
        store: JobStore,
        queue: InProcessJobQueue,
        resolver: MetadataResolver,
        default_model: str,
        low_resolution_threshold: int = DEFAULT_LOW_RESOLUTION_THRESHOLD,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._queue = queue
        self._resolver = resolver
        self._default_model = default_model
        self._low_resolution_threshold = low_resolution_threshold
        self._clock = clock

    async def submit(
        self,
        video_url: str,
        question: str,
        model: str | None = None,
        force_low_resolution: bool = False,
    ) -> SubmissionResult:
        """
        Create a job for a video and question.

        Args:
            video_url: YouTube URL of the video to analyze
            question: Question or analysis focus
            model: Provider model identifier (defaults to the configured model)
            force_low_resolution: Always analyze at low resolution

        Returns:
            The created job and the resolved video metadata

        Raises:
            ValueError: If video_url or question is empty
            InvalidVideoURLError: If the URL is not a YouTube video URL
            VideoUnavailableError: If the video's details cannot be fetched
            JobStoreError: If the job cannot be persisted
            QueueClosedError: If the queue no longer accepts deliveries
        """
        if not video_url or not question or not question.strip():
            raise ValueError("video_url and question are required")

        video_id = extract_video_id(video_url)
        if not video_id:
            raise InvalidVideoURLError(video_url)

        metadata = await self._resolver.resolve(video_id)
        use_low_resolution = should_use_low_resolution(
            metadata.duration_seconds,
            force_low_resolution,
            self._low_resolution_threshold,
        )

        job = Job(
            id=str(uuid.uuid4()),
            youtube_url=video_url,
            question=question,
            model=model or self._default_model,
            created_at=self._clock(),
            status=JobStatus.PENDING,
            use_low_resolution=use_low_resolution,
            estimated_duration=metadata.duration_seconds,
        )
        await self._store.insert(job)

        try:
            await self._queue.send(job.id)
        except QueueClosedError:
            # Job stays pending and is re-sent on the next startup
            logger.error(f"Job {job.id} created but could not be queued")
            raise

        logger.info(
            f"Created job {job.id} for video {video_id} "
            f"({metadata.duration_seconds}s, low_resolution={use_low_resolution})"
        )
        return SubmissionResult(job=job, metadata=metadata)
