"""
Job Processor - executes one video analysis job.

Drives a job through its lifecycle:

    pending -> processing -> completed | failed

The pending -> processing step is a compare-and-set in the store and is the
single-flight gate: only the delivery that wins it calls the analysis
provider. Every other delivery for the same job is a duplicate and does
nothing. Store faults propagate to the caller so the delivery can be
retried; analysis faults are recorded on the job as FAILED.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime
from enum import Enum
from typing import Any, Callable

from app.models.jobs import Job, JobStatus, can_transition, utc_now
from app.services.analysis_invoker import (
    AnalysisInvoker,
    AnalysisProviderError,
    AnalysisRequest,
    EmptyAnalysisError,
)
from app.services.error_classifier import classify_error, empty_analysis_error
from app.services.job_store import JobStore

logger = logging.getLogger(__name__)

INTERRUPTED_MESSAGE = "Processing interrupted by server restart"


class ProcessOutcome(str, Enum):
    """What a single processor execution did with its delivery."""

    COMPLETED = "completed"
    FAILED = "failed"
    DUPLICATE = "duplicate"
    NOT_FOUND = "not_found"


def elapsed_seconds(started_at: datetime | None, completed_at: datetime) -> int:
    """Whole seconds between start and completion, floored and never negative."""
    if started_at is None:
        return 0
    return max(0, math.floor((completed_at - started_at).total_seconds()))


class JobProcessor:
    """Runs the state machine for one job per call."""

    def __init__(
        self,
        store: JobStore,
        invoker: AnalysisInvoker,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize the processor with explicit collaborators.

        Args:
            store: Job persistence; the only writer of job state
            invoker: Wrapper around the streaming analysis provider
            clock: Source of timestamps
        """
        self._store = store
        self._invoker = invoker
        self._clock = clock

    async def process(self, job_id: str) -> ProcessOutcome:
        """
        Process one delivery for a job.

        Args:
            job_id: Job identifier from the delivery

        Returns:
            Outcome of this execution; FAILED means the failure was recorded

        Raises:
            JobStoreError: If the job cannot be read or written
        """
        # Always re-read; job state is never cached across deliveries
        job = await self._store.get_by_id(job_id)
        if job is None:
            logger.warning(f"Delivery for unknown job {job_id}, nothing to do")
            return ProcessOutcome.NOT_FOUND

        if job.status != JobStatus.PENDING:
            logger.info(
                f"Duplicate delivery for job {job_id} in status {job.status.value}"
            )
            return ProcessOutcome.DUPLICATE

        started_at = self._clock()
        claimed = await self._transition(
            job_id,
            JobStatus.PENDING,
            JobStatus.PROCESSING,
            {"started_at": started_at},
        )
        if not claimed:
            logger.info(f"Job {job_id} already claimed by another delivery")
            return ProcessOutcome.DUPLICATE

        logger.info(
            f"Processing job {job_id} (model={job.model}, "
            f"low_resolution={job.use_low_resolution})"
        )
        return await self._run_analysis(job, started_at)

    async def _run_analysis(self, job: Job, started_at: datetime) -> ProcessOutcome:
        request = AnalysisRequest(
            source_reference=job.youtube_url,
            question=job.question,
            model=job.model,
            use_low_resolution=job.use_low_resolution,
        )

        try:
            result = await self._invoker.invoke(request)
        except AnalysisProviderError as e:
            classified = classify_error(e.message, e.code)
            logger.warning(
                f"Job {job.id} analysis failed ({classified.category.value}): {e}"
            )
            await self._finish(
                job.id, JobStatus.FAILED, started_at, error=classified.message
            )
            return ProcessOutcome.FAILED
        except EmptyAnalysisError:
            classified = empty_analysis_error()
            logger.warning(f"Job {job.id} produced no analysis text")
            await self._finish(
                job.id, JobStatus.FAILED, started_at, error=classified.message
            )
            return ProcessOutcome.FAILED

        await self._finish(job.id, JobStatus.COMPLETED, started_at, result=result)
        return ProcessOutcome.COMPLETED

    async def _finish(
        self,
        job_id: str,
        status: JobStatus,
        started_at: datetime | None,
        result: str | None = None,
        error: str | None = None,
    ) -> bool:
        """
        Move a processing job into a terminal state.

        Args:
            job_id: Job identifier
            status: COMPLETED or FAILED
            started_at: When processing began
            result: Analysis text for COMPLETED
            error: Classified message for FAILED

        Returns:
            True if the terminal state was written
        """
        completed_at = self._clock()
        fields: dict[str, Any] = {
            "completed_at": completed_at,
            "processing_time": elapsed_seconds(started_at, completed_at),
        }
        if status == JobStatus.COMPLETED:
            fields["result"] = result
        else:
            fields["error"] = error

        applied = await self._transition(
            job_id, JobStatus.PROCESSING, status, fields, terminal=True
        )
        if applied:
            logger.info(
                f"Job {job_id} {status.value} in {fields['processing_time']}s"
            )
        return applied

    async def _transition(
        self,
        job_id: str,
        current: JobStatus,
        target: JobStatus,
        fields: dict[str, Any],
        terminal: bool = False,
    ) -> bool:
        """
        Apply a status transition through the store's compare-and-set.

        Transitions outside the allowed table are rejected without touching
        storage. A terminal write that does not apply means another execution
        already finished the job, which single-flight should make impossible.

        Returns:
            True if the store applied the update
        """
        if not can_transition(current, target):
            logger.error(
                f"Rejected transition {current.value} -> {target.value} "
                f"for job {job_id}; possible single-flight bug"
            )
            return False

        applied = await self._store.conditional_update(
            job_id, current, {"status": target, **fields}
        )
        if not applied and terminal:
            logger.error(
                f"Terminal update {current.value} -> {target.value} did not apply "
                f"for job {job_id}; possible single-flight bug"
            )
        return applied

    async def fail_interrupted(self, job: Job) -> bool:
        """
        Fail a job left in PROCESSING by a previous run of the service.

        Args:
            job: Job found in PROCESSING at startup

        Returns:
            True if the job was moved to FAILED
        """
        if job.status != JobStatus.PROCESSING:
            return False
        logger.info(f"Failing interrupted job {job.id}")
        return await self._finish(
            job.id, JobStatus.FAILED, job.started_at, error=INTERRUPTED_MESSAGE
        )
