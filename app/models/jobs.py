"""
Video analysis job models and lifecycle rules.

Defines the persisted job record, its status enum, and the transition
table that governs how a job moves from creation to a terminal state.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

# Listing summaries truncate questions to this many characters
SUMMARY_QUESTION_LENGTH = 100


class JobStatus(str, Enum):
    """Job execution status."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.FAILED})

# Status is monotonic: pending -> processing -> completed | failed
ALLOWED_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.PROCESSING}),
    JobStatus.PROCESSING: frozenset({JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED: frozenset(),
}


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def can_transition(current: JobStatus, target: JobStatus) -> bool:
    """
    Check whether a status transition is permitted.

    Args:
        current: Status the job is in now
        target: Status the job would move to

    Returns:
        True if the transition is in the allowed table
    """
    return target in ALLOWED_TRANSITIONS[current]


def _parse_datetime(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def _format_datetime(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


@dataclass
class Job:
    """
    Video analysis job with persisted lifecycle state.

    Created in PENDING by the submitter, moved through PROCESSING into
    exactly one of COMPLETED or FAILED by the processor. ``result`` is only
    present on completed jobs and ``error`` only on failed ones.
    """

    id: str
    youtube_url: str
    question: str
    model: str
    created_at: datetime
    status: JobStatus = JobStatus.PENDING
    use_low_resolution: bool = False
    estimated_duration: int | None = None  # seconds
    result: str | None = None
    error: str | None = None
    processing_time: int | None = None  # whole seconds
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        """Whether the job has reached COMPLETED or FAILED."""
        return self.status in TERMINAL_STATUSES

    def to_dict(self) -> dict[str, Any]:
        """
        Convert job to dictionary for API responses.

        Returns:
            Dictionary representation of the full job record
        """
        return {
            "job_id": self.id,
            "status": self.status.value,
            "youtube_url": self.youtube_url,
            "question": self.question,
            "model": self.model,
            "created_at": _format_datetime(self.created_at),
            "started_at": _format_datetime(self.started_at),
            "completed_at": _format_datetime(self.completed_at),
            "processing_time": self.processing_time,
            "estimated_duration": self.estimated_duration,
            "use_low_resolution": self.use_low_resolution,
            "result": self.result,
            "error": self.error,
        }

    def to_summary(self) -> dict[str, Any]:
        """
        Convert job to a compact listing entry.

        Returns:
            Dictionary with truncated question and result/error flags
        """
        question = self.question[:SUMMARY_QUESTION_LENGTH]
        if len(self.question) > SUMMARY_QUESTION_LENGTH:
            question += "..."

        return {
            "job_id": self.id,
            "status": self.status.value,
            "youtube_url": self.youtube_url,
            "question": question,
            "model": self.model,
            "created_at": _format_datetime(self.created_at),
            "completed_at": _format_datetime(self.completed_at),
            "processing_time": self.processing_time,
            "has_result": bool(self.result),
            "has_error": bool(self.error),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Job:
        """
        Create Job instance from a stored row or dictionary.

        Args:
            data: Mapping with column names as keys

        Returns:
            Job instance
        """
        return cls(
            id=data["id"],
            youtube_url=data["youtube_url"],
            question=data["question"],
            model=data["model"],
            created_at=_parse_datetime(data["created_at"]),  # type: ignore[arg-type]
            status=JobStatus(data["status"]),
            use_low_resolution=bool(data.get("use_low_resolution") or False),
            estimated_duration=data.get("estimated_duration"),
            result=data.get("result"),
            error=data.get("error"),
            processing_time=data.get("processing_time"),
            started_at=_parse_datetime(data.get("started_at")),
            completed_at=_parse_datetime(data.get("completed_at")),
        )
