"""
Unified error schema for the video analysis API.

Provides consistent error codes, messages, and hints for all API responses.
All errors include retryability information and optional debugging details.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Video errors (VIDEO_*)
    INVALID_VIDEO_URL = "INVALID_VIDEO_URL"
    VIDEO_UNAVAILABLE = "VIDEO_UNAVAILABLE"

    # Job errors (JOB_*)
    JOB_NOT_FOUND = "JOB_NOT_FOUND"

    # Validation errors (VALIDATION_*)
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Capacity and infrastructure errors
    QUEUE_UNAVAILABLE = "QUEUE_UNAVAILABLE"
    STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    REQUEST_TIMEOUT = "REQUEST_TIMEOUT"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass
class APIError:
    """
    Structured error response for API endpoints.

    Attributes:
        code: Standardized error code from ErrorCode enum
        message: Human-readable error message
        detail: Optional technical details for debugging
        hint: Optional suggestion for resolving the error
        retryable: Whether the client should retry the request
    """

    code: ErrorCode
    message: str
    detail: str | None = None
    hint: str | None = None
    retryable: bool = False

    def to_dict(self) -> dict[str, dict[str, str | bool]]:
        """
        Convert error to dictionary format for JSON responses.

        Returns:
            Dictionary with 'error' key containing error details
        """
        error_dict: dict[str, str | bool] = {
            "code": self.code.value,
            "message": self.message,
            "retryable": self.retryable,
        }

        if self.detail is not None:
            error_dict["detail"] = self.detail

        if self.hint is not None:
            error_dict["hint"] = self.hint

        return {"error": error_dict}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Predefined Error Factories
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def invalid_video_url_error(url: str) -> APIError:
    """Create error for a URL that is not a YouTube video URL."""
    return APIError(
        code=ErrorCode.INVALID_VIDEO_URL,
        message="Invalid YouTube URL format",
        detail=f"URL: {url}",
        hint="Use a youtube.com/watch?v=, youtu.be/ or youtube.com/embed/ URL",
        retryable=False,
    )


def video_unavailable_error(detail: str | None = None) -> APIError:
    """Create error for a video whose details cannot be fetched."""
    return APIError(
        code=ErrorCode.VIDEO_UNAVAILABLE,
        message="Could not fetch video details. Video may be private or unavailable.",
        detail=detail,
        hint="Check that the video exists and is public",
        retryable=False,
    )


def job_not_found_error(job_id: str) -> APIError:
    """Create error for missing job."""
    return APIError(
        code=ErrorCode.JOB_NOT_FOUND,
        message="Job not found",
        detail=f"Job ID: {job_id}",
        hint="Check the job ID returned when the job was created",
        retryable=False,
    )


def validation_error(field: str, reason: str) -> APIError:
    """Create error for validation failures."""
    return APIError(
        code=ErrorCode.VALIDATION_ERROR,
        message=f"Validation failed for field: {field}",
        detail=reason,
        hint="Check the input format and try again",
        retryable=False,
    )


def queue_unavailable_error(detail: str | None = None) -> APIError:
    """Create error for a queue that is not accepting jobs."""
    return APIError(
        code=ErrorCode.QUEUE_UNAVAILABLE,
        message="Job queue is not accepting new jobs",
        detail=detail,
        hint="The service may be restarting. Please try again in a moment",
        retryable=True,
    )


def storage_unavailable_error(detail: str | None = None) -> APIError:
    """Create error for an unreachable job database."""
    return APIError(
        code=ErrorCode.STORAGE_UNAVAILABLE,
        message="Job storage is temporarily unavailable",
        detail=detail,
        hint="Please try again in a moment",
        retryable=True,
    )


def service_unavailable_error(detail: str | None = None) -> APIError:
    """Create error for service unavailability."""
    return APIError(
        code=ErrorCode.SERVICE_UNAVAILABLE,
        message="Service temporarily unavailable",
        detail=detail,
        hint="Please try again in a moment",
        retryable=True,
    )


def request_timeout_error(detail: str | None = None) -> APIError:
    """Create error for request timeout."""
    return APIError(
        code=ErrorCode.REQUEST_TIMEOUT,
        message="Request timed out",
        detail=detail,
        hint="Please try again",
        retryable=True,
    )


def internal_error(detail: str | None = None) -> APIError:
    """Create generic internal error."""
    return APIError(
        code=ErrorCode.INTERNAL_ERROR,
        message="An internal error occurred",
        detail=detail,
        hint="Please try again. If the problem persists, contact support.",
        retryable=True,
    )
