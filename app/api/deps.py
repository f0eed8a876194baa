"""
Dependency injection providers for API endpoints.

Provides FastAPI dependencies that inject service instances into route
handlers, enabling loose coupling and testability.
"""

from __future__ import annotations

from fastapi import HTTPException

from app.core.config import Settings
from app.core.validators import UUID_PATTERN
from app.models.errors import validation_error
from app.services import (
    InProcessJobQueue,
    JobStore,
    JobSubmitter,
    get_services,
)


def get_job_store() -> JobStore:
    """
    Dependency provider for JobStore.

    Returns:
        JobStore instance from the global container
    """
    return get_services().store


def get_job_submitter() -> JobSubmitter:
    """
    Dependency provider for JobSubmitter.

    Returns:
        JobSubmitter instance from the global container
    """
    return get_services().submitter


def get_job_queue() -> InProcessJobQueue:
    """
    Dependency provider for the job queue.

    Returns:
        InProcessJobQueue instance from the global container
    """
    return get_services().queue


def get_app_settings() -> Settings:
    """
    Dependency provider for the settings used by the running services.

    Returns:
        Settings instance from the global container
    """
    return get_services().settings


def validate_uuid(value: str, field_name: str = "ID") -> str:
    """
    Validate that a string is a valid UUID v4 format.

    Args:
        value: The string to validate
        field_name: Name of the field for error messages

    Returns:
        The validated value

    Raises:
        HTTPException: If the value is not a valid UUID v4
    """
    if not UUID_PATTERN.match(value):
        api_error = validation_error(
            field=field_name, reason=f"Invalid {field_name} format (must be UUID v4)"
        )
        raise HTTPException(status_code=400, detail=api_error.to_dict())
    return value


class ValidatedJobId:
    """
    Dependency class for validated job ID path parameters.

    Usage:
        @router.get("/{job_id}")
        async def endpoint(job_id: str = Depends(ValidatedJobId())):
            ...
    """

    def __call__(self, job_id: str) -> str:
        """Validate and return the job ID."""
        return validate_uuid(job_id, "job ID")
