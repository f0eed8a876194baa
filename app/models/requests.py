"""
Request models for API endpoints.

Defines Pydantic models for validating incoming HTTP requests.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

# Maximum question length accepted for an analysis job
MAX_QUESTION_LENGTH = 10000


class CreateJobRequest(BaseModel):
    """Request model for creating a video analysis job."""

    video_url: str = Field(
        ..., min_length=1, max_length=2048, description="YouTube video URL to analyze"
    )
    question: str = Field(
        ...,
        min_length=1,
        max_length=MAX_QUESTION_LENGTH,
        description="Question or analysis focus for the video",
    )
    model: str | None = Field(
        None, min_length=1, max_length=200, description="AI model to use for analysis"
    )
    force_low_resolution: bool = Field(
        False, description="Force low resolution processing"
    )

    @field_validator("video_url")
    @classmethod
    def validate_video_url(cls, v: str) -> str:
        """Strip surrounding whitespace from the URL."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("video_url cannot be empty or whitespace only")
        return stripped

    @field_validator("question")
    @classmethod
    def validate_question_not_empty(cls, v: str) -> str:
        """Validate question is not just whitespace."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("question cannot be empty or whitespace only")
        return stripped
