"""
Classification of analysis provider failures.

Maps raw provider error text onto a fixed, user-facing taxonomy. Rules are
checked in table order and the first match wins, since a single raw error
can mention more than one status (e.g. RESOURCE_EXHAUSTED and NOT_FOUND).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

UNKNOWN_ERROR_MESSAGE = "Unknown error occurred during video analysis"

EMPTY_ANALYSIS_MESSAGE = (
    "No analysis could be generated for this video. "
    "The video might be private, age-restricted, or unavailable."
)


class ErrorCategory(str, Enum):
    """Stable categories for analysis failures."""

    AUTHENTICATION = "authentication"
    QUOTA_EXCEEDED = "quota_exceeded"
    PERMISSION_DENIED = "permission_denied"
    NOT_FOUND = "not_found"
    INVALID_ARGUMENT = "invalid_argument"
    EMPTY_RESULT = "empty_result"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ErrorRule:
    """One row of the classification table."""

    needles: tuple[str, ...]
    category: ErrorCategory
    message: str


@dataclass(frozen=True)
class ClassifiedError:
    """Result of classifying a raw provider failure."""

    category: ErrorCategory
    message: str


ERROR_RULES: tuple[ErrorRule, ...] = (
    ErrorRule(
        needles=("API_KEY", "UNAUTHENTICATED"),
        category=ErrorCategory.AUTHENTICATION,
        message="Invalid or missing Google Generative AI API key",
    ),
    ErrorRule(
        needles=("QUOTA_EXCEEDED", "RESOURCE_EXHAUSTED"),
        category=ErrorCategory.QUOTA_EXCEEDED,
        message="API quota exceeded. Please try again later or upgrade your plan",
    ),
    ErrorRule(
        needles=("PERMISSION_DENIED",),
        category=ErrorCategory.PERMISSION_DENIED,
        message="Permission denied. Check your API key permissions",
    ),
    ErrorRule(
        needles=("NOT_FOUND",),
        category=ErrorCategory.NOT_FOUND,
        message="Video not found or is private/unavailable",
    ),
    ErrorRule(
        needles=("INVALID_ARGUMENT",),
        category=ErrorCategory.INVALID_ARGUMENT,
        message="Invalid video format or unsupported content",
    ),
)


def classify_error(message: str | None, code: str | None = None) -> ClassifiedError:
    """
    Classify a raw provider failure.

    Args:
        message: Raw error message from the provider
        code: Optional status/code reported alongside the message

    Returns:
        The first matching category and its user-facing message; unmatched
        errors pass the raw message through
    """
    raw = " ".join(part for part in (code, message) if part)

    for rule in ERROR_RULES:
        if any(needle in raw for needle in rule.needles):
            return ClassifiedError(category=rule.category, message=rule.message)

    if message and message.strip():
        return ClassifiedError(category=ErrorCategory.UNKNOWN, message=message)
    return ClassifiedError(
        category=ErrorCategory.UNKNOWN, message=UNKNOWN_ERROR_MESSAGE
    )


def empty_analysis_error() -> ClassifiedError:
    """Classification for a provider call that produced no usable text."""
    return ClassifiedError(
        category=ErrorCategory.EMPTY_RESULT, message=EMPTY_ANALYSIS_MESSAGE
    )
