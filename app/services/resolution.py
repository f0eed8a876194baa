"""
Resolution tier selection for video analysis.

Long videos are analyzed at low media resolution to keep token usage
within provider limits.
"""

from __future__ import annotations

# One hour
DEFAULT_LOW_RESOLUTION_THRESHOLD = 3600


def should_use_low_resolution(
    duration_seconds: int | None,
    force_low_resolution: bool = False,
    threshold_seconds: int = DEFAULT_LOW_RESOLUTION_THRESHOLD,
) -> bool:
    """
    Decide whether a video should be analyzed at low resolution.

    Args:
        duration_seconds: Estimated video duration, or None if unknown
        force_low_resolution: Caller override that always selects low resolution
        threshold_seconds: Durations strictly above this select low resolution

    Returns:
        True for low resolution, False for the default (high) resolution
    """
    if force_low_resolution:
        return True
    if duration_seconds is None:
        return False
    return duration_seconds > threshold_seconds
