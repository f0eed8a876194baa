"""
Centralized validation utilities for job IDs and YouTube URLs.

This module provides a single source of truth for validation patterns used
throughout the codebase, preventing duplication and ensuring consistency.
"""

from __future__ import annotations

import re

# UUID v4 validation pattern (RFC 4122 compliant)
UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

# Video ID capture for watch, short-link and embed URL forms
YOUTUBE_VIDEO_ID_PATTERN = re.compile(
    r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/)([^&\n?#]+)"
)


def is_valid_uuid(value: str) -> bool:
    """
    Check if a string is a valid UUID v4 format.

    Args:
        value: The string to validate

    Returns:
        True if the value matches UUID v4 format, False otherwise
    """
    return bool(UUID_PATTERN.match(value))


def extract_video_id(url: str) -> str | None:
    """
    Extract the YouTube video ID from a URL.

    Args:
        url: A youtube.com/watch, youtu.be or youtube.com/embed URL

    Returns:
        The video ID, or None if the URL is not a recognized YouTube URL
    """
    match = YOUTUBE_VIDEO_ID_PATTERN.search(url)
    return match.group(1) if match else None
