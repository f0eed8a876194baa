"""
Video metadata resolution for YouTube videos.

Looks up duration, title and channel before a job is created. Two
resolvers are available:
- YouTubeDataAPIResolver: YouTube Data API v3 (requires an API key)
- YtDlpMetadataResolver: yt-dlp metadata extraction, no download

Any lookup failure is reported as VideoUnavailableError so the submission
path can reject the request before a job exists.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Any, Protocol

import httpx
import yt_dlp  # type: ignore[import-untyped]

from app.core.config import Settings

logger = logging.getLogger(__name__)

YOUTUBE_VIDEOS_API_URL = "https://www.googleapis.com/youtube/v3/videos"

ISO8601_DURATION_PATTERN = re.compile(
    r"^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?)?$"
)


@dataclass(frozen=True)
class VideoMetadata:
    """Display and duration metadata for a video."""

    video_id: str
    title: str
    channel: str
    duration_seconds: int


class VideoUnavailableError(Exception):
    """Raised when a video cannot be found or its details cannot be fetched."""


class MetadataResolver(Protocol):
    """Looks up metadata for a YouTube video ID."""

    async def resolve(self, video_id: str) -> VideoMetadata:
        """Return metadata or raise VideoUnavailableError."""
        ...


def parse_iso8601_duration(value: str) -> int:
    """
    Parse a YouTube ISO-8601 duration (e.g. "PT1H2M3S") into seconds.

    Args:
        value: Duration string from contentDetails.duration

    Returns:
        Total seconds, or 0 if the string is not a recognized duration
    """
    match = ISO8601_DURATION_PATTERN.match(value or "")
    if not match:
        return 0

    days, hours, minutes, seconds = (int(group or 0) for group in match.groups())
    return days * 86400 + hours * 3600 + minutes * 60 + seconds


class YouTubeDataAPIResolver:
    """Resolve metadata through the YouTube Data API v3."""

    def __init__(
        self,
        api_key: str,
        timeout: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._timeout = timeout
        self._client = client

    async def _fetch(self, client: httpx.AsyncClient, video_id: str) -> Any:
        response = await client.get(
            YOUTUBE_VIDEOS_API_URL,
            params={
                "id": video_id,
                "part": "snippet,contentDetails",
                "key": self._api_key,
            },
        )
        response.raise_for_status()
        return response.json()

    async def resolve(self, video_id: str) -> VideoMetadata:
        """
        Fetch snippet and content details for a video.

        Error messages carry only the status code or error type, never the
        request URL, which includes the API key.

        Args:
            video_id: YouTube video ID

        Returns:
            Resolved metadata

        Raises:
            VideoUnavailableError: On HTTP errors, unreadable responses, or
                when no item is returned
        """
        try:
            if self._client is not None:
                data = await self._fetch(self._client, video_id)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    data = await self._fetch(client, video_id)
        except httpx.HTTPStatusError as e:
            reason = f"YouTube API returned {e.response.status_code}"
            logger.error(f"{reason} for {video_id}")
            raise VideoUnavailableError(reason) from e
        except httpx.HTTPError as e:
            reason = f"YouTube API request failed: {type(e).__name__}"
            logger.error(f"{reason} for {video_id}")
            raise VideoUnavailableError(reason) from e
        except ValueError as e:
            logger.error(f"YouTube API returned invalid JSON for {video_id}")
            raise VideoUnavailableError("YouTube API returned invalid JSON") from e

        if not isinstance(data, dict):
            logger.error(f"YouTube API returned unexpected payload for {video_id}")
            raise VideoUnavailableError("YouTube API returned unexpected payload")

        items = data.get("items") or []
        if not isinstance(items, list) or not items:
            raise VideoUnavailableError(f"Video {video_id} not found")
        if not isinstance(items[0], dict):
            raise VideoUnavailableError(f"Video {video_id} not found")

        item = items[0]
        snippet = item.get("snippet", {})
        content_details = item.get("contentDetails", {})
        return VideoMetadata(
            video_id=item.get("id", video_id),
            title=snippet.get("title", ""),
            channel=snippet.get("channelTitle", ""),
            duration_seconds=parse_iso8601_duration(
                content_details.get("duration", "")
            ),
        )


class YtDlpMetadataResolver:
    """Resolve metadata with yt-dlp without downloading the video."""

    def __init__(self, timeout: float = 15.0) -> None:
        self._ydl_opts = {
            "quiet": True,
            "no_warnings": True,
            "skip_download": True,
            "socket_timeout": timeout,
        }

    def _extract_info(self, url: str) -> dict[str, Any]:
        """Run yt-dlp metadata extraction (blocking operation)."""
        with yt_dlp.YoutubeDL(self._ydl_opts) as ydl:
            return ydl.extract_info(url, download=False)

    async def resolve(self, video_id: str) -> VideoMetadata:
        """
        Extract metadata for a video.

        Args:
            video_id: YouTube video ID

        Returns:
            Resolved metadata

        Raises:
            VideoUnavailableError: If yt-dlp cannot extract the video
        """
        url = f"https://www.youtube.com/watch?v={video_id}"
        try:
            info = await asyncio.to_thread(self._extract_info, url)
        except yt_dlp.utils.DownloadError as e:
            logger.error(f"yt-dlp: metadata extraction failed for {video_id}: {e}")
            raise VideoUnavailableError(str(e)) from e

        if not info:
            raise VideoUnavailableError(f"Video {video_id} not found")

        return VideoMetadata(
            video_id=info.get("id", video_id),
            title=info.get("title", ""),
            channel=info.get("channel") or info.get("uploader") or "",
            duration_seconds=int(info.get("duration") or 0),
        )


def build_metadata_resolver(settings: Settings) -> MetadataResolver:
    """
    Pick a resolver based on configuration.

    Args:
        settings: Application settings

    Returns:
        Data API resolver when a YouTube API key is configured, else yt-dlp
    """
    if settings.youtube_api_key:
        return YouTubeDataAPIResolver(
            settings.youtube_api_key, timeout=settings.metadata_timeout
        )
    logger.info("No YouTube API key configured, using yt-dlp for video metadata")
    return YtDlpMetadataResolver(timeout=settings.metadata_timeout)
