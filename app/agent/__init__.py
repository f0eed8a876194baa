"""
Agent Video Analysis Tools - YouTube analysis job tools for Claude Agent SDK.

The tools read and write through the running ServiceContainer, so they are
usable wherever the FastAPI application (or a started container) is active.

Environment Variables:
    APP_GOOGLE_API_KEY: Google Generative AI key used by job processing.
    APP_YOUTUBE_API_KEY: Optional. YouTube Data API key for metadata lookup;
        yt-dlp is used when unset.
"""

from .server import video_analysis_server
from .video_analysis_tools import (
    analyze_youtube_video,
    check_video_analysis_status,
    list_video_analysis_jobs,
)

__all__ = [
    "analyze_youtube_video",
    "check_video_analysis_status",
    "list_video_analysis_jobs",
    "video_analysis_server",
]

__version__ = "2.0.0"
