"""
Video Analysis MCP Tools for Claude Agent.

Exposes the job lifecycle to the agent: submit an analysis job, poll its
status, and list recent jobs. Tools share the same services as the HTTP API
through the FastAPI ServiceContainer.

Tool Return Format (per Claude Agent SDK):
- Success: {"content": [{"type": "text", "text": "<json>"}]}
- Error: {"content": [{"type": "text", "text": "message"}], "is_error": True}
- NEVER raise exceptions that escape the tool function
"""

from __future__ import annotations

import json
import logging
from typing import Any

from claude_agent_sdk import tool

from app.core.validators import is_valid_uuid
from app.models.jobs import JobStatus
from app.services import get_services
from app.services.job_submitter import InvalidVideoURLError
from app.services.video_metadata import VideoUnavailableError

logger = logging.getLogger(__name__)

MIN_LIST_LIMIT = 1
MAX_LIST_LIMIT = 100
DEFAULT_LIST_LIMIT = 20

INVALID_URL_MESSAGE = "Invalid YouTube URL format"
VIDEO_UNAVAILABLE_MESSAGE = (
    "Could not fetch video details. Video may be private or unavailable."
)
JOB_NOT_FOUND_MESSAGE = "Job not found"
JOB_QUEUED_MESSAGE = "Video analysis job created and queued for processing"


def _text_response(payload: dict[str, Any]) -> dict[str, Any]:
    return {"content": [{"type": "text", "text": json.dumps(payload, indent=2)}]}


def _error_response(message: str) -> dict[str, Any]:
    return {"content": [{"type": "text", "text": message}], "is_error": True}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# TOOL 1: analyze_youtube_video
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@tool(
    "analyze_youtube_video",
    "Create an asynchronous analysis job for a YouTube video. "
    "Returns the job ID immediately; poll check_video_analysis_status for results.",
    {
        "type": "object",
        "properties": {
            "video_url": {
                "type": "string",
                "description": "YouTube video URL to analyze",
            },
            "question": {
                "type": "string",
                "description": "Question or analysis focus for the video",
            },
            "model": {
                "type": "string",
                "description": (
                    "AI model to use for analysis "
                    "(defaults to the server's configured model)"
                ),
            },
            "force_low_resolution": {
                "type": "boolean",
                "default": False,
                "description": "Force low resolution processing",
            },
        },
        "required": ["video_url", "question"],
    },
)
async def analyze_youtube_video(args: dict[str, Any]) -> dict[str, Any]:
    """
    Submit a video analysis job.

    Args:
        args: Tool arguments containing:
            - video_url: YouTube video URL
            - question: Analysis question
            - model: Optional model name
            - force_low_resolution: Optional low resolution override

    Returns:
        MCP tool response with job ID and video details, or an error
    """
    try:
        submission = await get_services().submitter.submit(
            video_url=args.get("video_url", ""),
            question=args.get("question", ""),
            model=args.get("model") or None,
            force_low_resolution=bool(args.get("force_low_resolution", False)),
        )
    except InvalidVideoURLError:
        return _error_response(INVALID_URL_MESSAGE)
    except VideoUnavailableError:
        return _error_response(VIDEO_UNAVAILABLE_MESSAGE)
    except Exception as e:
        logger.exception("analyze_youtube_video failed")
        return _error_response(f"Error creating analysis job: {e}")

    payload = submission.to_dict()
    payload["message"] = JOB_QUEUED_MESSAGE
    return _text_response(payload)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# TOOL 2: check_video_analysis_status
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@tool(
    "check_video_analysis_status",
    "Check the status of a video analysis job. "
    "Returns the full job record including the result once completed.",
    {
        "type": "object",
        "properties": {
            "job_id": {
                "type": "string",
                "description": "Job ID to check status for",
            },
        },
        "required": ["job_id"],
    },
)
async def check_video_analysis_status(args: dict[str, Any]) -> dict[str, Any]:
    """Return the full record for one job."""
    job_id = args.get("job_id", "")
    if not is_valid_uuid(job_id):
        return _error_response(JOB_NOT_FOUND_MESSAGE)

    try:
        job = await get_services().store.get_by_id(job_id)
    except Exception as e:
        logger.exception("check_video_analysis_status failed")
        return _error_response(f"Error checking job status: {e}")

    if job is None:
        return _error_response(JOB_NOT_FOUND_MESSAGE)

    return _text_response(job.to_dict())


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# TOOL 3: list_video_analysis_jobs
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@tool(
    "list_video_analysis_jobs",
    "List recent video analysis jobs, newest first, optionally filtered by status.",
    {
        "type": "object",
        "properties": {
            "status": {
                "type": "string",
                "enum": [status.value for status in JobStatus],
                "description": "Filter by job status",
            },
            "limit": {
                "type": "integer",
                "minimum": MIN_LIST_LIMIT,
                "maximum": MAX_LIST_LIMIT,
                "default": DEFAULT_LIST_LIMIT,
                "description": "Maximum number of jobs to return",
            },
        },
        "required": [],
    },
)
async def list_video_analysis_jobs(args: dict[str, Any]) -> dict[str, Any]:
    """
    List job summaries.

    Args:
        args: Tool arguments containing:
            - status: Optional status filter
            - limit: Page size between 1 and 100 (default 20)

    Returns:
        MCP tool response with total_jobs and job summaries, or an error
    """
    raw_status = args.get("status")
    try:
        status = JobStatus(raw_status) if raw_status else None
    except ValueError:
        return _error_response(f"Invalid status filter: {raw_status}")

    limit = args.get("limit", DEFAULT_LIST_LIMIT)
    if (
        isinstance(limit, bool)
        or not isinstance(limit, int)
        or not MIN_LIST_LIMIT <= limit <= MAX_LIST_LIMIT
    ):
        return _error_response(
            f"limit must be an integer between {MIN_LIST_LIMIT} and {MAX_LIST_LIMIT}"
        )

    try:
        jobs = await get_services().store.list_jobs(status=status, limit=limit)
    except Exception as e:
        logger.exception("list_video_analysis_jobs failed")
        return _error_response(f"Error listing jobs: {e}")

    summaries = [job.to_summary() for job in jobs]
    return _text_response({"total_jobs": len(summaries), "jobs": summaries})


VIDEO_ANALYSIS_TOOLS = [
    analyze_youtube_video,
    check_video_analysis_status,
    list_video_analysis_jobs,
]
