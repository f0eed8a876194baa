"""
MCP Server configuration for YouTube video analysis tools.

This module provides a pre-configured MCP server that can be used
directly with the Claude Agent SDK, and that app.agent.transport serves to
external MCP clients at /mcp.

Available tools:
    - analyze_youtube_video: Create an analysis job and queue it
    - check_video_analysis_status: Get a job's status and result
    - list_video_analysis_jobs: List recent jobs with optional status filter

Example usage:
    from claude_agent_sdk import ClaudeSDKClient, ClaudeAgentOptions
    from app.agent import video_analysis_server

    options = ClaudeAgentOptions(
        mcp_servers={"youtube-video-analyzer": video_analysis_server},
        allowed_tools=[
            "mcp__youtube-video-analyzer__analyze_youtube_video",
            "mcp__youtube-video-analyzer__check_video_analysis_status",
            "mcp__youtube-video-analyzer__list_video_analysis_jobs",
        ],
    )
"""

from claude_agent_sdk import create_sdk_mcp_server

from .video_analysis_tools import VIDEO_ANALYSIS_TOOLS

SERVER_NAME = "youtube-video-analyzer"
SERVER_VERSION = "2.0.0"

# Create MCP server with video analysis tools
video_analysis_server = create_sdk_mcp_server(
    name=SERVER_NAME,
    version=SERVER_VERSION,
    tools=VIDEO_ANALYSIS_TOOLS,
)
