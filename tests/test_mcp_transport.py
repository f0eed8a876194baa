"""
MCP Streamable HTTP Transport Tests.

Drives /mcp with raw JSON-RPC requests through the FastAPI app. The
transport is started inside each test body because its task group must be
entered and exited by the same task.
"""

from __future__ import annotations

import json
from typing import Any

import pytest
from httpx import AsyncClient

from app.agent.transport import mcp_endpoint
from app.services import ServiceContainer
from fakes import SAMPLE_VIDEO_URL

MCP_HEADERS = {"Accept": "application/json, text/event-stream"}


async def _rpc(
    client: AsyncClient, method: str, params: dict[str, Any] | None = None
) -> dict[str, Any]:
    response = await client.post(
        "/mcp",
        json={"jsonrpc": "2.0", "id": 1, "method": method, "params": params or {}},
        headers=MCP_HEADERS,
    )
    assert response.status_code == 200, response.text
    body = response.json()
    assert "error" not in body, body
    return body["result"]


def _tool_text(result: dict[str, Any]) -> str:
    return result["content"][0]["text"]


class TestMCPToolListing:
    """Tests for tools/list over /mcp."""

    @pytest.mark.asyncio
    async def test_lists_registered_tools(self, async_client: AsyncClient) -> None:
        """All three video analysis tools are advertised with their schemas."""
        async with mcp_endpoint.run():
            result = await _rpc(async_client, "tools/list")

        tools = {tool["name"]: tool for tool in result["tools"]}
        assert set(tools) == {
            "analyze_youtube_video",
            "check_video_analysis_status",
            "list_video_analysis_jobs",
        }
        assert tools["analyze_youtube_video"]["inputSchema"]["required"] == [
            "video_url",
            "question",
        ]


class TestMCPToolCalls:
    """Tests for tools/call over /mcp."""

    @pytest.mark.asyncio
    async def test_submit_then_check_status(
        self, async_client: AsyncClient, services: ServiceContainer
    ) -> None:
        """Tool calls reach the running services."""
        async with mcp_endpoint.run():
            created = await _rpc(
                async_client,
                "tools/call",
                {
                    "name": "analyze_youtube_video",
                    "arguments": {
                        "video_url": SAMPLE_VIDEO_URL,
                        "question": "summarize",
                    },
                },
            )
            job_id = json.loads(_tool_text(created))["job_id"]
            status = await _rpc(
                async_client,
                "tools/call",
                {
                    "name": "check_video_analysis_status",
                    "arguments": {"job_id": job_id},
                },
            )

        assert not created.get("isError")
        assert json.loads(_tool_text(status))["status"] == "pending"
        assert await services.store.get_by_id(job_id) is not None

    @pytest.mark.asyncio
    async def test_tool_error_is_flagged(
        self, async_client: AsyncClient, services: ServiceContainer
    ) -> None:
        """Tool failures arrive as isError results, not protocol errors."""
        async with mcp_endpoint.run():
            result = await _rpc(
                async_client,
                "tools/call",
                {
                    "name": "analyze_youtube_video",
                    "arguments": {
                        "video_url": "https://example.com/video",
                        "question": "summarize",
                    },
                },
            )

        assert result["isError"] is True
        assert _tool_text(result) == "Invalid YouTube URL format"


class TestMCPEndpointLifecycle:
    """Tests for the endpoint outside a running transport."""

    @pytest.mark.asyncio
    async def test_not_running_returns_503(self, async_client: AsyncClient) -> None:
        """Requests before startup get a retryable SERVICE_UNAVAILABLE."""
        assert not mcp_endpoint.is_running

        response = await async_client.post(
            "/mcp",
            json={"jsonrpc": "2.0", "id": 1, "method": "tools/list", "params": {}},
            headers=MCP_HEADERS,
        )

        assert response.status_code == 503
        error = response.json()["error"]
        assert error["code"] == "SERVICE_UNAVAILABLE"
        assert error["retryable"] is True

    @pytest.mark.asyncio
    async def test_can_restart(self, async_client: AsyncClient) -> None:
        """Each run starts a fresh session manager."""
        async with mcp_endpoint.run():
            assert mcp_endpoint.is_running
        async with mcp_endpoint.run():
            result = await _rpc(async_client, "tools/list")

        assert not mcp_endpoint.is_running
        assert len(result["tools"]) == 3
