"""
Streamable HTTP transport for the video analysis MCP server.

Serves the in-process SDK server at /mcp so MCP clients outside the
process can call the same tools the agent uses. Requests are handled
statelessly with plain JSON responses: every POST carries one complete
JSON-RPC exchange and no session is kept between requests.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi.responses import JSONResponse
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from starlette.types import Receive, Scope, Send

from app.models.errors import service_unavailable_error

from .server import video_analysis_server

logger = logging.getLogger(__name__)

MCP_PATH = "/mcp"
MCP_METHODS = ["GET", "POST", "DELETE"]


class MCPHTTPEndpoint:
    """ASGI endpoint forwarding requests to a streamable HTTP session manager."""

    def __init__(self, server: Any) -> None:
        """
        Initialize the endpoint.

        Args:
            server: Low-level MCP server instance to serve
        """
        self._server = server
        self._session_manager: StreamableHTTPSessionManager | None = None

    @property
    def is_running(self) -> bool:
        """Whether requests are currently being served."""
        return self._session_manager is not None

    @asynccontextmanager
    async def run(self) -> AsyncIterator[None]:
        """
        Serve requests for the lifetime of the context.

        A session manager can only be run once, so each run creates its own.
        """
        session_manager = StreamableHTTPSessionManager(
            app=self._server,
            json_response=True,
            stateless=True,
        )
        async with session_manager.run():
            self._session_manager = session_manager
            logger.info(f"MCP transport serving at {MCP_PATH}")
            try:
                yield
            finally:
                self._session_manager = None
                logger.info("MCP transport stopped")

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        session_manager = self._session_manager
        if session_manager is None:
            api_error = service_unavailable_error(detail="MCP transport is not running")
            response = JSONResponse(status_code=503, content=api_error.to_dict())
            await response(scope, receive, send)
            return

        await session_manager.handle_request(scope, receive, send)


mcp_endpoint = MCPHTTPEndpoint(video_analysis_server["instance"])
