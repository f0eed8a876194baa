"""
FastAPI application entry point.

Configures and creates the FastAPI application with:
- Service lifecycle management
- Exception handlers
- Router mounting
- MCP streamable HTTP endpoint at /mcp
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI

# Load environment variables first
load_dotenv()

# Configure logging and redact API keys from log output
from app.core.logging import configure_logging  # noqa: E402

configure_logging()

# Import application components
from app.agent.transport import MCP_METHODS, MCP_PATH, mcp_endpoint  # noqa: E402
from app.api.errors import register_exception_handlers  # noqa: E402
from app.api.routers import jobs_router, status_router  # noqa: E402
from app.services import services_lifespan  # noqa: E402


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Start services first so MCP tool calls always find them running."""
    async with services_lifespan(app), mcp_endpoint.run():
        yield


# Create FastAPI application with service lifecycle management
app = FastAPI(
    title="YouTube Video Analysis MCP Server",
    description="Asynchronous YouTube video analysis with AI-powered insights",
    version="2.0.0",
    lifespan=lifespan,
)

# Register exception handlers
register_exception_handlers(app)

# Mount API routers
app.include_router(status_router)
app.include_router(jobs_router)

# Serve the video analysis tools to MCP clients
app.add_route(MCP_PATH, mcp_endpoint, methods=MCP_METHODS, include_in_schema=False)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="127.0.0.1", port=8000, reload=True)
