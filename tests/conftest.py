"""
Pytest configuration and fixtures for backend tests.
"""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from typing import Any, AsyncGenerator, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.core.config import Settings
from app.models.jobs import Job, JobStatus
from app.services import ServiceContainer, set_services
from app.services.job_store import JobStore
from fakes import (
    BASE_TIME,
    SAMPLE_VIDEO_URL,
    FakeAnalysisProvider,
    FakeMetadataResolver,
)

# Configure pytest-asyncio to use function-scoped event loops
pytest_plugins = ("pytest_asyncio",)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings isolated to a temp directory with immediate redelivery."""
    return Settings(
        data_path=tmp_path,
        google_api_key="test-google-key",
        youtube_api_key=None,
        queue_retry_delay_seconds=0.0,
        consumer_batch_timeout=0.05,
        graceful_shutdown_timeout=1.0,
    )


@pytest.fixture
def job_store(tmp_path: Path) -> JobStore:
    """Create an isolated job store."""
    return JobStore(tmp_path / "jobs.db")


@pytest.fixture
def fake_provider() -> FakeAnalysisProvider:
    """Provider that streams a successful analysis."""
    return FakeAnalysisProvider()


@pytest.fixture
def fake_resolver() -> FakeMetadataResolver:
    """Resolver for a five minute video."""
    return FakeMetadataResolver()


@pytest.fixture
def make_job() -> Callable[..., Job]:
    """Factory for job records with sensible defaults."""
    counter = {"n": 0}

    def _make(**overrides: Any) -> Job:
        counter["n"] += 1
        fields: dict[str, Any] = {
            "id": f"00000000-0000-4000-8000-{counter['n']:012d}",
            "youtube_url": SAMPLE_VIDEO_URL,
            "question": "summarize",
            "model": "gemini-2.5-flash",
            "created_at": BASE_TIME + timedelta(minutes=counter["n"]),
            "status": JobStatus.PENDING,
        }
        fields.update(overrides)
        return Job(**fields)

    return _make


@pytest_asyncio.fixture
async def services(
    test_settings: Settings,
    fake_provider: FakeAnalysisProvider,
    fake_resolver: FakeMetadataResolver,
) -> AsyncGenerator[ServiceContainer, None]:
    """
    Start a service container with fake collaborators.

    The background consumer is not started; tests drive deliveries
    explicitly through the queue and consumer.
    """
    container = ServiceContainer(
        settings=test_settings, provider=fake_provider, resolver=fake_resolver
    )
    await container.startup(start_consumer=False)
    set_services(container)

    yield container

    await container.shutdown()
    set_services(None)


@pytest_asyncio.fixture
async def async_client(
    services: ServiceContainer,
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing FastAPI endpoints."""
    # Import here to avoid circular imports and allow patching
    from app.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
