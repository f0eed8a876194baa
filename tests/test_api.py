"""
API Tests for FastAPI endpoints.

Testing Checklist Items:
- [x] Job creation returns 201 with video details
- [x] Invalid input is rejected with structured errors
- [x] Job polling and listing return persisted job state
- [x] Banner and health endpoints respond
"""

from __future__ import annotations

import logging
from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from httpx import AsyncClient

from app.models.jobs import JobStatus
from app.services import ServiceContainer
from app.services.video_metadata import (
    VideoUnavailableError,
    YouTubeDataAPIResolver,
)
from fakes import SAMPLE_VIDEO_URL, FakeMetadataResolver

UNKNOWN_JOB_ID = "aaaaaaaa-aaaa-4aaa-8aaa-aaaaaaaaaaaa"
YOUTUBE_API_KEY = "SECRET-YT-KEY"


class TestStatusEndpoints:
    """Test / and /health endpoints."""

    @pytest.mark.asyncio
    async def test_root_banner(self, async_client: AsyncClient) -> None:
        """Root returns the plain text service banner."""
        response = await async_client.get("/")

        assert response.status_code == 200
        assert response.text == "YouTube Video Analysis MCP Server"

    @pytest.mark.asyncio
    async def test_health(
        self, async_client: AsyncClient, services: ServiceContainer
    ) -> None:
        """Health reports queue depth."""
        await services.queue.send(UNKNOWN_JOB_ID)

        response = await async_client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "queue_size": 1, "in_flight": 0}


class TestCreateJob:
    """Test POST /api/jobs."""

    @pytest.mark.asyncio
    async def test_create_job(
        self, async_client: AsyncClient, services: ServiceContainer
    ) -> None:
        """Valid requests create a pending, queued job."""
        response = await async_client.post(
            "/api/jobs",
            json={"video_url": SAMPLE_VIDEO_URL, "question": "summarize"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["video_title"] == "Test Video"
        assert data["channel"] == "Test Channel"
        assert data["duration_seconds"] == 300
        assert data["using_low_resolution"] is False

        job = await services.store.get_by_id(data["job_id"])
        assert job is not None
        assert job.status == JobStatus.PENDING
        assert services.queue.get_queue_size() == 1

    @pytest.mark.asyncio
    async def test_create_job_with_overrides(
        self, async_client: AsyncClient, services: ServiceContainer
    ) -> None:
        """Model and resolution override are honored."""
        response = await async_client.post(
            "/api/jobs",
            json={
                "video_url": SAMPLE_VIDEO_URL,
                "question": "summarize",
                "model": "gemini-2.5-pro",
                "force_low_resolution": True,
            },
        )

        assert response.status_code == 201
        assert response.json()["using_low_resolution"] is True
        job = await services.store.get_by_id(response.json()["job_id"])
        assert job is not None
        assert job.model == "gemini-2.5-pro"

    @pytest.mark.asyncio
    async def test_invalid_url(
        self, async_client: AsyncClient, services: ServiceContainer
    ) -> None:
        """Non-YouTube URLs return 400 INVALID_VIDEO_URL."""
        response = await async_client.post(
            "/api/jobs",
            json={"video_url": "https://example.com/video", "question": "summarize"},
        )

        assert response.status_code == 400
        error = response.json()["detail"]["error"]
        assert error["code"] == "INVALID_VIDEO_URL"
        assert error["message"] == "Invalid YouTube URL format"
        assert error["detail"] == "URL: https://example.com/video"
        assert await services.store.list_jobs() == []

    @pytest.mark.asyncio
    async def test_unavailable_video(
        self,
        async_client: AsyncClient,
        services: ServiceContainer,
        fake_resolver: FakeMetadataResolver,
    ) -> None:
        """Unresolvable videos return 400 VIDEO_UNAVAILABLE."""
        fake_resolver.error = VideoUnavailableError("Video not found")

        response = await async_client.post(
            "/api/jobs",
            json={"video_url": SAMPLE_VIDEO_URL, "question": "summarize"},
        )

        assert response.status_code == 400
        assert response.json()["detail"]["error"]["code"] == "VIDEO_UNAVAILABLE"
        assert await services.store.list_jobs() == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {"video_url": SAMPLE_VIDEO_URL},
            {"video_url": SAMPLE_VIDEO_URL, "question": "   "},
            {"question": "summarize"},
        ],
    )
    async def test_validation_errors(
        self, async_client: AsyncClient, payload: dict
    ) -> None:
        """Missing or blank fields return 422 VALIDATION_ERROR."""
        response = await async_client.post("/api/jobs", json=payload)

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_closed_queue(
        self, async_client: AsyncClient, services: ServiceContainer
    ) -> None:
        """A closed queue returns a retryable 503."""
        await services.queue.close()

        response = await async_client.post(
            "/api/jobs",
            json={"video_url": SAMPLE_VIDEO_URL, "question": "summarize"},
        )

        assert response.status_code == 503
        error = response.json()["detail"]["error"]
        assert error["code"] == "QUEUE_UNAVAILABLE"
        assert error["retryable"] is True


class TestGetJob:
    """Test GET /api/jobs/{job_id}."""

    @pytest.mark.asyncio
    async def test_get_job(self, async_client: AsyncClient) -> None:
        """Created jobs can be polled."""
        created = await async_client.post(
            "/api/jobs",
            json={"video_url": SAMPLE_VIDEO_URL, "question": "summarize"},
        )
        job_id = created.json()["job_id"]

        response = await async_client.get(f"/api/jobs/{job_id}")

        assert response.status_code == 200
        data = response.json()
        assert data["job_id"] == job_id
        assert data["status"] == "pending"
        assert data["youtube_url"] == SAMPLE_VIDEO_URL
        assert data["question"] == "summarize"
        assert data["model"] == "gemini-2.5-flash"
        assert data["estimated_duration"] == 300
        assert data["result"] is None
        assert data["error"] is None

    @pytest.mark.asyncio
    async def test_unknown_job(self, async_client: AsyncClient) -> None:
        """Unknown job IDs return 404 JOB_NOT_FOUND."""
        response = await async_client.get(f"/api/jobs/{UNKNOWN_JOB_ID}")

        assert response.status_code == 404
        assert response.json()["detail"]["error"]["code"] == "JOB_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_malformed_job_id(self, async_client: AsyncClient) -> None:
        """Non-UUID job IDs return 400."""
        response = await async_client.get("/api/jobs/not-a-uuid")

        assert response.status_code == 400
        assert response.json()["detail"]["error"]["code"] == "VALIDATION_ERROR"


class TestListJobs:
    """Test GET /api/jobs."""

    async def _create(self, client: AsyncClient, count: int) -> list[str]:
        ids = []
        for i in range(count):
            response = await client.post(
                "/api/jobs",
                json={"video_url": SAMPLE_VIDEO_URL, "question": f"question {i}"},
            )
            ids.append(response.json()["job_id"])
        return ids

    @pytest.mark.asyncio
    async def test_list_newest_first(self, async_client: AsyncClient) -> None:
        """Jobs are listed newest first with the default limit."""
        ids = await self._create(async_client, 3)

        response = await async_client.get("/api/jobs")

        assert response.status_code == 200
        data = response.json()
        assert [job["job_id"] for job in data["jobs"]] == list(reversed(ids))
        assert data["total"] == 3
        assert data["limit"] == 20
        assert data["offset"] == 0

    @pytest.mark.asyncio
    async def test_status_filter(self, async_client: AsyncClient) -> None:
        """Status filter excludes other statuses."""
        await self._create(async_client, 2)

        response = await async_client.get("/api/jobs", params={"status": "completed"})

        assert response.status_code == 200
        assert response.json()["jobs"] == []

    @pytest.mark.asyncio
    async def test_limit_is_capped(self, async_client: AsyncClient) -> None:
        """Limits above the maximum are capped."""
        response = await async_client.get("/api/jobs", params={"limit": 500})

        assert response.status_code == 200
        assert response.json()["limit"] == 100

    @pytest.mark.asyncio
    async def test_pagination(self, async_client: AsyncClient) -> None:
        """Limit and offset page through results."""
        ids = await self._create(async_client, 3)

        response = await async_client.get(
            "/api/jobs", params={"limit": 1, "offset": 1}
        )

        assert [job["job_id"] for job in response.json()["jobs"]] == [ids[1]]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "params", [{"limit": 0}, {"offset": -1}, {"status": "cancelled"}]
    )
    async def test_invalid_query(
        self, async_client: AsyncClient, params: dict
    ) -> None:
        """Out-of-range parameters return 422."""
        response = await async_client.get("/api/jobs", params=params)

        assert response.status_code == 422


class TestMetadataLookupFailures:
    """Test POST /api/jobs when the YouTube Data API lookup fails."""

    @pytest.fixture
    def youtube_response(self) -> httpx.Response:
        """Response served by the mocked YouTube Data API."""
        return httpx.Response(403, json={"error": {"message": "forbidden"}})

    @pytest_asyncio.fixture
    async def fake_resolver(
        self, youtube_response: httpx.Response
    ) -> AsyncGenerator[YouTubeDataAPIResolver, None]:
        """Data API resolver backed by a mock transport."""

        def handler(request: httpx.Request) -> httpx.Response:
            return youtube_response

        transport = httpx.MockTransport(handler)
        async with httpx.AsyncClient(transport=transport) as client:
            yield YouTubeDataAPIResolver(YOUTUBE_API_KEY, client=client)

    @pytest.mark.asyncio
    async def test_api_key_not_exposed(
        self,
        async_client: AsyncClient,
        services: ServiceContainer,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """A rejected lookup never echoes the API key in responses or logs."""
        caplog.set_level(logging.DEBUG)

        response = await async_client.post(
            "/api/jobs",
            json={"video_url": SAMPLE_VIDEO_URL, "question": "summarize"},
        )

        assert response.status_code == 400
        error = response.json()["detail"]["error"]
        assert error["code"] == "VIDEO_UNAVAILABLE"
        assert error["detail"] == "YouTube API returned 403"
        assert YOUTUBE_API_KEY not in response.text
        assert YOUTUBE_API_KEY not in caplog.text
        assert await services.store.list_jobs() == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "youtube_response",
        [httpx.Response(200, text="<html>gateway error</html>")],
    )
    async def test_unreadable_response_is_unavailable(
        self, async_client: AsyncClient, services: ServiceContainer
    ) -> None:
        """A non-JSON lookup response is reported as an unavailable video."""
        response = await async_client.post(
            "/api/jobs",
            json={"video_url": SAMPLE_VIDEO_URL, "question": "summarize"},
        )

        assert response.status_code == 400
        assert response.json()["detail"]["error"]["code"] == "VIDEO_UNAVAILABLE"
        assert await services.store.list_jobs() == []
