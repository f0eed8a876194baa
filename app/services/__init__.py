"""
Service Container and Lifecycle Management.

Provides a centralized container for all service instances with proper
startup/shutdown lifecycle management for FastAPI integration. The core
components receive their collaborators through constructors; this module
is the one place they are wired together.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.core.config import Settings, get_settings
from app.models.jobs import JobStatus
from app.services.analysis_invoker import (
    AnalysisInvoker,
    AnalysisProvider,
    GeminiAnalysisProvider,
)
from app.services.job_processor import JobProcessor
from app.services.job_queue_service import InProcessJobQueue
from app.services.job_store import JobStore
from app.services.job_submitter import JobSubmitter
from app.services.queue_consumer import QueueConsumer
from app.services.video_metadata import MetadataResolver, build_metadata_resolver

logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Dependency injection container for all services.

    Manages service lifecycle with startup/shutdown hooks for proper
    resource management in FastAPI applications.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        provider: AnalysisProvider | None = None,
        resolver: MetadataResolver | None = None,
    ) -> None:
        """
        Initialize container with empty service references.

        Args:
            settings: Application settings (defaults to get_settings())
            provider: Analysis provider (defaults to Gemini)
            resolver: Video metadata resolver (defaults from settings)
        """
        self._settings = settings or get_settings()
        self._provider = provider
        self._resolver = resolver
        self._store: JobStore | None = None
        self._queue: InProcessJobQueue | None = None
        self._processor: JobProcessor | None = None
        self._consumer: QueueConsumer | None = None
        self._submitter: JobSubmitter | None = None
        self._consumer_task: asyncio.Task[None] | None = None

    @property
    def settings(self) -> Settings:
        """Get settings used by this container."""
        return self._settings

    @property
    def store(self) -> JobStore:
        """Get job store instance."""
        if self._store is None:
            raise RuntimeError(
                "ServiceContainer not initialized - call startup() first"
            )
        return self._store

    @property
    def queue(self) -> InProcessJobQueue:
        """Get job queue instance."""
        if self._queue is None:
            raise RuntimeError(
                "ServiceContainer not initialized - call startup() first"
            )
        return self._queue

    @property
    def processor(self) -> JobProcessor:
        """Get job processor instance."""
        if self._processor is None:
            raise RuntimeError(
                "ServiceContainer not initialized - call startup() first"
            )
        return self._processor

    @property
    def consumer(self) -> QueueConsumer:
        """Get queue consumer instance."""
        if self._consumer is None:
            raise RuntimeError(
                "ServiceContainer not initialized - call startup() first"
            )
        return self._consumer

    @property
    def submitter(self) -> JobSubmitter:
        """Get job submitter instance."""
        if self._submitter is None:
            raise RuntimeError(
                "ServiceContainer not initialized - call startup() first"
            )
        return self._submitter

    async def startup(self, start_consumer: bool = True) -> None:
        """
        Initialize all services and start the queue consumer.

        Creates service instances in dependency order, recovers jobs left
        over from a previous run, and starts the consumer loop as a
        background task.

        Args:
            start_consumer: Whether to start the background consumer loop
        """
        settings = self._settings
        logger.info("Starting service container")

        # Initialize services in dependency order
        self._store = JobStore(
            settings.database_path, busy_retries=settings.store_busy_retries
        )
        self._queue = InProcessJobQueue(
            retry_delay_seconds=settings.queue_retry_delay_seconds,
            max_delivery_attempts=settings.queue_max_delivery_attempts,
        )
        provider = self._provider or GeminiAnalysisProvider(
            api_key=settings.google_api_key
        )
        self._processor = JobProcessor(self._store, AnalysisInvoker(provider))
        self._consumer = QueueConsumer(
            self._queue,
            self._processor,
            concurrency=settings.consumer_concurrency,
            batch_size=settings.consumer_batch_size,
            batch_timeout=settings.consumer_batch_timeout,
        )
        self._submitter = JobSubmitter(
            self._store,
            self._queue,
            self._resolver or build_metadata_resolver(settings),
            default_model=settings.default_model,
            low_resolution_threshold=settings.low_resolution_threshold_seconds,
        )

        # Recover persisted jobs before starting background tasks
        if settings.recover_jobs_on_startup:
            requeued = await self.recover_jobs()
            if requeued > 0:
                logger.info(f"Re-queued {requeued} pending jobs from the database")

        if start_consumer:
            self._consumer_task = asyncio.create_task(
                self._consumer.run_consumer_loop()
            )

        logger.info("Service container started")

    async def recover_jobs(self) -> int:
        """
        Recover jobs left behind by a previous run.

        Jobs still PROCESSING were interrupted mid-analysis and are failed;
        PENDING jobs lost their in-memory delivery and are re-sent.

        Returns:
            Number of pending jobs re-queued
        """
        for job in await self.store.list_by_status(JobStatus.PROCESSING):
            await self.processor.fail_interrupted(job)

        pending = await self.store.list_by_status(JobStatus.PENDING)
        for job in pending:
            await self.queue.send(job.id)
        return len(pending)

    async def shutdown(self) -> None:
        """
        Gracefully shutdown all services.

        Stops the consumer, closes the queue and clears service references.
        """
        logger.info("Shutting down service container")

        if self._consumer:
            await self._consumer.shutdown(
                timeout=self._settings.graceful_shutdown_timeout
            )

        if self._consumer_task:
            self._consumer_task.cancel()
            try:
                await self._consumer_task
            except asyncio.CancelledError:
                pass

        if self._queue:
            await self._queue.close()

        # Clear service references
        self._store = None
        self._queue = None
        self._processor = None
        self._consumer = None
        self._submitter = None
        self._consumer_task = None

        logger.info("Service container shutdown complete")


# Global service container instance
_services: ServiceContainer | None = None


def get_services() -> ServiceContainer:
    """
    Get the global service container instance.

    Returns:
        Global ServiceContainer singleton

    Raises:
        RuntimeError: If container hasn't been initialized
    """
    if _services is None:
        raise RuntimeError(
            "Services not initialized - ensure services_lifespan() is used"
        )
    return _services


def set_services(container: ServiceContainer | None) -> None:
    """
    Install (or clear) the global service container.

    Args:
        container: Started container, or None to clear
    """
    global _services
    _services = container


@asynccontextmanager
async def services_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    FastAPI lifespan context manager for service initialization.

    Manages service container startup and shutdown during FastAPI
    application lifecycle.

    Args:
        app: FastAPI application instance

    Yields:
        None (context manager pattern)
    """
    container = ServiceContainer()
    await container.startup()
    set_services(container)
    logger.info("FastAPI services initialized")

    try:
        yield
    finally:
        await container.shutdown()
        set_services(None)
        logger.info("FastAPI services cleaned up")


__all__ = [
    "ServiceContainer",
    "get_services",
    "set_services",
    "services_lifespan",
    "AnalysisInvoker",
    "InProcessJobQueue",
    "JobProcessor",
    "JobStore",
    "JobSubmitter",
    "QueueConsumer",
]
