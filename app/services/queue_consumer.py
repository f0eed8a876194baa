"""
Queue Consumer - turns deliveries into processor runs.

Each message in a batch is handled independently and concurrently:
- processor returns (including jobs recorded as FAILED) -> ack()
- processor raises (store unreachable, record unreadable) -> retry()
- handling cancelled before the message is settled -> retry()
"""

from __future__ import annotations

import asyncio
import logging

from app.services.job_processor import JobProcessor
from app.services.job_queue_service import InProcessJobQueue, MessageBatch, QueueMessage

logger = logging.getLogger(__name__)


class QueueConsumer:
    """Background consumer for the job queue."""

    def __init__(
        self,
        queue: InProcessJobQueue,
        processor: JobProcessor,
        concurrency: int = 2,
        batch_size: int = 10,
        batch_timeout: float = 1.0,
    ) -> None:
        """
        Initialize the consumer.

        Args:
            queue: Transport to pull deliveries from
            processor: Executes one job per delivery
            concurrency: Maximum messages processed at once
            batch_size: Maximum messages pulled per batch
            batch_timeout: Seconds to wait for a batch before re-checking shutdown
        """
        self._queue = queue
        self._processor = processor
        self._semaphore = asyncio.Semaphore(concurrency)
        self._batch_size = batch_size
        self._batch_timeout = batch_timeout
        self._worker_tasks: list[asyncio.Task[None]] = []
        self._shutdown_event = asyncio.Event()

    async def handle_batch(self, batch: MessageBatch) -> None:
        """
        Process every message in a batch.

        Args:
            batch: Deliveries to handle
        """
        await asyncio.gather(*(self._handle_message(m) for m in batch.messages))

    async def _handle_message(self, message: QueueMessage) -> None:
        try:
            async with self._semaphore:
                outcome = await self._processor.process(message.job_id)
        except Exception as e:
            logger.error(
                f"Delivery for job {message.job_id} failed "
                f"(attempt {message.attempts}): {e}",
                exc_info=True,
            )
            message.retry()
        else:
            logger.debug(
                f"Delivery for job {message.job_id} handled: {outcome.value}"
            )
            message.ack()
        finally:
            # Unsettled deliveries (e.g. cancelled mid-processing) are redelivered
            if not message.settled:
                message.retry()

    async def _consumer_worker(self) -> None:
        """
        Worker coroutine that pulls and handles batches.

        Runs continuously until shutdown.
        """
        logger.info("Queue consumer worker started")

        try:
            while not self._shutdown_event.is_set():
                batch = await self._queue.receive_batch(
                    max_size=self._batch_size, timeout=self._batch_timeout
                )
                if not batch.messages:
                    continue
                await self.handle_batch(batch)

        except asyncio.CancelledError:
            logger.info("Queue consumer worker cancelled")
            raise

    async def run_consumer_loop(self, num_workers: int = 1) -> None:
        """
        Start consumer workers and wait for them to finish.

        Args:
            num_workers: Number of worker tasks pulling batches
        """
        logger.info(f"Starting {num_workers} queue consumer workers")

        self._worker_tasks = [
            asyncio.create_task(self._consumer_worker()) for _ in range(num_workers)
        ]
        await asyncio.gather(*self._worker_tasks, return_exceptions=True)

    async def shutdown(self, timeout: float = 5.0) -> None:
        """
        Stop consuming, giving in-progress batches time to finish.

        Args:
            timeout: Seconds to wait before cancelling workers
        """
        logger.info("Shutting down queue consumer")
        self._shutdown_event.set()

        if not self._worker_tasks:
            return

        _, pending = await asyncio.wait(self._worker_tasks, timeout=timeout)
        for task in pending:
            task.cancel()
        if pending:
            logger.warning("Queue consumer workers did not shutdown gracefully")
            await asyncio.gather(*pending, return_exceptions=True)
