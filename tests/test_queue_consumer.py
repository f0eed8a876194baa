"""
Tests for the queue consumer.

Covers acknowledgement rules, per-message independence within a batch,
and the background consumer loop lifecycle.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from app.services.job_processor import JobProcessor, ProcessOutcome
from app.services.job_queue_service import InProcessJobQueue
from app.services.job_store import JobStoreError
from app.services.queue_consumer import QueueConsumer
from fakes import wait_until


@pytest.fixture
def queue() -> InProcessJobQueue:
    """Queue with immediate redelivery."""
    return InProcessJobQueue(retry_delay_seconds=0.0, max_delivery_attempts=5)


@pytest.fixture
def processor() -> AsyncMock:
    """Processor mock that completes every job."""
    mock = AsyncMock(spec=JobProcessor)
    mock.process.return_value = ProcessOutcome.COMPLETED
    return mock


class TestHandleBatch:
    """Tests for QueueConsumer.handle_batch()."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "outcome",
        [
            ProcessOutcome.COMPLETED,
            ProcessOutcome.FAILED,
            ProcessOutcome.DUPLICATE,
            ProcessOutcome.NOT_FOUND,
        ],
    )
    async def test_returned_outcomes_are_acked(
        self,
        queue: InProcessJobQueue,
        processor: AsyncMock,
        outcome: ProcessOutcome,
    ) -> None:
        """Any outcome the processor returns settles the delivery with ack."""
        processor.process.return_value = outcome
        consumer = QueueConsumer(queue, processor)
        await queue.send("job")
        batch = await queue.receive_batch(timeout=0.1)

        await consumer.handle_batch(batch)

        assert batch.messages[0].settled
        assert queue.get_in_flight_count() == 0
        assert queue.get_queue_size() == 0

    @pytest.mark.asyncio
    async def test_store_error_is_retried(
        self, queue: InProcessJobQueue, processor: AsyncMock
    ) -> None:
        """A processor exception requests redelivery."""
        processor.process.side_effect = JobStoreError("database unavailable")
        consumer = QueueConsumer(queue, processor)
        await queue.send("job")
        batch = await queue.receive_batch(timeout=0.1)

        await consumer.handle_batch(batch)

        redelivered = await queue.receive_batch(timeout=0.1)
        assert [m.job_id for m in redelivered.messages] == ["job"]
        assert redelivered.messages[0].attempts == 2

    @pytest.mark.asyncio
    async def test_cancelled_delivery_is_retried(
        self, queue: InProcessJobQueue, processor: AsyncMock
    ) -> None:
        """A delivery interrupted by cancellation is not left unsettled."""
        processor.process.side_effect = asyncio.CancelledError()
        consumer = QueueConsumer(queue, processor)
        await queue.send("job")
        batch = await queue.receive_batch(timeout=0.1)

        with pytest.raises(asyncio.CancelledError):
            await consumer.handle_batch(batch)

        assert batch.messages[0].settled
        redelivered = await queue.receive_batch(timeout=0.1)
        assert redelivered.messages[0].attempts == 2

    @pytest.mark.asyncio
    async def test_messages_settled_independently(
        self, queue: InProcessJobQueue, processor: AsyncMock
    ) -> None:
        """One failing delivery does not affect the others in its batch."""

        async def process(job_id: str) -> ProcessOutcome:
            if job_id == "bad":
                raise JobStoreError("locked")
            return ProcessOutcome.COMPLETED

        processor.process.side_effect = process
        consumer = QueueConsumer(queue, processor)
        for job_id in ("good-1", "bad", "good-2"):
            await queue.send(job_id)
        batch = await queue.receive_batch(timeout=0.1)

        await consumer.handle_batch(batch)

        assert processor.process.await_count == 3
        remaining = await queue.receive_batch(timeout=0.1)
        assert [m.job_id for m in remaining.messages] == ["bad"]

    @pytest.mark.asyncio
    async def test_concurrency_limit(
        self, queue: InProcessJobQueue, processor: AsyncMock
    ) -> None:
        """No more than `concurrency` messages are processed at once."""
        active = 0
        peak = 0

        async def process(job_id: str) -> ProcessOutcome:
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1
            return ProcessOutcome.COMPLETED

        processor.process.side_effect = process
        consumer = QueueConsumer(queue, processor, concurrency=2)
        for i in range(6):
            await queue.send(f"job-{i}")
        batch = await queue.receive_batch(timeout=0.1)

        await consumer.handle_batch(batch)

        assert peak == 2


class TestConsumerLoop:
    """Tests for run_consumer_loop() and shutdown()."""

    @pytest.mark.asyncio
    async def test_loop_processes_deliveries(
        self, queue: InProcessJobQueue, processor: AsyncMock
    ) -> None:
        """Background workers pull and handle queued deliveries."""
        consumer = QueueConsumer(queue, processor, batch_timeout=0.05)
        loop_task = asyncio.create_task(consumer.run_consumer_loop(num_workers=2))

        await queue.send("job-1")
        await queue.send("job-2")
        await wait_until(lambda: processor.process.await_count == 2)

        await consumer.shutdown(timeout=1.0)
        await asyncio.wait_for(loop_task, timeout=1.0)

        assert queue.get_in_flight_count() == 0

    @pytest.mark.asyncio
    async def test_shutdown_without_workers(
        self, queue: InProcessJobQueue, processor: AsyncMock
    ) -> None:
        """Shutting down an idle consumer is a no-op."""
        consumer = QueueConsumer(queue, processor)
        await consumer.shutdown(timeout=0.1)
