"""
Job Queue Service - in-process at-least-once delivery of job IDs.

Provides the queue transport between the submitter and the consumer:
- send(job_id) enqueues a delivery
- receive_batch() hands out batches of messages
- each message is settled with ack() or retry()

Retried messages are redelivered after a delay until the delivery limit
is reached, then dropped and logged. Job state itself lives in the job
store; pending jobs are re-sent on startup since this transport does not
survive restarts.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


class QueueClosedError(Exception):
    """Raised when sending to a queue that has been shut down."""


@dataclass
class QueueMessage:
    """
    One delivery of a job ID.

    The same job ID may be delivered more than once; handlers must settle
    each message exactly once with ack() or retry().
    """

    job_id: str
    attempts: int = 1
    _queue: InProcessJobQueue | None = field(default=None, repr=False)
    _settled: bool = field(default=False, repr=False)

    @property
    def settled(self) -> bool:
        """Whether ack() or retry() has been called."""
        return self._settled

    def ack(self) -> None:
        """Acknowledge the delivery; it will not be redelivered."""
        if self._settled:
            return
        self._settled = True
        if self._queue is not None:
            self._queue._on_ack(self)

    def retry(self) -> None:
        """Request redelivery of this message."""
        if self._settled:
            return
        self._settled = True
        if self._queue is not None:
            self._queue._on_retry(self)


@dataclass
class MessageBatch:
    """A batch of deliveries handed to the consumer."""

    messages: list[QueueMessage] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.messages)


class InProcessJobQueue:
    """
    asyncio-based queue transport with at-least-once semantics.

    Messages are never lost while the process runs: a message leaves the
    queue only when acknowledged or when its delivery limit is exhausted.
    """

    def __init__(
        self,
        retry_delay_seconds: float = 5.0,
        max_delivery_attempts: int = 5,
    ) -> None:
        """
        Initialize the queue.

        Args:
            retry_delay_seconds: Delay before a retried message is redelivered
            max_delivery_attempts: Deliveries after which a message is dropped
        """
        self.retry_delay_seconds = retry_delay_seconds
        self.max_delivery_attempts = max_delivery_attempts
        self._pending: asyncio.Queue[QueueMessage] = asyncio.Queue()
        self._delayed_tasks: set[asyncio.Task[None]] = set()
        self._in_flight = 0
        self._closed = False

    async def send(self, job_id: str) -> None:
        """
        Enqueue a delivery for a job.

        Args:
            job_id: Job identifier

        Raises:
            QueueClosedError: If the queue has been closed
        """
        if self._closed:
            raise QueueClosedError("Job queue is shut down")
        await self._pending.put(QueueMessage(job_id=job_id, _queue=self))
        logger.debug(f"Queued delivery for job {job_id}")

    async def receive_batch(
        self, max_size: int = 10, timeout: float = 1.0
    ) -> MessageBatch:
        """
        Wait for up to max_size messages.

        Blocks until at least one message is available or the timeout
        expires, then drains whatever else is immediately available.

        Args:
            max_size: Maximum number of messages in the batch
            timeout: Seconds to wait for the first message

        Returns:
            Batch of messages (empty on timeout)
        """
        try:
            first = await asyncio.wait_for(self._pending.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return MessageBatch()

        messages = [first]
        while len(messages) < max_size:
            try:
                messages.append(self._pending.get_nowait())
            except asyncio.QueueEmpty:
                break

        self._in_flight += len(messages)
        return MessageBatch(messages=messages)

    def _on_ack(self, message: QueueMessage) -> None:
        self._in_flight -= 1
        logger.debug(f"Acknowledged delivery for job {message.job_id}")

    def _on_retry(self, message: QueueMessage) -> None:
        self._in_flight -= 1

        if message.attempts >= self.max_delivery_attempts:
            logger.error(
                f"Dropping delivery for job {message.job_id} after "
                f"{message.attempts} attempts"
            )
            return

        redelivery = QueueMessage(
            job_id=message.job_id, attempts=message.attempts + 1, _queue=self
        )
        if self._closed:
            logger.warning(f"Queue closed, not redelivering job {message.job_id}")
            return

        if self.retry_delay_seconds <= 0:
            self._pending.put_nowait(redelivery)
            return

        task = asyncio.create_task(self._redeliver_later(redelivery))
        self._delayed_tasks.add(task)
        task.add_done_callback(self._delayed_tasks.discard)
        logger.info(
            f"Redelivering job {message.job_id} in {self.retry_delay_seconds}s "
            f"(attempt {redelivery.attempts}/{self.max_delivery_attempts})"
        )

    async def _redeliver_later(self, message: QueueMessage) -> None:
        await asyncio.sleep(self.retry_delay_seconds)
        if not self._closed:
            await self._pending.put(message)

    async def close(self) -> None:
        """Stop accepting messages and cancel scheduled redeliveries."""
        self._closed = True
        for task in list(self._delayed_tasks):
            task.cancel()
        if self._delayed_tasks:
            await asyncio.gather(*self._delayed_tasks, return_exceptions=True)

    @property
    def closed(self) -> bool:
        """Whether close() has been called."""
        return self._closed

    def get_queue_size(self) -> int:
        """
        Get number of messages awaiting delivery.

        Returns:
            Number of queued messages (excluding scheduled redeliveries)
        """
        return self._pending.qsize()

    def get_in_flight_count(self) -> int:
        """
        Get number of delivered but unsettled messages.

        Returns:
            In-flight message count
        """
        return self._in_flight
