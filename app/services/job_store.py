"""
Job Store - SQLite persistence for video analysis jobs.

Provides atomic operations over job records with:
- A single table: video_analysis_jobs
- Compare-and-set status updates (UPDATE ... WHERE status = expected)
- WAL mode and BEGIN IMMEDIATE transactions for concurrent writers
- Exponential backoff when the database is locked
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import time
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable, TypeVar

from app.models.jobs import Job, JobStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS video_analysis_jobs (
    id TEXT PRIMARY KEY NOT NULL,
    status TEXT NOT NULL DEFAULT 'pending',
    youtube_url TEXT NOT NULL,
    question TEXT NOT NULL,
    model TEXT NOT NULL DEFAULT 'gemini-2.5-flash',
    result TEXT,
    error TEXT,
    use_low_resolution INTEGER DEFAULT 0,
    estimated_duration INTEGER,
    processing_time INTEGER,
    created_at TEXT NOT NULL,
    started_at TEXT,
    completed_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_jobs_status ON video_analysis_jobs(status);
CREATE INDEX IF NOT EXISTS idx_jobs_created ON video_analysis_jobs(created_at DESC);
"""

# Columns a conditional update is allowed to touch
UPDATABLE_FIELDS = frozenset(
    {"status", "result", "error", "processing_time", "started_at", "completed_at"}
)

INSERT_COLUMNS = (
    "id",
    "status",
    "youtube_url",
    "question",
    "model",
    "result",
    "error",
    "use_low_resolution",
    "estimated_duration",
    "processing_time",
    "created_at",
    "started_at",
    "completed_at",
)


class JobStoreError(Exception):
    """Raised when the job database cannot be read or written."""


def _to_db_value(value: Any) -> Any:
    """Convert Python values to SQLite-compatible column values."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, bool):
        return int(value)
    return value


class JobStore:
    """SQLite-backed job persistence; the sole writer of job records."""

    def __init__(self, db_path: Path, busy_retries: int = 3) -> None:
        """
        Initialize the store and create the schema if needed.

        Args:
            db_path: Path to the SQLite database file
            busy_retries: Retries when the database is locked by another writer
        """
        self.db_path = db_path
        self.busy_retries = busy_retries
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = self._connect()
        try:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.executescript(SCHEMA_SQL)
        except sqlite3.Error as e:
            raise JobStoreError(f"Failed to initialize job database: {e}") from e
        finally:
            conn.close()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path), timeout=5.0, isolation_level=None)
        conn.row_factory = sqlite3.Row
        return conn

    def _with_retry(self, operation: Callable[[sqlite3.Connection], T]) -> T:
        """
        Run a blocking database operation, retrying while the database is locked.

        Args:
            operation: Callable receiving an open connection

        Returns:
            The operation's return value

        Raises:
            JobStoreError: If the operation fails or retries are exhausted
        """
        for attempt in range(self.busy_retries + 1):
            conn = self._connect()
            try:
                return operation(conn)
            except sqlite3.OperationalError as e:
                locked = "locked" in str(e).lower() or "busy" in str(e).lower()
                if locked and attempt < self.busy_retries:
                    backoff = 0.1 * (2**attempt)
                    logger.warning(
                        f"Job database locked, retrying in {backoff:.1f}s "
                        f"(attempt {attempt + 1}/{self.busy_retries})"
                    )
                    time.sleep(backoff)
                    continue
                raise JobStoreError(f"Job database operation failed: {e}") from e
            except sqlite3.Error as e:
                raise JobStoreError(f"Job database operation failed: {e}") from e
            finally:
                conn.close()

        raise JobStoreError("Job database remained locked")

    async def _run(self, operation: Callable[[sqlite3.Connection], T]) -> T:
        # Run SQLite I/O in thread pool to avoid blocking event loop
        return await asyncio.to_thread(self._with_retry, operation)

    async def insert(self, job: Job) -> None:
        """
        Persist a newly created job.

        Args:
            job: Job instance to insert

        Raises:
            JobStoreError: If the insert fails (including duplicate IDs)
        """
        values = [_to_db_value(getattr(job, col)) for col in INSERT_COLUMNS]
        placeholders = ", ".join("?" for _ in INSERT_COLUMNS)
        sql = (
            f"INSERT INTO video_analysis_jobs ({', '.join(INSERT_COLUMNS)}) "
            f"VALUES ({placeholders})"
        )

        def operation(conn: sqlite3.Connection) -> None:
            conn.execute(sql, values)

        await self._run(operation)

    async def get_by_id(self, job_id: str) -> Job | None:
        """
        Load a job by ID.

        Args:
            job_id: Job identifier

        Returns:
            Job instance or None if not found
        """

        def operation(conn: sqlite3.Connection) -> sqlite3.Row | None:
            cursor = conn.execute(
                "SELECT * FROM video_analysis_jobs WHERE id = ?", (job_id,)
            )
            return cursor.fetchone()

        row = await self._run(operation)
        return Job.from_dict(dict(row)) if row else None

    async def conditional_update(
        self,
        job_id: str,
        expected_status: JobStatus,
        fields: dict[str, Any],
    ) -> bool:
        """
        Atomically update a job only if it is still in the expected status.

        This is a true compare-and-set: the status predicate and the write
        happen in one statement inside an immediate transaction, so two
        concurrent callers can never both apply.

        Args:
            job_id: Job identifier
            expected_status: Status the stored job must currently have
            fields: Column values to write

        Returns:
            True if the update applied, False if the job is missing or in
            another status

        Raises:
            ValueError: If fields name a column that may not be updated
            JobStoreError: If the database operation fails
        """
        if not fields:
            raise ValueError("conditional_update requires at least one field")
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be updated: {sorted(unknown)}")

        assignments = ", ".join(f"{name} = ?" for name in fields)
        params = [_to_db_value(value) for value in fields.values()]
        params.extend([job_id, expected_status.value])
        sql = (
            f"UPDATE video_analysis_jobs SET {assignments} "
            "WHERE id = ? AND status = ?"
        )

        def operation(conn: sqlite3.Connection) -> bool:
            conn.execute("BEGIN IMMEDIATE")
            try:
                cursor = conn.execute(sql, params)
                applied = cursor.rowcount == 1
                conn.execute("COMMIT")
            except sqlite3.Error:
                conn.execute("ROLLBACK")
                raise
            return applied

        return await self._run(operation)

    async def list_jobs(
        self,
        status: JobStatus | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Job]:
        """
        List jobs, newest first.

        Args:
            status: Optional status filter
            limit: Maximum number of jobs to return
            offset: Number of jobs to skip

        Returns:
            List of matching jobs
        """
        if status is not None:
            sql = (
                "SELECT * FROM video_analysis_jobs WHERE status = ? "
                "ORDER BY created_at DESC LIMIT ? OFFSET ?"
            )
            params: tuple[Any, ...] = (status.value, limit, offset)
        else:
            sql = (
                "SELECT * FROM video_analysis_jobs "
                "ORDER BY created_at DESC LIMIT ? OFFSET ?"
            )
            params = (limit, offset)

        def operation(conn: sqlite3.Connection) -> list[sqlite3.Row]:
            return conn.execute(sql, params).fetchall()

        rows = await self._run(operation)
        return [Job.from_dict(dict(row)) for row in rows]

    async def list_by_status(self, status: JobStatus) -> list[Job]:
        """
        List every job in a status, oldest first.

        Args:
            status: Status to match

        Returns:
            All jobs currently in that status
        """

        def operation(conn: sqlite3.Connection) -> list[sqlite3.Row]:
            return conn.execute(
                "SELECT * FROM video_analysis_jobs WHERE status = ? "
                "ORDER BY created_at ASC",
                (status.value,),
            ).fetchall()

        rows = await self._run(operation)
        return [Job.from_dict(dict(row)) for row in rows]
