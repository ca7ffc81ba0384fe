# windspire_console/models/sqlite_store.py
"""
SQLite-backed flag store and generation job log.

Async operations with WAL mode and IMMEDIATE transactions. No persistent
connections; every call opens and closes its own.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any

import aiosqlite

from windspire_console.models.jobs import GenerationJob, JobState, job_log_entry
from windspire_console.models.schema import init_db
from windspire_console.models.store import FlagStore, JobLog

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SQLiteFlagStore(FlagStore):
    """Durable key/value flags in the `flags` table."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        logger.info(f"Created SQLiteFlagStore with path: {db_path}")

    async def initialize(self) -> None:
        await init_db(self._db_path)

    async def set(self, key: str, value: str) -> None:
        async with aiosqlite.connect(self._db_path) as db:
            await db.execute("BEGIN IMMEDIATE")
            try:
                await db.execute(
                    """
                    INSERT INTO flags (key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value, updated_at = excluded.updated_at
                    """,
                    (key, value, _now()),
                )
                await db.commit()
            except Exception:
                await db.rollback()
                raise

    async def get(self, key: str) -> str | None:
        async with aiosqlite.connect(self._db_path) as db:
            cursor = await db.execute("SELECT value FROM flags WHERE key = ?", (key,))
            row = await cursor.fetchone()
            return row[0] if row else None

    async def remove(self, key: str) -> None:
        async with aiosqlite.connect(self._db_path) as db:
            await db.execute("BEGIN IMMEDIATE")
            try:
                await db.execute("DELETE FROM flags WHERE key = ?", (key,))
                await db.commit()
            except Exception:
                await db.rollback()
                raise


class SQLiteJobLog(JobLog):
    """
    Generation job history in the `generation_jobs` table.

    Features:
        - Upsert on every record() call (running, then complete)
        - Crash recovery (running -> interrupted on initialize)
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        logger.info(f"Created SQLiteJobLog with path: {db_path}")

    async def initialize(self) -> int:
        """
        Initialize schema and perform crash recovery.

        Returns:
            Number of jobs marked interrupted
        """
        await init_db(self._db_path)

        async with aiosqlite.connect(self._db_path) as db:
            await db.execute("BEGIN IMMEDIATE")
            cursor = await db.execute(
                "UPDATE generation_jobs SET state = ?, updated_at = ? WHERE state = ?",
                (JobState.INTERRUPTED.value, _now(), JobState.RUNNING.value),
            )
            recovered = cursor.rowcount
            await db.commit()

        if recovered > 0:
            logger.warning(
                f"Crash recovery: marked {recovered} running generation job(s) as interrupted"
            )
        return recovered

    async def record(self, job: GenerationJob) -> None:
        entry = job_log_entry(job)
        async with aiosqlite.connect(self._db_path) as db:
            await db.execute("BEGIN IMMEDIATE")
            try:
                await db.execute(
                    """
                    INSERT INTO generation_jobs (
                        id, state, requests, outcomes, failures, produced,
                        summary, created_at, finished_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        state = excluded.state,
                        outcomes = excluded.outcomes,
                        failures = excluded.failures,
                        produced = excluded.produced,
                        summary = excluded.summary,
                        finished_at = excluded.finished_at,
                        updated_at = excluded.updated_at
                    """,
                    (
                        entry["job_id"],
                        entry["state"],
                        json.dumps(entry["requests"]),
                        json.dumps(entry["outcomes"]),
                        json.dumps(entry["failures"]),
                        entry["produced"],
                        entry["summary"],
                        entry["created_at"],
                        entry["finished_at"],
                        _now(),
                    ),
                )
                await db.commit()
                logger.info(f"Logged generation job {job.job_id} ({entry['state']})")
            except Exception:
                await db.rollback()
                raise

    async def get(self, job_id: str) -> dict[str, Any] | None:
        async with aiosqlite.connect(self._db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM generation_jobs WHERE id = ?", (job_id,)
            )
            row = await cursor.fetchone()
            return self._row_to_entry(row) if row else None

    async def list_recent(self, limit: int = 20) -> list[dict[str, Any]]:
        async with aiosqlite.connect(self._db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM generation_jobs ORDER BY created_at DESC LIMIT ?",
                (limit,),
            )
            rows = await cursor.fetchall()
            return [self._row_to_entry(row) for row in rows]

    async def mark_state(self, job_id: str, state: JobState) -> None:
        async with aiosqlite.connect(self._db_path) as db:
            await db.execute("BEGIN IMMEDIATE")
            cursor = await db.execute(
                "UPDATE generation_jobs SET state = ?, updated_at = ? WHERE id = ?",
                (state.value, _now(), job_id),
            )
            if cursor.rowcount == 0:
                await db.rollback()
                raise ValueError(f"Job {job_id} not found")
            await db.commit()

    async def close(self) -> None:
        """
        Checkpoint WAL and truncate it to avoid unbounded growth.
        """
        try:
            async with aiosqlite.connect(self._db_path) as db:
                await db.execute("PRAGMA wal_checkpoint(TRUNCATE)")
                logger.info("WAL checkpoint completed")
        except Exception as e:
            logger.warning(f"WAL checkpoint failed: {e}")

    def _row_to_entry(self, row: aiosqlite.Row) -> dict[str, Any]:
        return {
            "job_id": row["id"],
            "state": row["state"],
            "requests": json.loads(row["requests"]),
            "outcomes": json.loads(row["outcomes"]),
            "failures": json.loads(row["failures"]),
            "produced": row["produced"],
            "summary": row["summary"],
            "created_at": row["created_at"],
            "finished_at": row["finished_at"],
        }
