# tests/unit/test_sqlite_store.py
"""
Unit tests for SQLiteFlagStore and SQLiteJobLog persistence.

Tests flag round-trips, job upserts, crash recovery, and ordering.
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import aiosqlite
import pytest
import pytest_asyncio

from windspire_console.generation.marker import InProgressMarker
from windspire_console.models.content import ContentItem
from windspire_console.models.jobs import (
    CategoryOutcome,
    GenerationJob,
    GenerationRequest,
    ItemFailure,
    JobState,
    Progress,
)
from windspire_console.models.sqlite_store import SQLiteFlagStore, SQLiteJobLog


@pytest_asyncio.fixture
async def flags(tmp_path: Path) -> SQLiteFlagStore:
    store = SQLiteFlagStore(str(tmp_path / "console.db"))
    await store.initialize()
    return store


@pytest_asyncio.fixture
async def job_log(tmp_path: Path) -> SQLiteJobLog:
    log = SQLiteJobLog(str(tmp_path / "console.db"))
    await log.initialize()
    return log


def _job(job_id="abc123def456", created_at=None) -> GenerationJob:
    return GenerationJob(
        job_id=job_id,
        requests=[GenerationRequest("cat-1", 2), GenerationRequest("cat-2", 2)],
        progress=Progress(total=2),
        created_at=created_at or datetime.now(timezone.utc),
    )


class TestFlagStore:
    @pytest.mark.asyncio
    async def test_set_get_remove(self, flags: SQLiteFlagStore):
        assert await flags.get("k") is None

        await flags.set("k", "true")
        assert await flags.get("k") == "true"

        await flags.set("k", "false")
        assert await flags.get("k") == "false"

        await flags.remove("k")
        assert await flags.get("k") is None

    @pytest.mark.asyncio
    async def test_remove_missing_is_noop(self, flags: SQLiteFlagStore):
        await flags.remove("never-set")

    @pytest.mark.asyncio
    async def test_failed_remove_releases_write_lock(self, tmp_path: Path):
        db_path = str(tmp_path / "fresh.db")
        store = SQLiteFlagStore(db_path)

        with pytest.raises(aiosqlite.OperationalError):
            await store.remove("k")

        await store.initialize()
        await store.set("k", "true")
        assert await store.get("k") == "true"

    @pytest.mark.asyncio
    async def test_marker_survives_reopen(self, flags: SQLiteFlagStore, tmp_path: Path):
        await InProgressMarker(flags).set()

        reopened = SQLiteFlagStore(str(tmp_path / "console.db"))
        await reopened.initialize()

        assert await InProgressMarker(reopened).check_on_startup() is not None


class TestJobLog:
    @pytest.mark.asyncio
    async def test_record_and_get(self, job_log: SQLiteJobLog):
        job = _job()
        await job_log.record(job)

        entry = await job_log.get(job.job_id)

        assert entry["job_id"] == job.job_id
        assert entry["state"] == "running"
        assert entry["requests"][0] == {
            "category_id": "cat-1",
            "count": 2,
            "difficulty": "beginner",
            "model": None,
        }
        assert entry["produced"] == 0
        assert entry["finished_at"] is None

    @pytest.mark.asyncio
    async def test_record_upserts_final_state(self, job_log: SQLiteJobLog):
        job = _job()
        await job_log.record(job)

        job.results.append(ContentItem(id="x", title="Hack"))
        job.outcomes.append(CategoryOutcome("cat-1", "Money", True, 1))
        job.outcomes.append(CategoryOutcome("cat-2", "Food", False, 0, "boom"))
        job.failures.append(ItemFailure("cat-2", 1, "boom", attempts=1))
        job.state = JobState.COMPLETE
        job.finished_at = datetime.now(timezone.utc)
        await job_log.record(job)

        entry = await job_log.get(job.job_id)
        assert entry["state"] == "complete"
        assert entry["produced"] == 1
        assert entry["outcomes"][1]["error"] == "boom"
        assert entry["failures"][0]["item_index"] == 1
        assert entry["summary"] == "Generated 1 items across 1 categories. Failed: 1 categories."
        assert len(await job_log.list_recent()) == 1

    @pytest.mark.asyncio
    async def test_get_unknown_returns_none(self, job_log: SQLiteJobLog):
        assert await job_log.get("nope") is None

    @pytest.mark.asyncio
    async def test_list_recent_newest_first(self, job_log: SQLiteJobLog):
        base = datetime(2026, 1, 1, tzinfo=timezone.utc)
        for i in range(3):
            await job_log.record(_job(f"job-{i}", base + timedelta(minutes=i)))

        entries = await job_log.list_recent(limit=2)

        assert [e["job_id"] for e in entries] == ["job-2", "job-1"]

    @pytest.mark.asyncio
    async def test_crash_recovery_marks_running_interrupted(self, tmp_path: Path):
        db_path = str(tmp_path / "console.db")
        log = SQLiteJobLog(db_path)
        await log.initialize()
        await log.record(_job("running-job"))
        done = _job("done-job")
        done.state = JobState.COMPLETE
        await log.record(done)

        recovered = await SQLiteJobLog(db_path).initialize()

        assert recovered == 1
        assert (await log.get("running-job"))["state"] == "interrupted"
        assert (await log.get("done-job"))["state"] == "complete"

    @pytest.mark.asyncio
    async def test_mark_state(self, job_log: SQLiteJobLog):
        await job_log.record(_job("j1"))
        await job_log.mark_state("j1", JobState.INTERRUPTED)
        assert (await job_log.get("j1"))["state"] == "interrupted"

    @pytest.mark.asyncio
    async def test_mark_state_unknown_raises(self, job_log: SQLiteJobLog):
        with pytest.raises(ValueError, match="not found"):
            await job_log.mark_state("ghost", JobState.COMPLETE)

    @pytest.mark.asyncio
    async def test_close_checkpoints(self, job_log: SQLiteJobLog):
        await job_log.record(_job())
        await job_log.close()
        assert await job_log.get("abc123def456") is not None
