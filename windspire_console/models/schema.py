# windspire_console/models/schema.py
"""
Database schema definition for the console's local SQLite file.

Holds the durable flag table (in-progress marker) and the generation job log.
"""

import logging

import aiosqlite

logger = logging.getLogger(__name__)

# Schema version for future migrations
SCHEMA_VERSION = 1

FLAGS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS flags (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL
)
"""

GENERATION_JOBS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS generation_jobs (
    id TEXT PRIMARY KEY,
    state TEXT NOT NULL CHECK(state IN ('running', 'complete', 'interrupted')),
    requests TEXT NOT NULL,
    outcomes TEXT NOT NULL,
    failures TEXT NOT NULL,
    produced INTEGER NOT NULL DEFAULT 0,
    summary TEXT,
    created_at TEXT NOT NULL,
    finished_at TEXT,
    updated_at TEXT NOT NULL
)
"""

GENERATION_JOBS_INDEX_SQL = (
    "CREATE INDEX IF NOT EXISTS idx_generation_jobs_created "
    "ON generation_jobs(created_at)"
)


async def _get_schema_version(db: aiosqlite.Connection) -> int:
    """
    Get current schema version from database.

    Returns:
        Schema version (0 if no version table exists)
    """
    try:
        cursor = await db.execute("SELECT version FROM schema_version LIMIT 1")
        row = await cursor.fetchone()
        return row[0] if row else 0
    except aiosqlite.OperationalError:
        return 0


async def _set_schema_version(db: aiosqlite.Connection, version: int) -> None:
    await db.execute("CREATE TABLE IF NOT EXISTS schema_version (version INTEGER)")
    await db.execute("DELETE FROM schema_version")
    await db.execute("INSERT INTO schema_version (version) VALUES (?)", (version,))


async def init_db(db_path: str) -> None:
    """
    Create tables and indexes, enable WAL mode.

    Safe to call repeatedly.

    Args:
        db_path: Path to SQLite database file
    """
    async with aiosqlite.connect(db_path) as db:
        await db.execute("PRAGMA journal_mode=WAL")
        await db.execute(FLAGS_TABLE_SQL)
        await db.execute(GENERATION_JOBS_TABLE_SQL)
        await db.execute(GENERATION_JOBS_INDEX_SQL)

        current = await _get_schema_version(db)
        if current < SCHEMA_VERSION:
            await _set_schema_version(db, SCHEMA_VERSION)
            logger.info(f"Initialized schema version {SCHEMA_VERSION} at {db_path}")

        await db.commit()
