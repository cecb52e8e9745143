"""
Schema migrations.

Each version is a list of DDL statements. Applied versions are recorded in
`schema_version`; pending versions run in ascending order, one transaction
per version.
"""

from __future__ import annotations

from core import db
from core.logging import get_logger

logger = get_logger(__name__)

MIGRATIONS: dict[int, list[str]] = {
    1: [
        """
        CREATE TABLE IF NOT EXISTS songs (
            id SERIAL PRIMARY KEY,
            group_name TEXT,
            song_name TEXT,
            release_date TEXT,
            text TEXT,
            link TEXT
        )
        """,
    ],
    2: [
        "CREATE INDEX IF NOT EXISTS idx_songs_group_name ON songs (lower(group_name))",
        "CREATE INDEX IF NOT EXISTS idx_songs_song_name ON songs (lower(song_name))",
    ],
}

_VERSION_TABLE = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at TIMESTAMPTZ NOT NULL DEFAULT now()
)
"""


async def current_version() -> int:
    row = await db.fetch_one("SELECT COALESCE(MAX(version), 0) AS version FROM schema_version")
    return int(row["version"]) if row is not None else 0


async def apply_migrations() -> int:
    """
    Bring the schema up to the latest version. Returns the resulting version.
    """
    await db.execute(_VERSION_TABLE)
    version = await current_version()

    pending = sorted(v for v in MIGRATIONS if v > version)
    if not pending:
        logger.info("Schema is up to date (version %d)", version)
        return version

    async with db.pool().acquire() as conn:
        for target in pending:
            async with conn.transaction():
                for statement in MIGRATIONS[target]:
                    await conn.execute(statement)
                await conn.execute("INSERT INTO schema_version (version) VALUES ($1)", target)
            logger.info("Applied schema migration %d", target)
            version = target

    return version
