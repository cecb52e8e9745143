"""
Songs persistence (raw SQL).

Every write is validated here before it reaches Postgres:
- group_name and song_name must be non-empty
- release_date must be a real YYYY-MM-DD date
- link must be an absolute URI or an absolute path

Store errors are wrapped into the `core.errors` taxonomy so callers never see
asyncpg exceptions.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Awaitable
from datetime import date
from typing import TypeVar
from urllib.parse import urlsplit

import asyncpg
from pydantic import ValidationError

from core import db
from core.errors import (
    DataIntegrityFailure,
    InvalidArgument,
    NotFound,
    QueryFailure,
    ScanFailure,
    TimeoutFailure,
    ValidationFailure,
)
from core.logging import get_logger

from .schemas import Song

logger = get_logger(__name__)

T = TypeVar("T")

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:")
_BAD_ESCAPE_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")

_STORE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


def is_valid_release_date(value: str) -> bool:
    if not _DATE_RE.match(value or ""):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def is_valid_link(value: str) -> bool:
    """
    Accept what an HTTP request line would: an absolute URI (`scheme:...`)
    or an absolute path (`/...`).
    """
    if not value:
        return False
    if any(ch.isspace() or ord(ch) < 0x20 or ord(ch) == 0x7F for ch in value):
        return False
    if _BAD_ESCAPE_RE.search(value):
        return False
    try:
        # Reading .port raises for a non-numeric or out-of-range port.
        urlsplit(value).port
    except ValueError:
        return False
    return bool(_SCHEME_RE.match(value)) or value.startswith("/")


def validate_song(song: Song) -> None:
    if not song.group_name or not song.song_name:
        field = "group_name" if not song.group_name else "song_name"
        raise ValidationFailure(field, "group_name and song_name are required")

    if not is_valid_release_date(song.release_date):
        raise ValidationFailure("release_date", "invalid release_date format, expected YYYY-MM-DD")

    if not is_valid_link(song.link):
        raise ValidationFailure("link", "invalid URL format in link")


def _require_positive_id(song_id: int) -> None:
    if song_id <= 0:
        raise InvalidArgument(f"invalid song ID: {song_id}")


async def _run(action: str, call: Awaitable[T]) -> T:
    try:
        return await call
    except (asyncio.TimeoutError, TimeoutError) as e:
        raise TimeoutFailure(f"{action} timed out") from e
    except _STORE_ERRORS as e:
        raise QueryFailure(f"failed to {action}: {e}") from e


async def list_songs(group_filter: str, title_filter: str, limit: int, offset: int) -> list[Song]:
    """
    Return songs whose group and title contain the given filters
    (case-insensitive). An empty filter matches every row.
    """
    rows = await _run(
        "query songs",
        db.fetch_all(
            """
            SELECT id, group_name, song_name, release_date, text, link
            FROM songs
            WHERE group_name ILIKE ('%' || $1 || '%')
              AND song_name ILIKE ('%' || $2 || '%')
            ORDER BY id
            LIMIT $3 OFFSET $4
            """,
            group_filter or "",
            title_filter or "",
            limit,
            offset,
        ),
    )

    songs: list[Song] = []
    for row in rows:
        try:
            song = Song.model_validate(row)
        except ValidationError as e:
            raise ScanFailure(f"failed to scan song row {row.get('id')!r}: {e}") from e

        if not song.group_name or not song.song_name:
            raise DataIntegrityFailure(
                f"invalid song data: missing group name or song name (id={song.id})"
            )
        songs.append(song)

    return songs


async def fetch_text(song_id: int) -> str:
    _require_positive_id(song_id)

    row = await _run(
        "get song text",
        db.fetch_one("SELECT text FROM songs WHERE id = $1", song_id),
    )
    if row is None:
        raise NotFound(f"song with ID {song_id} not found")

    text = row.get("text")
    if not isinstance(text, str):
        raise ScanFailure(f"failed to scan text of song {song_id}")
    return text


async def delete_by_id(song_id: int) -> None:
    """
    Delete a song. A missing id is not an error.
    """
    _require_positive_id(song_id)

    status = await _run("delete song", db.execute("DELETE FROM songs WHERE id = $1", song_id))
    logger.debug("Deleted song %d (%d rows affected)", song_id, db.affected_rows(status))


async def update_by_id(
    song_id: int,
    group_name: str,
    song_name: str,
    release_date: str,
    text: str,
    link: str,
) -> None:
    """
    Overwrite every column of a song. Existence is not checked: updating a
    missing id affects zero rows and still succeeds.
    """
    _require_positive_id(song_id)
    validate_song(
        Song(
            id=song_id,
            group_name=group_name,
            song_name=song_name,
            release_date=release_date,
            text=text,
            link=link,
        )
    )

    status = await _run(
        "update song",
        db.execute(
            """
            UPDATE songs
            SET group_name = $1, song_name = $2, release_date = $3, text = $4, link = $5
            WHERE id = $6
            """,
            group_name,
            song_name,
            release_date,
            text,
            link,
            song_id,
        ),
    )
    logger.debug("Updated song %d (%d rows affected)", song_id, db.affected_rows(status))


async def create(song: Song) -> int:
    """
    Insert a new song and return the id assigned by the store.
    """
    validate_song(song)

    row = await _run(
        "create song",
        db.fetch_one(
            """
            INSERT INTO songs (group_name, song_name, release_date, text, link)
            VALUES ($1, $2, $3, $4, $5)
            RETURNING id
            """,
            song.group_name,
            song.song_name,
            song.release_date,
            song.text,
            song.link,
        ),
    )
    if row is None:
        raise QueryFailure("failed to create song: no id returned")
    return int(row["id"])
