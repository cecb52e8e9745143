from __future__ import annotations

from typing import Any, Callable, Generator

import httpx
import pytest
from fastapi.testclient import TestClient

from core import db
from core.song_info import SongInfoClient

SONG_INFO_URL = "http://song-info.test"


class FakeSongStore:
    """
    In-memory stand-in for the `core.db` helpers.

    Understands the statements issued by `songs.repository` and records every
    call so tests can assert that nothing was written.
    """

    def __init__(self) -> None:
        self.rows: dict[int, dict[str, Any]] = {}
        self.next_id = 1
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.fail_with: BaseException | None = None

    def add(self, **values: Any) -> int:
        song_id = self.next_id
        self.next_id += 1
        row = {
            "id": song_id,
            "group_name": "",
            "song_name": "",
            "release_date": "",
            "text": "",
            "link": "",
        }
        row.update(values)
        self.rows[song_id] = row
        return song_id

    @property
    def writes(self) -> list[tuple[str, tuple[Any, ...]]]:
        return [c for c in self.calls if c[0].split()[0] in ("INSERT", "UPDATE", "DELETE")]

    def _record(self, sql: str, args: tuple[Any, ...]) -> str:
        statement = " ".join(sql.split())
        self.calls.append((statement, args))
        if self.fail_with is not None:
            raise self.fail_with
        return statement

    async def fetch_all(self, sql: str, *args: Any) -> list[dict[str, Any]]:
        statement = self._record(sql, args)
        assert statement.startswith("SELECT id, group_name"), statement
        group_filter, title_filter, limit, offset = args

        def matches(value: Any, needle: str) -> bool:
            # NULL ILIKE ... is NULL in Postgres, so the row is skipped.
            return isinstance(value, str) and needle.lower() in value.lower()

        selected = [
            dict(row)
            for _, row in sorted(self.rows.items())
            if matches(row["group_name"], group_filter) and matches(row["song_name"], title_filter)
        ]
        return selected[offset : offset + limit]

    async def fetch_one(self, sql: str, *args: Any) -> dict[str, Any] | None:
        statement = self._record(sql, args)
        if statement.startswith("SELECT text FROM songs"):
            row = self.rows.get(args[0])
            return {"text": row["text"]} if row is not None else None
        if statement.startswith("INSERT INTO songs"):
            group_name, song_name, release_date, text, link = args
            song_id = self.add(
                group_name=group_name,
                song_name=song_name,
                release_date=release_date,
                text=text,
                link=link,
            )
            return {"id": song_id}
        raise AssertionError(f"unexpected statement: {statement}")

    async def execute(self, sql: str, *args: Any) -> str:
        statement = self._record(sql, args)
        if statement.startswith("DELETE FROM songs"):
            removed = self.rows.pop(args[0], None)
            return f"DELETE {1 if removed is not None else 0}"
        if statement.startswith("UPDATE songs"):
            group_name, song_name, release_date, text, link, song_id = args
            row = self.rows.get(song_id)
            if row is None:
                return "UPDATE 0"
            row.update(
                group_name=group_name,
                song_name=song_name,
                release_date=release_date,
                text=text,
                link=link,
            )
            return "UPDATE 1"
        raise AssertionError(f"unexpected statement: {statement}")


class FakeSongInfo:
    """
    Scriptable song-info endpoint served through httpx.MockTransport.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.handler: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(
            200,
            json={
                "releaseDate": "2009-09-14",
                "text": "Paranoia is in bloom",
                "link": "https://example.com/u",
            },
        )

    def respond_with(self, status_code: int = 200, **kwargs: Any) -> None:
        self.handler = lambda request: httpx.Response(status_code, **kwargs)

    def raise_error(self, exc_factory: Callable[[httpx.Request], Exception]) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise exc_factory(request)

        self.handler = handler

    def _dispatch(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def client(self, timeout_s: float = 10.0) -> SongInfoClient:
        return SongInfoClient(
            SONG_INFO_URL,
            timeout_s=timeout_s,
            transport=httpx.MockTransport(self._dispatch),
        )


@pytest.fixture(name="store")
def store_fixture(monkeypatch) -> FakeSongStore:
    fake = FakeSongStore()
    monkeypatch.setattr(db, "fetch_all", fake.fetch_all)
    monkeypatch.setattr(db, "fetch_one", fake.fetch_one)
    monkeypatch.setattr(db, "execute", fake.execute)
    return fake


@pytest.fixture(name="song_info")
def song_info_fixture() -> FakeSongInfo:
    return FakeSongInfo()


@pytest.fixture(name="client")
def client_fixture(store: FakeSongStore, song_info: FakeSongInfo) -> Generator[TestClient, None, None]:
    """TestClient without the lifespan: no real pool, fake song-info service."""
    from main import app
    from songs.dependencies import get_song_info_client

    app.dependency_overrides[get_song_info_client] = lambda: song_info.client()
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
