"""
FastAPI router for the songs endpoints.

Every handler answers with short fixed plain-text messages on failure; the
underlying error is logged, never echoed. 400 is only used for input
problems found before calling the repository or the song-info service.
"""

from __future__ import annotations

import re

from fastapi import APIRouter, Depends, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from core.errors import (
    DataIntegrityFailure,
    DecodeFailure,
    InvalidArgument,
    NotFound,
    QueryFailure,
    RemoteFailure,
    ScanFailure,
    SongLibraryError,
    TimeoutFailure,
    TransportFailure,
    ValidationFailure,
)
from core.logging import get_logger
from core.song_info import SongInfoClient

from . import repository
from .dependencies import get_song_info_client
from .schemas import AddSongRequest, Song, UpdateSongRequest

logger = get_logger(__name__)

router = APIRouter()

DEFAULT_LIMIT = 10
DEFAULT_OFFSET = 0
MIN_NAME_LENGTH = 3

_INT64_MAX = 2**63 - 1
_INT_RE = re.compile(r"[+-]?[0-9]+")

# NotFound and ValidationFailure deliberately stay 500 to keep the
# public status codes stable.
FAILURE_STATUS: dict[type[SongLibraryError], int] = {
    InvalidArgument: 500,
    ValidationFailure: 500,
    QueryFailure: 500,
    ScanFailure: 500,
    DataIntegrityFailure: 500,
    NotFound: 500,
    TransportFailure: 500,
    RemoteFailure: 500,
    DecodeFailure: 500,
    TimeoutFailure: 504,
}


def status_for(exc: SongLibraryError) -> int:
    for cls in type(exc).__mro__:
        if cls in FAILURE_STATUS:
            return FAILURE_STATUS[cls]
    return 500


def _failure_response(exc: SongLibraryError, message: str) -> PlainTextResponse:
    status_code = status_for(exc)
    if status_code == 504:
        message = "Request timed out"
    return PlainTextResponse(message, status_code=status_code)


def _parse_int(raw: str | None) -> int | None:
    raw = raw or ""
    if not _INT_RE.fullmatch(raw):
        return None
    value = int(raw)
    if abs(value) > _INT64_MAX:
        return None
    return value


def _parse_song_id(raw: str) -> int | None:
    value = _parse_int(raw)
    if value is None or value <= 0:
        return None
    return value


def _too_short(value: str) -> bool:
    return len(value) < MIN_NAME_LENGTH


async def request_validation_handler(request: Request, exc: RequestValidationError) -> Response:
    """
    Undecodable request bodies answer 400 in plain text instead of FastAPI's
    422 JSON error document.
    """
    logger.error("Failed to decode request body for %s %s: %s", request.method, request.url.path, exc.errors())
    message = "Invalid input" if request.method == "POST" else "Invalid request body"
    return PlainTextResponse(message, status_code=400)


@router.get("/songs")
async def list_songs(
    group: str = Query(default=""),
    song: str = Query(default=""),
    limit: str | None = Query(default=None),
    offset: str | None = Query(default=None),
) -> Response:
    """
    List songs filtered by group and song name, with limit/offset paging.
    """
    logger.debug("Handling list songs request")

    parsed_limit = _parse_int(limit)
    if parsed_limit is None or parsed_limit <= 0:
        logger.warning("Invalid limit %r, defaulting to %d", limit, DEFAULT_LIMIT)
        parsed_limit = DEFAULT_LIMIT

    parsed_offset = _parse_int(offset)
    if parsed_offset is None or parsed_offset < 0:
        logger.warning("Invalid offset %r, defaulting to %d", offset, DEFAULT_OFFSET)
        parsed_offset = DEFAULT_OFFSET

    if group and _too_short(group):
        return PlainTextResponse("Group name is too short", status_code=400)
    if song and _too_short(song):
        return PlainTextResponse("Song name is too short", status_code=400)

    try:
        songs = await repository.list_songs(group, song, parsed_limit, parsed_offset)
    except SongLibraryError as exc:
        logger.error("Failed to fetch songs: %s", exc)
        return _failure_response(exc, "Failed to fetch songs")

    return JSONResponse([s.model_dump(by_alias=True) for s in songs])


@router.get("/songs/text/{song_id}")
async def get_song_text(song_id: str) -> Response:
    logger.debug("Handling get song text request")

    parsed_id = _parse_song_id(song_id)
    if parsed_id is None:
        logger.error("Invalid song ID: %s", song_id)
        return PlainTextResponse("Invalid song ID", status_code=400)

    try:
        text = await repository.fetch_text(parsed_id)
    except SongLibraryError as exc:
        logger.error("Failed to fetch song text: %s", exc)
        return _failure_response(exc, "Failed to fetch song text")

    return PlainTextResponse(text)


@router.delete("/songs/{song_id}")
async def delete_song(song_id: str) -> Response:
    parsed_id = _parse_song_id(song_id)
    if parsed_id is None:
        logger.error("Invalid song ID: %s", song_id)
        return PlainTextResponse("Invalid song ID", status_code=400)

    try:
        await repository.delete_by_id(parsed_id)
    except SongLibraryError as exc:
        logger.error("Failed to delete song with ID %d: %s", parsed_id, exc)
        return _failure_response(exc, "Failed to delete song")

    return PlainTextResponse("Song deleted successfully")


@router.put("/songs/{song_id}")
async def update_song(song_id: str, body: UpdateSongRequest) -> Response:
    """
    Overwrite every field of a song. The id comes from the path only.
    """
    parsed_id = _parse_song_id(song_id)
    if parsed_id is None:
        logger.error("Invalid song ID: %s", song_id)
        return PlainTextResponse("Invalid song ID", status_code=400)

    try:
        await repository.update_by_id(
            parsed_id,
            body.group_name,
            body.song_name,
            body.release_date,
            body.text,
            body.link,
        )
    except SongLibraryError as exc:
        logger.error("Failed to update song with ID %d: %s", parsed_id, exc)
        return _failure_response(exc, "Failed to update song")

    return PlainTextResponse("Song updated successfully")


@router.post("/songs")
async def add_song(
    body: AddSongRequest,
    client: SongInfoClient = Depends(get_song_info_client),
) -> Response:
    """
    Add a song: look up its details in the song-info service, then store it.
    """
    if _too_short(body.group) or _too_short(body.song):
        return PlainTextResponse(
            "Group name and song name must be at least 3 characters long",
            status_code=400,
        )

    try:
        details = await client.fetch_details(body.group, body.song)
    except SongLibraryError as exc:
        logger.error(
            "Failed to fetch song details for group: %s, song: %s: %s",
            body.group,
            body.song,
            exc,
        )
        return _failure_response(exc, "Failed to fetch song details")

    song = Song(
        group_name=body.group,
        song_name=body.song,
        release_date=details.release_date,
        text=details.text,
        link=details.link,
    )
    try:
        new_id = await repository.create(song)
    except SongLibraryError as exc:
        logger.error(
            "Failed to save song to DB: %r: %s",
            song.model_dump(exclude={"text"}),
            exc,
        )
        return _failure_response(exc, "Failed to save song to DB")

    logger.info("Added song %d (%s - %s)", new_id, song.group_name, song.song_name)
    return Response(status_code=201)
