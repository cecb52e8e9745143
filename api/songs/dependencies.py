"""
Dependencies for the songs routes.
"""

from __future__ import annotations

from fastapi import Request

from core.song_info import SongInfoClient


def get_song_info_client(request: Request) -> SongInfoClient:
    client = getattr(request.app.state, "song_info_client", None)
    if client is None:
        raise RuntimeError("Song info client is not initialized. Check the app lifespan.")
    return client
