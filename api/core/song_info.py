"""
Song-info lookup HTTP client.

Used endpoint:
- GET /info?group=<group>&song=<song>  -> {"releaseDate": "...", "text": "...", "link": "..."}
"""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from core.errors import DecodeFailure, RemoteFailure, TimeoutFailure, TransportFailure
from core.logging import get_logger

logger = get_logger(__name__)


class SongDetail(BaseModel):
    model_config = ConfigDict(populate_by_name=True, strict=True)

    # Missing keys decode to "" and are rejected later by entity validation.
    release_date: str = Field(default="", alias="releaseDate")
    text: str = ""
    link: str = ""


def _normalize_base_url(base_url: str) -> str:
    base_url = (base_url or "").strip()
    if not base_url:
        raise ValueError("Song info base URL is empty.")
    return base_url.rstrip("/")


class SongInfoClient:
    def __init__(
        self,
        base_url: str,
        *,
        timeout_s: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = _normalize_base_url(base_url)
        self.timeout_s = timeout_s
        self._transport = transport

    async def fetch_details(self, group: str, song: str) -> SongDetail:
        """
        Look up release date, lyrics and link for `song` by `group`.

        Query values are percent-encoded by httpx. No retry is attempted.
        """
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_s,
                transport=self._transport,
            ) as client:
                resp = await client.get("/info", params={"group": group, "song": song})
        except httpx.TimeoutException as e:
            raise TimeoutFailure(f"song info request timed out after {self.timeout_s}s") from e
        except httpx.HTTPError as e:
            raise TransportFailure(f"song info request failed: {e}") from e

        if resp.status_code != 200:
            status = f"{resp.status_code} {resp.reason_phrase}".strip()
            # Avoid dumping huge bodies; include a small snippet.
            logger.debug("Song info error body: %s", resp.text[:500])
            raise RemoteFailure(resp.status_code, status)

        try:
            data: Any = resp.json()
        except ValueError as e:
            raise DecodeFailure("song info response is not valid JSON") from e

        if not isinstance(data, dict):
            raise DecodeFailure("song info response is not a JSON object")

        try:
            return SongDetail.model_validate(data)
        except ValidationError as e:
            raise DecodeFailure(f"song info response has an unexpected shape: {e}") from e
