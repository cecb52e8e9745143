"""
Pydantic schemas for the songs endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Song(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        strict=True,
    )

    id: int = 0
    group_name: str = ""
    song_name: str = ""
    release_date: str = ""
    text: str = ""
    link: str = ""


class UpdateSongRequest(BaseModel):
    """
    Full-row overwrite body for PUT /songs/{id}.

    Unknown keys (including `id`) are ignored; missing keys decode as empty
    strings and are rejected by entity validation in the repository.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        strict=True,
    )

    group_name: str = ""
    song_name: str = ""
    release_date: str = ""
    text: str = ""
    link: str = ""


class AddSongRequest(BaseModel):
    model_config = ConfigDict(strict=True)

    group: str = Field(default="")
    song: str = Field(default="")
