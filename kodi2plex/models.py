"""Pydantic models describing records read from the Kodi export."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

KodiDataType = Literal["live_action", "anime"]
MediaType = Literal["movie", "tv"]

KODI_DATA_TYPES: tuple[KodiDataType, ...] = ("live_action", "anime")
MEDIA_TYPES: tuple[MediaType, ...] = ("movie", "tv")


class SourceVideoRecord(BaseModel):
    """A single watched (or unwatched) movie or episode from the Kodi library."""

    model_config = ConfigDict(frozen=True)

    filenameandpath: str
    filenameandpath_split: tuple[str, ...] = ()
    extension: str = ""
    title: str = ""
    last_played: datetime | None = None
    play_count: int = Field(default=0, ge=0)
    position: int = Field(default=0, ge=0)
    season: int | None = None
    episode: int | None = None
    imdb: str | None = None
    tvdb: str | None = None
    anidb: str | None = None

    def attribute(self, name: str) -> object:
        """Look up a field by name, returning ``None`` for unknown names."""

        if name not in type(self).model_fields:
            return None
        return getattr(self, name)


class SourceShowRecord(BaseModel):
    """A Kodi TV show node together with its episodes."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    filenameandpath: str = ""
    tvdb: str | None = None
    anidb: str | None = None
    episodes: tuple[SourceVideoRecord, ...] = ()
