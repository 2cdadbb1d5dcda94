"""Application configuration models."""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, Iterable

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    database_url: str = Field(
        default="sqlite:///data/com.plexapp.plugins.library.db"
    )
    kodi_movies_path: Path | None = None
    kodi_anime_path: Path | None = None
    exclusions_path: Path = Field(default=Path("data/exclusions.json"))

    account_id: int = Field(default=1, ge=0)
    device_id: int = Field(default=1, ge=0)

    kodi_media_path_match: str = ""
    plex_media_path_replace: str = ""
    dir_media_path_match: str = ""

    changed_at_seed: int = Field(default=1, ge=0)
    changed_at_skip: int = Field(default=1, ge=1)

    suppress_errors_till_end: bool = True
    clear_tables: bool = False

    folders_to_verify_matches: Annotated[tuple[str, ...], NoDecode] = ()

    @field_validator("folders_to_verify_matches", mode="before")
    @classmethod
    def _parse_folder_globs(cls, value: object) -> tuple[str, ...]:
        """Accept comma separated strings as well as JSON lists."""

        if value is None:
            return ()
        if isinstance(value, str):
            raw_values = [part.strip() for part in value.split(",")]
        elif isinstance(value, Iterable):
            raw_values = [str(part).strip() for part in value]
        else:
            raise TypeError("folders_to_verify_matches must be a string or list")
        return tuple(entry for entry in raw_values if entry)

    model_config = SettingsConfigDict(
        env_prefix="KODI2PLEX_",
        env_file=".env",
        env_file_encoding="utf-8",
    )


class ExclusionRules(BaseModel):
    """Skip lists and correction tables applied while importing."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    filename_substitutions: tuple[tuple[str, str], ...] = ()
    known_imdb_mismatches: frozenset[str] = frozenset()
    known_tvdb_mismatches: frozenset[str] = frozenset()
    video_data_to_skip: tuple[dict[str, Any], ...] = ()
    filename_regex_to_skip: tuple[str, ...] = ()
    tmdb_to_imdb: dict[str, str] = Field(default_factory=dict)
    play_count_overrides: dict[str, int] = Field(default_factory=dict)
    tv_shows_to_skip: frozenset[str] = frozenset()
    anidb_corrections: dict[str, str] = Field(default_factory=dict)

    @field_validator("anidb_corrections", "tmdb_to_imdb", mode="before")
    @classmethod
    def _stringify_ids(cls, value: object) -> object:
        # Exclusion files commonly store numeric ids unquoted.
        if isinstance(value, dict):
            return {str(key): str(item) for key, item in value.items()}
        return value

    @classmethod
    def load(cls, path: Path | str) -> "ExclusionRules":
        """Read and validate an exclusions JSON document."""

        with open(path, encoding="utf-8") as handle:
            return cls.model_validate(json.load(handle))


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]
