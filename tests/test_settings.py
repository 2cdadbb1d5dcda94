"""Configuration settings behaviour tests."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from kodi2plex.config import ExclusionRules, Settings


def test_defaults_without_environment() -> None:
    settings = Settings(_env_file=None)

    assert settings.account_id == 1
    assert settings.changed_at_skip == 1
    assert settings.suppress_errors_till_end is True
    assert settings.clear_tables is False
    assert settings.folders_to_verify_matches == ()
    assert settings.kodi_movies_path is None


def test_settings_read_prefixed_environment(monkeypatch) -> None:
    """Environment variables use the KODI2PLEX_ prefix."""

    monkeypatch.setenv("KODI2PLEX_ACCOUNT_ID", "5")
    monkeypatch.setenv("KODI2PLEX_SUPPRESS_ERRORS_TILL_END", "false")
    monkeypatch.setenv("KODI2PLEX_FOLDERS_TO_VERIFY_MATCHES", "/anime/A*, /anime/B*")

    settings = Settings(_env_file=None)

    assert settings.account_id == 5
    assert settings.suppress_errors_till_end is False
    assert settings.folders_to_verify_matches == ("/anime/A*", "/anime/B*")


def test_folder_globs_accept_lists_and_drop_blanks() -> None:
    settings = Settings(_env_file=None, folders_to_verify_matches=["/a", " ", "/b "])

    assert settings.folders_to_verify_matches == ("/a", "/b")


@pytest.mark.parametrize("field", ["changed_at_skip", "account_id"])
def test_invalid_numbers_are_rejected(field) -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **{field: -1})


def test_exclusion_rules_load_from_json(tmp_path) -> None:
    path = tmp_path / "exclusions.json"
    path.write_text(
        json.dumps(
            {
                "filename_substitutions": [["Movies/Old", "Movies/New"]],
                "known_imdb_mismatches": ["Heat"],
                "tv_shows_to_skip": ["Lost"],
                "video_data_to_skip": [{"title": "Pilot", "season": 1}],
                "tmdb_to_imdb": {"949": "tt0113277"},
                "play_count_overrides": {"smb://nas/media/Movies/Heat.mkv": 3},
                "anidb_corrections": {"Mushishi": 2814},
            }
        ),
        encoding="utf-8",
    )

    rules = ExclusionRules.load(path)

    assert rules.filename_substitutions == (("Movies/Old", "Movies/New"),)
    assert "Heat" in rules.known_imdb_mismatches
    assert rules.tv_shows_to_skip == frozenset({"Lost"})
    assert rules.video_data_to_skip == ({"title": "Pilot", "season": 1},)
    assert rules.anidb_corrections == {"Mushishi": "2814"}
    assert rules.play_count_overrides["smb://nas/media/Movies/Heat.mkv"] == 3


def test_exclusion_rules_reject_unknown_keys(tmp_path) -> None:
    path = tmp_path / "exclusions.json"
    path.write_text('{"tv_shows_to_skipp": ["Lost"]}', encoding="utf-8")

    with pytest.raises(ValidationError):
        ExclusionRules.load(path)
