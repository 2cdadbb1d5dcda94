from __future__ import annotations

import pytest
from sqlalchemy import select

from conftest import imdb_guid, kodi_path, plex_path
from kodi2plex import __main__ as cli
from kodi2plex.db_models import MetadataItemSetting

MOVIE_EXPORT = """<videodb version="1">
  <movie>
    <title>Heat</title>
    <filenameandpath>{path}</filenameandpath>
    <playcount>1</playcount>
    <lastplayed>2020-01-01 21:30:00</lastplayed>
    <uniqueid type="imdb" default="true">{imdb}</uniqueid>
  </movie>
</videodb>
"""


@pytest.fixture
def configure(monkeypatch, tmp_path, settings):
    exclusions = tmp_path / "exclusions.json"
    exclusions.write_text("{}", encoding="utf-8")

    def apply(**overrides):
        values = {
            "database_url": f"sqlite:///{tmp_path / 'library.db'}",
            "exclusions_path": exclusions,
        }
        values.update(overrides)
        configured = settings.model_copy(update=values)
        monkeypatch.setattr(cli, "get_settings", lambda: configured)
        return configured

    return apply


def _write_export(tmp_path, imdb: str):
    path = tmp_path / "videodb.xml"
    path.write_text(
        MOVIE_EXPORT.format(path=kodi_path("Movies/Heat.mkv"), imdb=imdb), encoding="utf-8"
    )
    return path


def test_parser_requires_a_command() -> None:
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args([])


def test_import_movies(tmp_path, configure, catalog, session) -> None:
    heat = catalog.movie("Heat", imdb_guid("tt0113277"), plex_path("Movies/Heat.mkv"))
    configure(kodi_movies_path=_write_export(tmp_path, "tt0113277"))

    assert cli.main(["import", "--movies"]) == 0

    state = session.scalars(
        select(MetadataItemSetting).where(MetadataItemSetting.guid == heat.guid)
    ).one()
    assert state.view_count == 1


def test_import_reports_failures(tmp_path, configure, catalog, capsys) -> None:
    catalog.movie("Heat", imdb_guid("tt0113277"), plex_path("Movies/Heat.mkv"))
    configure(kodi_movies_path=_write_export(tmp_path, "tt0000001"))

    assert cli.main(["import", "--movies"]) == 1
    assert "Imdb does not match for Heat" in capsys.readouterr().err


def test_strict_import_aborts(tmp_path, configure, catalog) -> None:
    catalog.movie("Heat", imdb_guid("tt0113277"), plex_path("Movies/Heat.mkv"))
    configure(kodi_movies_path=_write_export(tmp_path, "tt0000001"))

    assert cli.main(["import", "--movies", "--strict"]) == 1


def test_import_without_export_path_exits(configure, database) -> None:
    configure()

    with pytest.raises(SystemExit, match="KODI2PLEX_KODI_ANIME_PATH"):
        cli.main(["import", "--anime-tv"])


def test_verify_without_folders_succeeds(configure, database) -> None:
    configure()

    assert cli.main(["verify"]) == 0
