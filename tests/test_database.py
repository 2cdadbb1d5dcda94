from __future__ import annotations

from sqlalchemy import inspect

from kodi2plex.database import Database
from kodi2plex.db_models import MetadataItem
from kodi2plex.sequence import ChangedAtSequence
from kodi2plex.services.store import CatalogStore


def test_create_all_creates_library_tables(tmp_path) -> None:
    database = Database(f"sqlite:///{tmp_path / 'library.db'}")
    try:
        database.create_all()
        tables = set(inspect(database.engine).get_table_names())
    finally:
        database.dispose()

    assert {
        "metadata_items",
        "media_items",
        "media_parts",
        "metadata_item_settings",
        "metadata_item_views",
    } <= tables


def test_create_all_is_repeatable(tmp_path) -> None:
    database = Database(f"sqlite:///{tmp_path / 'library.db'}")
    try:
        database.create_all()
        database.create_all()
        columns = {
            column["name"]
            for column in inspect(database.engine).get_columns("metadata_item_views")
        }
    finally:
        database.dispose()

    assert {"index", "parent_index", "grandparent_guid", "device_id"} <= columns


def test_session_scope_commits(database, catalog, session) -> None:
    catalog.show("Lost", "com.plexapp.agents.thetvdb://73739?lang=en")

    with database.session() as other:
        assert other.query(MetadataItem).count() == 1


def test_store_lookups(catalog, session) -> None:
    show = catalog.show("Lost", "com.plexapp.agents.thetvdb://73739?lang=en")
    season = catalog.season(show, 1, "com.plexapp.agents.thetvdb://73739/1?lang=en")
    episode = catalog.episode(
        season, 1, "com.plexapp.agents.thetvdb://73739/1/1?lang=en", "/data/Lost/S01E01.mkv"
    )
    store = CatalogStore(session, ChangedAtSequence(seed=1))

    assert store.get_entry(season.id) is season
    assert store.get_entry(-1) is None
    assert store.entry_for_file("/data/Lost/S01E01.mkv") is episode
    assert store.entry_for_file("/data/Lost/S01E02.mkv") is None
    assert store.count_media_parts(["/data/Lost/S01E01.mkv", "/data/Lost/S01E02.mkv"]) == 1
