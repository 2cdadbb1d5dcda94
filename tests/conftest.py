"""Pytest configuration and test helpers."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterable, Iterator

import pytest

# Ensure the package is importable when running tests without an editable
# install. This mirrors the expected runtime layout where ``kodi2plex`` sits
# at the project root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from sqlalchemy.orm import Session  # noqa: E402

from kodi2plex.config import ExclusionRules, Settings  # noqa: E402
from kodi2plex.database import Database  # noqa: E402
from kodi2plex.db_models import MediaItem, MediaPart, MetadataItem  # noqa: E402
from kodi2plex.services.importer import ImportContext, Importer  # noqa: E402

KODI_ROOT = "smb://nas/media/"
PLEX_ROOT = "/data/media/"


def kodi_path(relative: str) -> str:
    return f"{KODI_ROOT}{relative}"


def plex_path(relative: str) -> str:
    return f"{PLEX_ROOT}{relative}"


def imdb_guid(imdb_id: str) -> str:
    return f"com.plexapp.agents.imdb://{imdb_id}?lang=en"


def tvdb_guid(tvdb_id: str, season: int | None = None, episode: int | None = None) -> str:
    if season is None:
        return f"com.plexapp.agents.thetvdb://{tvdb_id}?lang=en"
    if episode is None:
        return f"com.plexapp.agents.thetvdb://{tvdb_id}/{season}?lang=en"
    return f"com.plexapp.agents.thetvdb://{tvdb_id}/{season}/{episode}?lang=en"


def anidb_guid(anidb_id: str, season: int | None = None, episode: int | None = None) -> str:
    if season is None or episode is None:
        return f"com.plexapp.agents.hama://anidb-{anidb_id}?lang=en"
    return f"com.plexapp.agents.hama://anidb-{anidb_id}/{season}/{episode}?lang=en"


class CatalogBuilder:
    """Seeds Plex catalog rows for tests."""

    def __init__(self, session: Session):
        self.session = session

    def item(
        self,
        *,
        guid: str,
        title: str,
        index: int | None = None,
        parent: MetadataItem | None = None,
        files: Iterable[str] = (),
        metadata_type: int = 1,
    ) -> MetadataItem:
        item = MetadataItem(
            guid=guid,
            title=title,
            index=index,
            parent=parent,
            metadata_type=metadata_type,
            library_section_id=1,
            user_thumb_url=f"metadata://{title}",
        )
        self.session.add(item)
        files = list(files)
        if files:
            media = MediaItem(metadata_item=item)
            self.session.add(media)
            for file in files:
                self.session.add(MediaPart(media_item=media, file=file))
        self.session.commit()
        return item

    def movie(self, title: str, guid: str, *files: str) -> MetadataItem:
        return self.item(guid=guid, title=title, files=files)

    def show(self, title: str, guid: str) -> MetadataItem:
        return self.item(guid=guid, title=title, metadata_type=2)

    def season(self, show: MetadataItem, index: int, guid: str) -> MetadataItem:
        return self.item(
            guid=guid, title=f"Season {index}", index=index, parent=show, metadata_type=3
        )

    def episode(
        self,
        season: MetadataItem,
        index: int,
        guid: str,
        *files: str,
        title: str | None = None,
    ) -> MetadataItem:
        return self.item(
            guid=guid,
            title=title or f"Episode {index}",
            index=index,
            parent=season,
            files=files,
            metadata_type=4,
        )


@pytest.fixture
def database(tmp_path) -> Iterator[Database]:
    db = Database(f"sqlite:///{tmp_path / 'library.db'}")
    db.create_all()
    try:
        yield db
    finally:
        db.dispose()


@pytest.fixture
def session(database: Database) -> Iterator[Session]:
    with database.session() as session:
        yield session


@pytest.fixture
def catalog(session: Session) -> CatalogBuilder:
    return CatalogBuilder(session)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        account_id=1,
        device_id=7,
        kodi_media_path_match=KODI_ROOT,
        plex_media_path_replace=PLEX_ROOT,
        changed_at_seed=1000,
        changed_at_skip=10,
        suppress_errors_till_end=True,
    )


@pytest.fixture
def rules() -> ExclusionRules:
    return ExclusionRules()


@pytest.fixture
def context(settings: Settings, rules: ExclusionRules, session: Session) -> ImportContext:
    return ImportContext.create(settings, rules, session)


@pytest.fixture
def importer(context: ImportContext) -> Importer:
    return Importer(context)
