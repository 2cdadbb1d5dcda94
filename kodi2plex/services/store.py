"""Access to the Plex library tables the importer reads and writes."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from sqlalchemy import delete, func, inspect, select
from sqlalchemy.orm import Session, selectinload

from ..db_models import (
    MediaItem,
    MediaPart,
    MetadataItem,
    MetadataItemSetting,
    MetadataItemView,
)
from ..sequence import ChangedAtSequence

logger = logging.getLogger(__name__)


class CatalogStore:
    """Thin repository over a synchronous SQLAlchemy session.

    Every write commits on its own; a failed run leaves earlier writes in
    place.
    """

    def __init__(self, session: Session, sequence: ChangedAtSequence):
        self._session = session
        self._sequence = sequence

    def find_entries_for_files(self, files: Iterable[str]) -> list[MetadataItem]:
        """Return distinct catalog entries backed by any of ``files``.

        Parents and grandparents are loaded eagerly.
        """

        statement = (
            select(MetadataItem)
            .join(MetadataItem.media_items)
            .join(MediaItem.media_parts)
            .where(MediaPart.file.in_(list(files)))
            .options(selectinload(MetadataItem.parent).selectinload(MetadataItem.parent))
            .distinct()
            .order_by(MetadataItem.id)
        )
        return list(self._session.scalars(statement).unique())

    def count_media_parts(self, files: Iterable[str]) -> int:
        statement = select(func.count(MediaPart.id)).where(MediaPart.file.in_(list(files)))
        return int(self._session.scalar(statement) or 0)

    def get_entry(self, entry_id: int) -> MetadataItem | None:
        """Look up an entry by primary key.

        Matching navigates relationships instead; this serves callers that
        already hold a catalog id, such as tests seeding the catalog.
        """

        return self._session.get(MetadataItem, entry_id)

    def entry_for_file(self, file: str) -> MetadataItem | None:
        """Return the first catalog entry backed by ``file``."""

        entries = self.find_entries_for_files([file])
        return entries[0] if entries else None

    def setting_for(self, guid: str) -> MetadataItemSetting:
        """Fetch the watch state for ``guid`` or build an unsaved one."""

        setting = self._session.scalars(
            select(MetadataItemSetting).where(MetadataItemSetting.guid == guid)
        ).first()
        if setting is None:
            setting = MetadataItemSetting(guid=guid)
        return setting

    def apply(self, setting: MetadataItemSetting, attributes: dict[str, Any]) -> bool:
        """Assign ``attributes`` and persist when anything changed.

        ``changed_at`` is drawn from the run sequence only when a write
        happens. Returns whether the row was written.
        """

        for name, value in attributes.items():
            setattr(setting, name, value)
        state = inspect(setting)
        if state.persistent and not self._session.is_modified(setting):
            return False
        setting.changed_at = self._sequence.next()
        self._session.add(setting)
        self._session.commit()
        logger.debug("Saved watch state for %s (changed_at=%s)", setting.guid, setting.changed_at)
        return True

    def add_view(self, **values: Any) -> MetadataItemView:
        view = MetadataItemView(**values)
        self._session.add(view)
        self._session.commit()
        return view

    def clear_watch_history(self) -> None:
        """Remove every watch state and watch event row."""

        self._session.execute(delete(MetadataItemSetting))
        self._session.execute(delete(MetadataItemView))
        self._session.commit()
        logger.info("Cleared metadata_item_settings and metadata_item_views")
