"""Merging Kodi play statistics into Plex watch state and history."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from ..assertions import ensure
from ..db_models import MetadataItem, MetadataItemSetting
from ..models import KodiDataType, MediaType, SourceVideoRecord
from .store import CatalogStore

logger = logging.getLogger(__name__)


class ViewCountMode(Enum):
    """How a record's play count folds into an existing view count."""

    SUM = "sum"
    FLAG = "flag"


def merge_view_count(mode: ViewCountMode, play_count: int, existing: int | None) -> int:
    if mode is ViewCountMode.SUM:
        return play_count + (existing or 0)
    return 1 if play_count > 0 or (existing or 0) > 0 else 0


def merge_attributes(
    setting: MetadataItemSetting,
    played: datetime,
    play_count: int,
    mode: ViewCountMode,
    account_id: int,
) -> dict[str, Any]:
    """Return the merged watch-state attributes for one catalog level.

    The oldest play sets ``created_at``, the newest ``last_viewed_at`` and
    ``updated_at``.
    """

    return {
        "account_id": account_id,
        "last_viewed_at": _latest(played, setting.last_viewed_at),
        "created_at": _earliest(played, setting.created_at),
        "updated_at": _latest(played, setting.updated_at),
        "view_count": merge_view_count(mode, play_count, setting.view_count),
    }


def _latest(value: datetime, existing: datetime | None) -> datetime:
    return value if existing is None else max(value, existing)


def _earliest(value: datetime, existing: datetime | None) -> datetime:
    return value if existing is None else min(value, existing)


@dataclass(frozen=True, slots=True)
class MergeResult:
    """Which rows a merge wrote."""

    entry_written: bool = False
    parent_written: bool = False
    grandparent_written: bool = False
    views_created: int = 0


class WatchStateMerger:
    """Writes merged watch state for an entry, its parent and grandparent."""

    def __init__(self, store: CatalogStore, account_id: int, device_id: int):
        self._store = store
        self._account_id = account_id
        self._device_id = device_id

    def merge(
        self,
        entry: MetadataItem,
        record: SourceVideoRecord,
        kodi_data_type: KodiDataType,
        media_type: MediaType,
    ) -> MergeResult:
        """Fold ``record`` into the watch state of ``entry`` and its ancestors."""

        # Never watched: nothing worth recording.
        played = record.last_played
        if played is None:
            return MergeResult()

        entry_written = self.merge_entry(entry, record, played)

        parent = entry.parent
        grandparent = parent.parent if parent is not None else None
        if media_type == "movie" and kodi_data_type == "live_action":
            ensure(
                parent is None and grandparent is None,
                "Live action movies are expected to have no parent, "
                f"but {record.filenameandpath} does",
            )
        else:
            ensure(
                parent is not None and grandparent is not None,
                "TV episodes and anime must have a parent and grandparent, "
                f"but {record.filenameandpath} does not",
            )

        parent_written = (
            self.merge_level(parent, record, played, ViewCountMode.FLAG) if parent else False
        )
        grandparent_written = (
            self.merge_level(grandparent, record, played, ViewCountMode.FLAG)
            if grandparent
            else False
        )
        views = self.add_views(entry, parent, grandparent, record)
        return MergeResult(entry_written, parent_written, grandparent_written, views)

    def merge_entry(
        self, entry: MetadataItem, record: SourceVideoRecord, played: datetime
    ) -> bool:
        setting = self._store.setting_for(entry.guid)
        previous_last_viewed = setting.last_viewed_at
        attributes = merge_attributes(
            setting, played, record.play_count, ViewCountMode.SUM, self._account_id
        )
        if attributes["last_viewed_at"] != previous_last_viewed:
            # Plex stores offsets in milliseconds, Kodi in seconds.
            attributes["view_offset"] = record.position * 1000 if record.position else None
        return self._store.apply(setting, attributes)

    def merge_level(
        self,
        item: MetadataItem,
        record: SourceVideoRecord,
        played: datetime,
        mode: ViewCountMode,
    ) -> bool:
        setting = self._store.setting_for(item.guid)
        attributes = merge_attributes(
            setting, played, record.play_count, mode, self._account_id
        )
        return self._store.apply(setting, attributes)

    def add_views(
        self,
        entry: MetadataItem,
        parent: MetadataItem | None,
        grandparent: MetadataItem | None,
        record: SourceVideoRecord,
    ) -> int:
        """Append one history row per play."""

        for _ in range(record.play_count):
            self._store.add_view(
                account_id=self._account_id,
                guid=entry.guid,
                metadata_type=entry.metadata_type,
                library_section_id=entry.library_section_id,
                grandparent_title=grandparent.title if grandparent else "",
                parent_index=parent.index if parent and parent.index is not None else -1,
                parent_title=parent.title if parent else "",
                index=entry.index,
                title=entry.title,
                thumb_url=entry.user_thumb_url,
                viewed_at=record.last_played,
                grandparent_guid=grandparent.guid if grandparent else "",
                originally_available_at=entry.originally_available_at,
                device_id=self._device_id,
            )
        if record.play_count:
            logger.debug("Added %d view(s) for %s", record.play_count, entry.guid)
        return record.play_count
