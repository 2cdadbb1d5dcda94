"""Resolution of Kodi records to the single Plex catalog entry they describe."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Mapping

from ..assertions import ensure, fail
from ..config import ExclusionRules
from ..db_models import MetadataItem
from ..models import KodiDataType, MediaType, SourceVideoRecord
from ..utils import parse_int
from .identifiers import (
    ANIDB_GUID_RE,
    TVDB_GUID_RE,
    guid_anidb_id,
    guid_imdb_id,
    parse_guid,
)
from .paths import PathResolver
from .store import CatalogStore

logger = logging.getLogger(__name__)

ANIME_SPECIAL_RE = re.compile(r"- episode (?P<prefix>[SCTPO])(?P<number>\d+)")

# HAMA numbers AniDB specials by type: S(pecial), C(redit), T(railer),
# P(arody) and O(ther).
ANIDB_SPECIAL_OFFSETS: Mapping[str, tuple[int, ...]] = {
    "S": (0,),
    "C": (100, 150),
    "T": (200,),
    "P": (300,),
    "O": (400,),
}


def _ids(entries: list[MetadataItem]) -> str:
    return ",".join(str(entry.id) for entry in entries)


def _parent_index(entry: MetadataItem) -> int | None:
    return entry.parent.index if entry.parent is not None else None


@dataclass(slots=True)
class MultiEpisodeLedger:
    """First sighting of each multi-episode file within a run."""

    seen: dict[str, SourceVideoRecord] = field(default_factory=dict)

    def check(self, record: SourceVideoRecord) -> None:
        previous = self.seen.get(record.filenameandpath)
        if previous is None:
            self.seen[record.filenameandpath] = record
            return
        path = record.filenameandpath
        ensure(
            record.play_count == previous.play_count,
            f"Inconsistent play count for multi-episode file {path}. "
            f"Current record has {record.play_count} but was {previous.play_count}",
        )
        ensure(
            record.position == previous.position,
            f"Inconsistent resume position for multi-episode file {path}. "
            f"Current record has {record.position} but was {previous.position}",
        )
        ensure(
            record.last_played == previous.last_played,
            f"Inconsistent last played for multi-episode file {path}. "
            f"Current record has {record.last_played} but was {previous.last_played}",
        )

    def clear(self) -> None:
        self.seen.clear()


class CatalogMatcher:
    """Finds and cross-checks the Plex entry for a Kodi record."""

    def __init__(
        self,
        store: CatalogStore,
        resolver: PathResolver,
        rules: ExclusionRules,
        ledger: MultiEpisodeLedger,
    ):
        self._store = store
        self._resolver = resolver
        self._rules = rules
        self._ledger = ledger

    def media_files(self, record: SourceVideoRecord) -> list[str]:
        return self._resolver.resolve(record.filenameandpath_split)

    def match(
        self,
        record: SourceVideoRecord,
        kodi_data_type: KodiDataType,
        media_type: MediaType,
    ) -> MetadataItem:
        """Return the unique catalog entry for ``record``."""

        entries = self._store.find_entries_for_files(self.media_files(record))
        logger.debug(
            "Found %d candidate(s) for %s: %s",
            len(entries),
            record.filenameandpath,
            _ids(entries),
        )
        if media_type == "movie" and kodi_data_type == "live_action":
            return self.match_movie(record, entries)
        if media_type == "movie" and kodi_data_type == "anime":
            return self.match_anime_movie(record, entries)
        if media_type == "tv" and kodi_data_type in ("live_action", "anime"):
            return self.match_episode(record, kodi_data_type, entries)
        fail(
            f"unknown media type {media_type} and kodi data type {kodi_data_type} "
            f"combination when matching {record.filenameandpath}",
        )

    def match_movie(
        self, record: SourceVideoRecord, entries: list[MetadataItem]
    ) -> MetadataItem:
        ensure(
            len(entries) == 1,
            f"found {len(entries)} items for {record.filenameandpath}",
        )
        entry = entries[0]
        if entry.title not in self._rules.known_imdb_mismatches:
            imdb_id = guid_imdb_id(entry.guid)
            ensure(
                imdb_id == record.imdb,
                f"Imdb does not match for {entry.title}. Plex has {imdb_id} and "
                f"Kodi has {record.imdb} for {record.filenameandpath}",
            )
        return entry

    def match_anime_movie(
        self, record: SourceVideoRecord, entries: list[MetadataItem]
    ) -> MetadataItem:
        ensure(
            len(entries) == 1,
            f"found {len(entries)} items with ids {_ids(entries)} "
            f"for {record.filenameandpath}",
        )
        entry = entries[0]
        anidb_id = guid_anidb_id(entry.guid)
        ensure(
            anidb_id == record.anidb,
            f"Anidb does not match for {entry.title}. Plex has {anidb_id} and "
            f"Kodi has {record.anidb} for {record.filenameandpath}",
        )
        # Anime features are sometimes catalogued as season 1.
        parent_index = _parent_index(entry)
        ensure(
            parent_index in (0, 1),
            f"movies should only have one season. Found {parent_index} for "
            f"metadata {entry.id} for {record.filenameandpath}",
        )
        return entry

    def check_special(self, record: SourceVideoRecord, entries: list[MetadataItem]) -> bool:
        """Validate an anime special and report whether ``record`` is one."""

        special = ANIME_SPECIAL_RE.search(record.filenameandpath)
        if special is None:
            return False
        ensure(
            len(entries) == 1,
            f"only single episode specials are handled, {record.filenameandpath} "
            f"matched {_ids(entries)}",
        )
        entry = entries[0]
        parent_index = _parent_index(entry)
        ensure(
            parent_index == 0,
            f"specials in plex should be season 0 and not {parent_index} "
            f"for {record.filenameandpath}",
        )
        offsets = ANIDB_SPECIAL_OFFSETS[special["prefix"]]
        number = int(special["number"])
        ensure(
            any(offset + number == entry.index for offset in offsets),
            f"expected index to have offset {list(offsets)} and number {number} "
            f"and not {entry.index} for {record.filenameandpath}",
        )
        return True

    def match_episode(
        self,
        record: SourceVideoRecord,
        kodi_data_type: KodiDataType,
        entries: list[MetadataItem],
    ) -> MetadataItem:
        is_special = kodi_data_type == "anime" and self.check_special(record, entries)
        if is_special:
            candidates = list(entries)
        else:
            candidates = [
                entry
                for entry in entries
                if entry.index == record.episode
                and _parent_index(entry) == record.season
            ]
        if not candidates:
            files = self.media_files(record)
            ensure(
                self._store.count_media_parts(files) == 1,
                f"Could not find media {files} while processing {record.filenameandpath}",
            )
        ensure(
            len(candidates) == 1,
            f"found {len(candidates)} items with ids {_ids(candidates)} for "
            f"{record.filenameandpath} season: {record.season}, episode: {record.episode}",
        )

        if len(entries) > 1:
            self._ledger.check(record)

        entry = candidates[0]
        self.check_episode_guid(record, kodi_data_type, entry)
        return entry

    def check_episode_guid(
        self,
        record: SourceVideoRecord,
        kodi_data_type: KodiDataType,
        entry: MetadataItem,
    ) -> None:
        pattern = TVDB_GUID_RE if kodi_data_type == "live_action" else ANIDB_GUID_RE
        parts = parse_guid(entry.guid, pattern)
        if parts is None:
            fail(
                f"guid {entry.guid} for {record.filenameandpath} does not match the "
                "pattern to extract show id"
            )

        if kodi_data_type == "live_action":
            grandparent = entry.parent.parent if entry.parent is not None else None
            grandparent_title = grandparent.title if grandparent is not None else None
            if grandparent_title not in self._rules.known_tvdb_mismatches:
                ensure(
                    record.tvdb == parts["tvdb"],
                    f"TVDB ID for {record.filenameandpath} is {record.tvdb} in kodi "
                    f"and {parts['tvdb']} in plex",
                )
        else:
            ensure(
                record.anidb == parts["anidb"],
                f"AniDB ID for {record.filenameandpath} is {record.anidb} in kodi "
                f"and {parts['anidb']} in plex",
            )

        # Anime specials are not tagged reliably in Kodi.
        if kodi_data_type == "anime" and parts["season"] == "0":
            return
        ensure(
            record.season == parse_int(parts["season"]),
            f"GUID Mismatch: Season for {record.filenameandpath} is {record.season} "
            f"in kodi and {parts['season']} in plex. {entry.guid}",
        )
        ensure(
            record.episode == parse_int(parts["episode"]),
            f"GUID Mismatch: Episode for {record.filenameandpath} is {record.episode} "
            f"in kodi and {parts['episode']} in plex. {entry.guid}",
        )

