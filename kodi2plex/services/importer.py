"""High level orchestration of a Kodi to Plex watch-history import."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from lxml import etree
from sqlalchemy.orm import Session

from ..assertions import AssertionFailedError, Assertions, NodeResult, RunReport, ensure
from ..config import ExclusionRules, Settings
from ..models import (
    KODI_DATA_TYPES,
    MEDIA_TYPES,
    KodiDataType,
    MediaType,
    SourceShowRecord,
    SourceVideoRecord,
)
from ..sequence import ChangedAtSequence
from .exclusions import ExclusionFilter
from .kodi_export import KodiExportReader
from .matcher import CatalogMatcher, MultiEpisodeLedger
from .merger import MergeResult, WatchStateMerger
from .paths import PathResolver
from .store import CatalogStore

logger = logging.getLogger(__name__)

MOVIE_XPATH = "//movie"
TV_XPATH = "//tvshow"


@dataclass(slots=True)
class ImportContext:
    """Everything a run needs, built once and handed to each component."""

    settings: Settings
    rules: ExclusionRules
    store: CatalogStore
    sequence: ChangedAtSequence
    assertions: Assertions
    ledger: MultiEpisodeLedger = field(default_factory=MultiEpisodeLedger)

    @classmethod
    def create(
        cls, settings: Settings, rules: ExclusionRules, session: Session
    ) -> "ImportContext":
        sequence = ChangedAtSequence(settings.changed_at_seed, settings.changed_at_skip)
        return cls(
            settings=settings,
            rules=rules,
            store=CatalogStore(session, sequence),
            sequence=sequence,
            assertions=Assertions(suppress=settings.suppress_errors_till_end),
        )


@dataclass(frozen=True, slots=True)
class ImportSource:
    """One export document and how to interpret the nodes selected from it."""

    root: etree._Element | etree._ElementTree
    xpath: str
    kodi_data_type: KodiDataType
    media_type: MediaType


class Importer:
    """Matches Kodi records to Plex entries and merges their watch state."""

    def __init__(self, context: ImportContext):
        self.context = context
        settings = context.settings
        self.exclusions = ExclusionFilter(context.rules)
        self.resolver = PathResolver(
            context.rules.filename_substitutions,
            settings.kodi_media_path_match,
            settings.plex_media_path_replace,
        )
        self.matcher = CatalogMatcher(
            context.store, self.resolver, context.rules, context.ledger
        )
        self.merger = WatchStateMerger(
            context.store, settings.account_id, settings.device_id
        )
        self.reader = KodiExportReader(context.rules)

    def import_video(
        self,
        record: SourceVideoRecord,
        kodi_data_type: KodiDataType,
        media_type: MediaType,
    ) -> MergeResult | None:
        """Import one movie or episode; returns ``None`` when it was skipped."""

        ensure(
            media_type in MEDIA_TYPES,
            f"unknown media type {media_type} when importing {record.filenameandpath}",
        )
        ensure(
            kodi_data_type in KODI_DATA_TYPES,
            f"unknown kodi data type {kodi_data_type} when importing {record.filenameandpath}",
        )
        if record.last_played is None:
            ensure(
                record.play_count == 0 and record.position == 0,
                f"{record.filenameandpath} has play stats without last played",
            )

        if self.exclusions.should_skip(record):
            logger.debug("Skipping excluded record %s", record.filenameandpath)
            return None

        entry = self.matcher.match(record, kodi_data_type, media_type)
        return self.merger.merge(entry, record, kodi_data_type, media_type)

    def import_node(
        self,
        node: etree._Element,
        kodi_data_type: KodiDataType,
        media_type: MediaType,
    ) -> NodeResult:
        """Import a movie node, or every episode of a show node.

        Failures are recorded on the returned result when errors are
        suppressed; otherwise they propagate.
        """

        result = NodeResult(label=node.findtext("title") or "<untitled>")
        if media_type == "tv":
            self._import_show(node, kodi_data_type, result)
            return result
        try:
            ensure(
                media_type == "movie",
                f"unknown type of media in kodi library {media_type}",
            )
            if kodi_data_type == "anime":
                record = self.reader.anime_movie_record(node)
            else:
                record = self.reader.movie_record(node)
            if self.import_video(record, kodi_data_type, media_type) is None:
                result.skipped = True
        except AssertionFailedError as exc:
            self.context.assertions.capture(result, exc)
        return result

    def _import_show(
        self,
        node: etree._Element,
        kodi_data_type: KodiDataType,
        result: NodeResult,
    ) -> None:
        if self.exclusions.should_skip_show(node.findtext("title") or ""):
            logger.info("Skipping show %s", result.label)
            result.skipped = True
            return
        try:
            show = self.read_show(node, kodi_data_type)
        except AssertionFailedError as exc:
            self.context.assertions.capture(result, exc)
            return
        # Each episode is its own failure boundary.
        for episode in show.episodes:
            try:
                self.import_video(episode, kodi_data_type, "tv")
            except AssertionFailedError as exc:
                self.context.assertions.capture(result, exc)

    def read_show(
        self, node: etree._Element, kodi_data_type: KodiDataType
    ) -> SourceShowRecord:
        ensure(
            kodi_data_type in KODI_DATA_TYPES,
            f"unknown kodi data type {kodi_data_type}",
        )
        if kodi_data_type == "anime":
            return self.reader.anime_show_record(node)
        return self.reader.show_record(node)

    def import_nodes(self, source: ImportSource) -> list[NodeResult]:
        nodes = source.root.xpath(source.xpath)
        logger.info(
            "Importing %d %s %s node(s)",
            len(nodes),
            source.kodi_data_type,
            source.media_type,
        )
        return [
            self.import_node(node, source.kodi_data_type, source.media_type)
            for node in nodes
        ]

    def clear_tables(self) -> None:
        self.context.store.clear_watch_history()

    def run(self, sources: Iterable[ImportSource]) -> RunReport:
        """Import every source in order and summarise the outcome."""

        self.context.ledger.clear()
        self.context.assertions.reset()
        report = RunReport()
        for source in sources:
            report.results.extend(self.import_nodes(source))
        report.failures.extend(self.context.assertions.failures)
        logger.info(
            "Import finished: %d imported, %d skipped, %d failure(s)",
            report.imported,
            report.skipped,
            len(report.failures),
        )
        return report
