"""Reading movie and show records out of a Kodi library XML export."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from lxml import etree

from ..config import ExclusionRules
from ..models import SourceShowRecord, SourceVideoRecord
from ..utils import parse_int, parse_kodi_datetime
from .identifiers import (
    corrected_anidb_id,
    extract_anidb_id,
    extract_imdb_id,
    extract_tvdb_id,
)
from .paths import split_filenameandpath

logger = logging.getLogger(__name__)


def load_export(path: Path | str) -> etree._Element:
    """Parse a Kodi ``videodb.xml`` export."""

    logger.info("Loading Kodi export %s", path)
    return parse_export(Path(path).read_bytes())


def parse_export(content: str | bytes) -> etree._Element:
    """Parse export content already held in memory."""

    if isinstance(content, str):
        content = content.encode("utf-8")
    return etree.fromstring(content)


class KodiExportReader:
    """Builds source records from Kodi library nodes."""

    def __init__(self, rules: ExclusionRules):
        self._rules = rules

    def base_video_info(self, node: etree._Element) -> dict[str, Any]:
        filenameandpath = "".join(node.xpath("./filenameandpath/text()"))
        play_count = self._rules.play_count_overrides.get(
            filenameandpath,
            parse_int("".join(node.xpath("./playcount/text()"))),
        )
        return {
            "filenameandpath": filenameandpath,
            "filenameandpath_split": split_filenameandpath(filenameandpath),
            "extension": os.path.splitext(filenameandpath)[1],
            "last_played": parse_kodi_datetime("".join(node.xpath("lastplayed/text()"))),
            "play_count": play_count,
            "title": node.findtext("title") or "",
        }

    @staticmethod
    def position(node: etree._Element) -> int:
        return parse_int("".join(node.xpath("./resume/position/text()")))

    def movie_record(self, node: etree._Element) -> SourceVideoRecord:
        return SourceVideoRecord(
            imdb=extract_imdb_id(node, self._rules),
            position=self.position(node),
            **self.base_video_info(node),
        )

    def anime_movie_record(self, node: etree._Element) -> SourceVideoRecord:
        info = self.base_video_info(node)
        anidb = corrected_anidb_id(
            self._rules,
            "movie",
            anidb=extract_anidb_id(node, self._rules),
            title=info["title"],
            filenameandpath=info["filenameandpath"],
        )
        return SourceVideoRecord(anidb=anidb, position=self.position(node), **info)

    def episode_record(
        self, node: etree._Element, **show_ids: str | None
    ) -> SourceVideoRecord:
        return SourceVideoRecord(
            season=parse_int(node.findtext("season")),
            episode=parse_int(node.findtext("episode")),
            position=self.position(node),
            **self.base_video_info(node),
            **show_ids,
        )

    def show_record(self, node: etree._Element) -> SourceShowRecord:
        tvdb = extract_tvdb_id(node)
        info = self.base_video_info(node)
        episodes = tuple(
            self.episode_record(episode, tvdb=tvdb)
            for episode in node.xpath("episodedetails")
        )
        return SourceShowRecord(
            title=info["title"],
            filenameandpath=info["filenameandpath"],
            tvdb=tvdb,
            episodes=episodes,
        )

    def anime_show_record(self, node: etree._Element) -> SourceShowRecord:
        info = self.base_video_info(node)
        anidb = corrected_anidb_id(
            self._rules,
            "tv",
            anidb=extract_anidb_id(node, self._rules),
            title=info["title"],
            filenameandpath=info["filenameandpath"],
        )
        episodes = tuple(
            self.episode_record(episode, anidb=anidb)
            for episode in node.xpath("episodedetails")
        )
        return SourceShowRecord(
            title=info["title"],
            filenameandpath=info["filenameandpath"],
            anidb=anidb,
            episodes=episodes,
        )
