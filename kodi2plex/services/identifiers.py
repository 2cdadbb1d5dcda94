"""Extraction of external ids from Kodi nodes and Plex guids."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Literal, Sequence, cast

from lxml import etree

from ..assertions import AssertionFailedError
from ..config import ExclusionRules
from ..models import MediaType

logger = logging.getLogger(__name__)

IMDB_ID_RE = re.compile(r"tt\d{7}")
ANIDB_ID_RE = re.compile(r"\d+")

IMDB_GUID_RE = re.compile(r"com\.plexapp\.agents\.imdb://(?P<imdb>.*)\?lang=en")
TVDB_GUID_RE = re.compile(
    r"com\.plexapp\.agents\.thetvdb://(?P<tvdb>\d*)/(?P<season>.*)/(?P<episode>.*)\?lang=en"
)
ANIDB_GUID_RE = re.compile(
    r"com\.plexapp\.agents\.hama://anidb-(?P<anidb>\d*)(?:/(?P<season>.*)/(?P<episode>.*))?\?lang=en"
)

Status = Literal["found", "skip", "fail"]


@dataclass(frozen=True, slots=True)
class Extraction:
    """Tagged result of one extraction strategy."""

    status: Status
    value: str | None = None
    message: str = ""
    check: str = ""

    @classmethod
    def found(cls, value: str | None) -> "Extraction":
        return cls("found", value)

    @classmethod
    def skip(cls) -> "Extraction":
        return cls("skip")

    @classmethod
    def fail(cls, check: str, message: str) -> "Extraction":
        return cls("fail", message=message, check=check)


Strategy = Callable[[etree._Element, ExclusionRules], Extraction]


def node_texts(node: etree._Element, path: str) -> list[str]:
    """Return the non-empty text values of the elements matching ``path``."""

    values: list[str] = []
    for element in node.xpath(path):
        text = (element.text or "").strip()
        if text:
            values.append(text)
    return values


def node_title(node: etree._Element) -> str:
    return node.findtext("title") or ""


def run_chain(
    node: etree._Element,
    rules: ExclusionRules,
    strategies: Sequence[Strategy],
) -> str | None:
    """Evaluate ``strategies`` in order; the first ``found`` wins.

    A ``fail`` outcome stops the chain and raises. Exhausting the chain is a
    failure as well.
    """

    for strategy in strategies:
        outcome = strategy(node, rules)
        if outcome.status == "found":
            return outcome.value
        if outcome.status == "fail":
            raise AssertionFailedError(
                outcome.message, f"{__name__}.{outcome.check}"
            )
    raise AssertionFailedError(
        f"no identifier strategy matched for {node_title(node)}",
        f"{__name__}.run_chain",
    )


def typed_imdb_id(node: etree._Element, rules: ExclusionRules) -> Extraction:
    values = node_texts(node, './uniqueid[@type="imdb"]')
    if len(values) == 1:
        return Extraction.found(values[0])
    return Extraction.skip()


def mapped_tmdb_id(node: etree._Element, rules: ExclusionRules) -> Extraction:
    values = node_texts(node, './uniqueid[@type="tmdb"]')
    if len(values) != 1:
        return Extraction.skip()
    tmdb_id = values[0]
    imdb_id = rules.tmdb_to_imdb.get(tmdb_id)
    if not imdb_id:
        return Extraction.fail(
            "mapped_tmdb_id",
            f"tmdb id {tmdb_id} for {node_title(node)} has no imdb mapping",
        )
    return Extraction.found(imdb_id)


def generic_imdb_id(node: etree._Element, rules: ExclusionRules) -> Extraction:
    """Fall back to the untyped ``id`` element.

    A value that does not look like an IMDB id yields ``None`` instead of a
    failure so unresolved legacy entries can still be imported.
    """

    values = node_texts(node, "./id")
    if len(values) > 1:
        return Extraction.fail(
            "generic_imdb_id", f"found duplicate id node {''.join(values)}"
        )
    if not values:
        return Extraction.fail(
            "generic_imdb_id", f"missing id node for {node_title(node)}"
        )
    candidate = values[0]
    if IMDB_ID_RE.search(candidate):
        return Extraction.found(candidate)
    logger.debug("Id %s for %s is not an imdb id", candidate, node_title(node))
    return Extraction.found(None)


def generic_anidb_id(node: etree._Element, rules: ExclusionRules) -> Extraction:
    values = node_texts(node, "./id")
    if len(values) > 1:
        return Extraction.fail(
            "generic_anidb_id", f"found duplicate id node {''.join(values)}"
        )
    if not values:
        return Extraction.fail(
            "generic_anidb_id", f"missing id node for {node_title(node)}"
        )
    candidate = values[0]
    if not ANIDB_ID_RE.search(candidate):
        return Extraction.fail(
            "generic_anidb_id",
            f"invalid anidb id {candidate} for {node_title(node)}",
        )
    return Extraction.found(candidate)


IMDB_STRATEGIES: tuple[Strategy, ...] = (typed_imdb_id, mapped_tmdb_id, generic_imdb_id)
ANIDB_STRATEGIES: tuple[Strategy, ...] = (generic_anidb_id,)


def extract_imdb_id(node: etree._Element, rules: ExclusionRules) -> str | None:
    """Return the IMDB id of a live action movie node (possibly ``None``)."""

    return run_chain(node, rules, IMDB_STRATEGIES)


def extract_anidb_id(node: etree._Element, rules: ExclusionRules) -> str:
    """Return the AniDB id of an anime movie or show node."""

    return cast(str, run_chain(node, rules, ANIDB_STRATEGIES))


def extract_tvdb_id(node: etree._Element) -> str:
    """Return the default unique id of a live action show node."""

    return "".join(node.xpath("uniqueid[@default]/text()"))


def corrected_anidb_id(
    rules: ExclusionRules,
    media_type: MediaType,
    *,
    anidb: str | None,
    title: str,
    filenameandpath: str,
) -> str | None:
    """Apply ``anidb_corrections`` keyed by path for movies and by title for shows."""

    key = filenameandpath if media_type == "movie" else title
    corrected = rules.anidb_corrections.get(key, anidb)
    if corrected != anidb:
        logger.debug("Corrected anidb id for %s from %s to %s", key, anidb, corrected)
    return corrected


def parse_guid(guid: str | None, pattern: re.Pattern[str]) -> dict[str, str | None] | None:
    """Return the named groups of ``pattern`` found in ``guid``."""

    if not guid:
        return None
    match = pattern.search(guid)
    if match is None:
        return None
    return match.groupdict()


def guid_imdb_id(guid: str | None) -> str | None:
    parts = parse_guid(guid, IMDB_GUID_RE)
    return parts["imdb"] if parts else None


def guid_anidb_id(guid: str | None) -> str | None:
    parts = parse_guid(guid, ANIDB_GUID_RE)
    return parts["anidb"] if parts else None
