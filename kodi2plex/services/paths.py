"""Translation of Kodi file locations into Plex media part paths."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Sequence

FILE_MATCH_RE = re.compile(r"smb://.+?(?=\s,\ssmb://|$)")


def split_filenameandpath(value: str) -> tuple[str, ...]:
    """Split a Kodi ``filenameandpath`` into the physical file locations it names.

    Stacked files are exported as ``smb://a , smb://b``.
    """

    return tuple(FILE_MATCH_RE.findall(value))


@dataclass(frozen=True, slots=True)
class PathResolver:
    """Rewrites Kodi paths into the scheme the Plex library uses."""

    substitutions: Sequence[tuple[str, str]] = ()
    source_prefix: str = ""
    target_prefix: str = ""

    def resolve_one(self, path: str) -> str:
        for pattern, replacement in self.substitutions:
            path = path.replace(pattern, replacement, 1)
        if self.source_prefix:
            path = path.replace(self.source_prefix, self.target_prefix, 1)
        return path

    def resolve(self, paths: Sequence[str]) -> list[str]:
        """Return one Plex path per Kodi path, preserving order."""

        return [self.resolve_one(path) for path in paths]
