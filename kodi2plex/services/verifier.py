"""Spot checks that anime folders were matched to the right AniDB entry."""

from __future__ import annotations

import glob
import logging
import random
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from .identifiers import guid_anidb_id
from .store import CatalogStore

logger = logging.getLogger(__name__)

ACCEPTED_EXTENSIONS = frozenset({".avi", ".mpg", ".mkv", ".ogm", ".mp4", ".flv", ".wmv"})
ANIDB_ID_FILE_RE = re.compile(r"^(\d+)\s*$")


class VerificationError(Exception):
    """A folder whose sampled file does not belong to the expected AniDB id."""


@dataclass(frozen=True, slots=True)
class FolderFailure:
    folder: str
    message: str


class FolderVerifier:
    """Compares each folder's ``anidb.id`` file with the catalog entry of one file."""

    def __init__(
        self,
        store: CatalogStore,
        source_prefix: str,
        target_prefix: str,
        rng: random.Random | None = None,
    ):
        self._store = store
        self._source_prefix = source_prefix
        self._target_prefix = target_prefix
        self._rng = rng

    @staticmethod
    def expand(patterns: Iterable[str]) -> list[str]:
        folders = {path for pattern in patterns for path in glob.glob(pattern)}
        return sorted(folders)

    def sample_file(self, folder: Path) -> str:
        candidates = sorted(
            str(path)
            for path in folder.iterdir()
            if path.is_file() and path.suffix.lower() in ACCEPTED_EXTENSIONS
        )
        if not candidates:
            raise VerificationError(f"could not find a valid candidate for {folder}")
        if self._rng is None:
            return candidates[0]
        return self._rng.choice(candidates)

    def plex_path(self, path: str) -> str:
        if not self._source_prefix:
            return path
        return path.replace(self._source_prefix, self._target_prefix, 1)

    def verify_folder(self, folder: str | Path) -> None:
        folder = Path(folder)
        id_text = (folder / "anidb.id").read_text(encoding="utf-8", errors="replace")
        match = ANIDB_ID_FILE_RE.match(id_text)
        if match is None:
            raise VerificationError(f"did not match for {folder}")
        expected = match.group(1)

        selected = self.plex_path(self.sample_file(folder))
        entry = self._store.entry_for_file(selected)
        actual = guid_anidb_id(entry.guid) if entry is not None else None
        if actual != expected:
            raise VerificationError(
                f"ids dont match for {folder}. metadata id is {actual} and "
                f"anidb.id is {expected}. sample file was {selected}"
            )

    def verify_all(self, patterns: Iterable[str]) -> list[FolderFailure]:
        """Verify every folder matched by ``patterns``, collecting failures."""

        folders = self.expand(patterns)
        logger.info("Verifying %d folder(s)", len(folders))
        failures: list[FolderFailure] = []
        for folder in folders:
            try:
                self.verify_folder(folder)
            except (VerificationError, OSError) as exc:
                logger.warning("Verification failed for %s: %s", folder, exc)
                failures.append(FolderFailure(folder, str(exc)))
        return failures
