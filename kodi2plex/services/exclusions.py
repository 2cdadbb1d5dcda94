"""Skip rules evaluated before any catalog lookups."""

from __future__ import annotations

import re
from functools import cached_property

from ..config import ExclusionRules
from ..models import SourceVideoRecord


class ExclusionFilter:
    """Decides whether a Kodi record is left out of the import."""

    def __init__(self, rules: ExclusionRules):
        self._rules = rules

    @cached_property
    def _filename_patterns(self) -> tuple[re.Pattern[str], ...]:
        # Entries are literal fragments, not regular expressions.
        return tuple(re.compile(re.escape(entry)) for entry in self._rules.filename_regex_to_skip)

    def matches_skip_list(self, record: SourceVideoRecord) -> bool:
        return any(
            all(record.attribute(name) == value for name, value in attributes.items())
            for attributes in self._rules.video_data_to_skip
        )

    def matches_filename(self, record: SourceVideoRecord) -> bool:
        return any(
            pattern.search(record.filenameandpath) for pattern in self._filename_patterns
        )

    def should_skip(self, record: SourceVideoRecord) -> bool:
        """Return ``True`` when the record matches any configured skip rule."""

        return self.matches_skip_list(record) or self.matches_filename(record)

    def should_skip_show(self, title: str) -> bool:
        """Whole shows are skipped by title before their episodes are read."""

        return title in self._rules.tv_shows_to_skip
