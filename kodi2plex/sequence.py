"""Logical ``changed_at`` stamps for watch-state writes."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class ChangedAtSequence:
    """Strictly increasing counter seeded per run.

    Seeds from different runs are expected not to overlap; nothing here
    guards against collisions.
    """

    seed: int
    skip: int = 1
    _current: int = field(init=False, repr=False, default=0)

    def __post_init__(self) -> None:
        if self.skip < 1:
            raise ValueError("changed_at skip must be a positive integer")
        self._current = self.seed

    def next(self) -> int:
        """Return the current value and advance by the stride."""

        value = self._current
        self._current += self.skip
        return value

    @property
    def current(self) -> int:
        return self._current
