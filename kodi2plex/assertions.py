"""Validation helpers that either fail fast or collect failures for later."""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import NoReturn

logger = logging.getLogger(__name__)


class AssertionFailedError(AssertionError):
    """Raised when an import invariant does not hold.

    ``site`` identifies the check that failed (``module.function:line``) so
    collected failures can be grouped by origin.
    """

    def __init__(self, message: str, site: str = "unknown"):
        super().__init__(message)
        self.message = message
        self.site = site

    def __reduce__(self):
        return (type(self), (self.message, self.site))


def _caller_site(depth: int) -> str:
    frame = inspect.currentframe()
    try:
        for _ in range(depth + 1):
            if frame is None:
                return "unknown"
            frame = frame.f_back
        if frame is None:
            return "unknown"
        module = frame.f_globals.get("__name__", "?")
        return f"{module}.{frame.f_code.co_name}:{frame.f_lineno}"
    finally:
        del frame


def ensure(condition: object, message: str) -> None:
    """Raise :class:`AssertionFailedError` unless ``condition`` is truthy."""

    if not condition:
        raise AssertionFailedError(message, _caller_site(1))


def fail(message: str) -> NoReturn:
    """Raise :class:`AssertionFailedError` unconditionally."""

    raise AssertionFailedError(message, _caller_site(1))


def group_by_site(
    failures: list[AssertionFailedError],
) -> dict[str, list[AssertionFailedError]]:
    """Group failures by the check that raised them, in first-seen order."""

    groups: dict[str, list[AssertionFailedError]] = {}
    for failure in failures:
        groups.setdefault(failure.site, []).append(failure)
    return groups


@dataclass(slots=True)
class NodeResult:
    """Outcome of importing one Kodi node (a movie or a show's episodes)."""

    label: str
    failures: list[AssertionFailedError] = field(default_factory=list)
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return not self.failures


class Assertions:
    """Run-scoped failure collector.

    In strict mode :meth:`capture` re-raises the first failure; with
    ``suppress`` enabled the failure is recorded and the caller carries on.
    """

    def __init__(self, suppress: bool):
        self.suppress = suppress
        self.failures: list[AssertionFailedError] = []

    def capture(self, result: NodeResult, error: AssertionFailedError) -> None:
        if not self.suppress:
            raise error
        logger.warning("Assertion failed while importing %s: %s", result.label, error)
        result.failures.append(error)
        self.failures.append(error)

    def reset(self) -> None:
        self.failures.clear()

    def grouped(self) -> dict[str, list[AssertionFailedError]]:
        return group_by_site(self.failures)


@dataclass(slots=True)
class RunReport:
    """Summary of an import run."""

    results: list[NodeResult] = field(default_factory=list)
    failures: list[AssertionFailedError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def imported(self) -> int:
        return sum(1 for result in self.results if result.ok and not result.skipped)

    @property
    def skipped(self) -> int:
        return sum(1 for result in self.results if result.skipped)

    def grouped(self) -> dict[str, list[AssertionFailedError]]:
        return group_by_site(self.failures)

    def format(self) -> str:
        """Render grouped failures for console output."""

        lines: list[str] = []
        for site, failures in self.grouped().items():
            lines.append(f"{site} ({len(failures)})")
            lines.extend(f"  - {failure.message}" for failure in failures)
        return "\n".join(lines)
