"""Per-suite progress tracking."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Optional

from ..models import StatusEntry

LOGGER = logging.getLogger(__name__)


@dataclass
class SuiteStatus:
    """Mutable progress of one suite.

    ``total`` never changes, ``remaining`` only decreases and ``failed`` only
    ever goes from ``False`` to ``True``.
    """

    name: str
    total: int
    remaining: int
    failed: bool = False
    next_step: str = ""
    finalized: bool = False

    @property
    def completed(self) -> int:
        return self.total - self.remaining


@dataclass(frozen=True)
class SuiteChange:
    """Effect of one status update on a suite."""

    status: SuiteStatus
    ticks: int
    newly_failed: bool


class SuiteRegistry:
    """Holds the progress of every suite announced during a run."""

    def __init__(self) -> None:
        self._suites: dict[str, SuiteStatus] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._suites

    def __iter__(self) -> Iterator[SuiteStatus]:
        return iter(list(self._suites.values()))

    def __len__(self) -> int:
        return len(self._suites)

    def get(self, name: str) -> Optional[SuiteStatus]:
        return self._suites.get(name)

    def register(self, entry: StatusEntry) -> Optional[SuiteStatus]:
        """Create the suite announced by a ``status`` entry."""

        if entry.name in self._suites:
            LOGGER.warning("Suite %s was already announced; ignoring new status", entry.name)
            return None
        status = SuiteStatus(
            name=entry.name,
            total=entry.value.total,
            remaining=entry.value.total,
            next_step=entry.value.next_step,
        )
        self._suites[entry.name] = status
        return status

    def update(self, entry: StatusEntry) -> Optional[SuiteChange]:
        """Apply a ``statusUpdate`` entry; unknown or finalized suites are ignored."""

        status = self._suites.get(entry.name)
        if status is None:
            LOGGER.debug("Ignoring update for unknown suite %s", entry.name)
            return None
        if status.finalized:
            LOGGER.debug("Ignoring update for finalized suite %s", entry.name)
            return None

        remaining = entry.value.remaining
        if remaining < 0:
            LOGGER.warning("Suite %s reported negative remaining steps; clamping", entry.name)
            remaining = 0
        if remaining > status.remaining:
            LOGGER.warning(
                "Suite %s reported %s remaining steps after %s; keeping %s",
                entry.name,
                remaining,
                status.remaining,
                status.remaining,
            )
            remaining = status.remaining

        ticks = status.remaining - remaining
        newly_failed = entry.value.failed and not status.failed
        status.remaining = remaining
        status.failed = status.failed or entry.value.failed
        status.next_step = entry.value.next_step
        return SuiteChange(status=status, ticks=ticks, newly_failed=newly_failed)

    def finalize(self, name: str) -> None:
        status = self._suites.get(name)
        if status is not None:
            status.finalized = True
