"""Storage for per-suite summaries printed at the end of a run."""

from __future__ import annotations

from typing import List

from ..models import LogSummary


class SummaryStore:
    """Keeps the latest summary of every suite in first-seen order."""

    def __init__(self) -> None:
        self._summaries: dict[str, LogSummary] = {}

    def accumulate(self, summary: LogSummary) -> None:
        # Re-assigning an existing key keeps its original position.
        self._summaries[summary.name] = summary

    def drain_for_report(self) -> List[LogSummary]:
        drained = list(self._summaries.values())
        self._summaries.clear()
        return drained

    def __len__(self) -> int:
        return len(self._summaries)
