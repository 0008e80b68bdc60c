"""Final verdict of a run."""

from __future__ import annotations

import logging

from rich.console import Console

from ..models import ExitSummary

LOGGER = logging.getLogger(__name__)


class VerdictAlreadyGiven(RuntimeError):
    """Raised when a second aggregate outcome reaches the arbiter."""


class ExitArbiter:
    """Prints the aggregate banner and decides whether the run succeeded."""

    def __init__(self, console: Console) -> None:
        self._console = console
        self._verdict: bool | None = None

    @property
    def verdict(self) -> bool | None:
        return self._verdict

    def decide(self, outcome: ExitSummary) -> bool:
        if self._verdict is not None:
            raise VerdictAlreadyGiven("The run outcome has already been reported")
        style = "white on green" if outcome.failed == 0 else "white on red"
        self._console.print(outcome.output, style=style, markup=False, highlight=False)
        self._verdict = outcome.failed == 0
        LOGGER.info("Run finished with %s failure(s)", outcome.failed)
        return self._verdict
