"""Terminal renderers for suite progress and summaries."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    ProgressBar,
    Task,
    TaskID,
    TaskProgressColumn,
    TextColumn,
)

from ..models import LogSummary, StatusEntry
from .registry import SuiteChange, SuiteStatus


def summary_style(summary: LogSummary) -> str:
    return "red" if summary.failed > 0 else "green"


class Renderer(ABC):
    """Interface for presenting a run on the terminal."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    @abstractmethod
    def suite_started(self, status: SuiteStatus) -> None:
        """Show a newly announced suite."""

    @abstractmethod
    def suite_updated(self, entry: StatusEntry, change: Optional[SuiteChange]) -> None:
        """Reflect one ``statusUpdate`` entry.

        ``change`` is ``None`` when the registry ignored the entry (unknown or
        finalized suite).
        """

    @abstractmethod
    def print_summary(self, summary: LogSummary) -> None:
        """Print the final summary of one suite."""

    def stop(self) -> None:
        """Tear down any live display before the final report."""


class SuiteBarColumn(BarColumn):
    """Bar column that turns red for suites that have failed."""

    def render(self, task: Task) -> ProgressBar:
        bar = super().render(task)
        if task.fields.get("failed"):
            bar.complete_style = "red"
            bar.finished_style = "red"
        return bar


class VerboseRenderer(Renderer):
    """One live progress bar per suite."""

    def __init__(self, console: Optional[Console] = None) -> None:
        super().__init__(console)
        self.progress = Progress(
            TextColumn("{task.description}", style="magenta", markup=False),
            SuiteBarColumn(complete_style="green", finished_style="green"),
            MofNCompleteColumn(),
            TaskProgressColumn(),
            TextColumn("{task.fields[step]}", markup=False),
            console=self.console,
        )
        self._tasks: dict[str, TaskID] = {}
        self._started = False

    def task_for(self, name: str) -> Optional[Task]:
        task_id = self._tasks.get(name)
        if task_id is None:
            return None
        return next(task for task in self.progress.tasks if task.id == task_id)

    def suite_started(self, status: SuiteStatus) -> None:
        if not self._started:
            self.progress.start()
            self._started = True
        self._tasks[status.name] = self.progress.add_task(
            status.name,
            total=status.total,
            completed=status.completed,
            step=_step_label(status),
            failed=False,
        )

    def suite_updated(self, entry: StatusEntry, change: Optional[SuiteChange]) -> None:
        if change is None:
            return
        task_id = self._tasks.get(change.status.name)
        if task_id is None:
            return
        fields: dict[str, object] = {"step": _step_label(change.status)}
        if change.newly_failed:
            fields["failed"] = True
        self.progress.update(task_id, advance=change.ticks, **fields)

    def print_summary(self, summary: LogSummary) -> None:
        style = summary_style(summary)
        self.console.print("\n")
        self.console.rule(style=style)
        self.console.print(summary.name, style=f"bold {style}", markup=False, highlight=False)
        self.console.rule(style=style)
        self.console.print(summary.output, markup=False, highlight=False)

    def stop(self) -> None:
        if self._started:
            self.progress.stop()
            self._started = False


class CompactRenderer(Renderer):
    """Prints a single ``.`` or ``F`` per ``statusUpdate`` entry.

    The glyph reflects the entry's own ``failed`` flag, whatever the registry
    made of it.
    """

    def suite_started(self, status: SuiteStatus) -> None:
        return None

    def suite_updated(self, entry: StatusEntry, change: Optional[SuiteChange]) -> None:
        failed = entry.value.failed
        symbol = "F" if failed else "."
        style = "red" if failed else "green"
        self.console.print(symbol, style=style, end="", markup=False, highlight=False)

    def print_summary(self, summary: LogSummary) -> None:
        self.console.print("\n")
        self.console.print(
            summary.name,
            style=f"white on {summary_style(summary)}",
            markup=False,
            highlight=False,
        )
        self.console.print(summary.output, markup=False, highlight=False)


def _step_label(status: SuiteStatus) -> str:
    return f"→ {status.next_step}" if status.next_step else ""
