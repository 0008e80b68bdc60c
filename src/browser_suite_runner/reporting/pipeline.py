"""Event-driven reporting of a running test program."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, AsyncIterable, Callable, Optional

from pydantic import TypeAdapter, ValidationError

from ..models import (
    ChannelEvent,
    EventTag,
    ExitSummary,
    LogSummary,
    ScreenshotBatch,
    StatusEntry,
)
from .arbiter import ExitArbiter
from .channel import EventChannel, SuiteProgram
from .registry import SuiteRegistry
from .render import Renderer
from .screenshots import ScreenshotWriter
from .summary import SummaryStore

LOGGER = logging.getLogger(__name__)

_STATUS_LIST = TypeAdapter(list[StatusEntry])


class ChannelClosedError(RuntimeError):
    """Raised when the event channel ends without an ``exit`` event."""


@dataclass
class RunContext:
    """All mutable reporting state of a single run."""

    renderer: Renderer
    screenshots: ScreenshotWriter
    registry: SuiteRegistry = field(default_factory=SuiteRegistry)
    summaries: SummaryStore = field(default_factory=SummaryStore)
    arbiter: ExitArbiter = field(init=False)

    def __post_init__(self) -> None:
        self.arbiter = ExitArbiter(self.renderer.console)

    @classmethod
    def create(cls, renderer: Renderer, screenshots_dir: Path) -> "RunContext":
        return cls(renderer=renderer, screenshots=ScreenshotWriter(screenshots_dir))


def on_status(context: RunContext, value: Any) -> None:
    for entry in _STATUS_LIST.validate_python(value):
        status = context.registry.register(entry)
        if status is not None:
            context.renderer.suite_started(status)


def on_status_update(context: RunContext, value: Any) -> None:
    for entry in _STATUS_LIST.validate_python(value):
        change = context.registry.update(entry)
        context.renderer.suite_updated(entry, change)


def on_log(context: RunContext, value: Any) -> None:
    summary = LogSummary.model_validate(value)
    context.summaries.accumulate(summary)
    context.registry.finalize(summary.name)


def on_screenshots(context: RunContext, value: Any) -> None:
    context.screenshots.write(ScreenshotBatch.model_validate(value))


def on_exit(context: RunContext, value: Any) -> bool:
    outcome = ExitSummary.model_validate(value)
    context.renderer.stop()
    for summary in context.summaries.drain_for_report():
        context.renderer.print_summary(summary)
    return context.arbiter.decide(outcome)


HANDLERS: dict[str, Callable[[RunContext, Any], Optional[bool]]] = {
    EventTag.STATUS.value: on_status,
    EventTag.STATUS_UPDATE.value: on_status_update,
    EventTag.LOG.value: on_log,
    EventTag.SCREENSHOTS.value: on_screenshots,
    EventTag.EXIT.value: on_exit,
}


class ReportingPipeline:
    """Consumes lifecycle events in order until the run reports its outcome."""

    def __init__(self, context: RunContext) -> None:
        self._context = context

    @property
    def context(self) -> RunContext:
        return self._context

    def dispatch(self, event: ChannelEvent) -> Optional[bool]:
        """Handle one event; returns the verdict once ``exit`` has been handled."""

        handler = HANDLERS.get(event.name)
        if handler is None:
            LOGGER.debug("Ignoring event with unknown tag %r", event.name)
            return None
        try:
            result = handler(self._context, event.value)
        except ValidationError as exc:
            LOGGER.warning("Skipping malformed %s event: %s", event.name, exc)
            return None
        if event.name == EventTag.EXIT.value:
            return result
        return None

    async def consume(self, events: AsyncIterable[ChannelEvent]) -> bool:
        async for event in events:
            verdict = self.dispatch(event)
            if verdict is not None:
                return verdict
        raise ChannelClosedError("The event channel closed before the run reported its outcome")

    async def run(self, program: SuiteProgram, channel: EventChannel) -> bool:
        """Run ``program`` and report the events it publishes on ``channel``."""

        program_task = asyncio.create_task(program.run())
        program_task.add_done_callback(lambda _: channel.close())
        try:
            verdict = await self.consume(channel)
        except ChannelClosedError:
            self._context.renderer.stop()
            failure = _task_failure(program_task)
            if failure is not None:
                raise ChannelClosedError(f"The test program crashed: {failure}") from failure
            raise
        finally:
            if not program_task.done():
                program_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await program_task
        failure = _task_failure(program_task)
        if failure is not None:
            LOGGER.warning("Test program raised after reporting its outcome: %s", failure)
        return verdict


def _task_failure(task: asyncio.Task[None]) -> Optional[BaseException]:
    if not task.done() or task.cancelled():
        return None
    return task.exception()
