"""Event channel shared between a test program and the reporting pipeline."""

from __future__ import annotations

import asyncio
from typing import Any, AsyncIterator, Mapping, Optional, Protocol

from ..config import BridgeConfig
from ..models import ChannelEvent

_CLOSED = object()


class EventChannel:
    """Ordered, single-consumer stream of lifecycle events.

    Test programs call :meth:`publish`; the reporting pipeline iterates the
    channel. Events published after :meth:`close` are dropped.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, name: str, value: Any = None) -> None:
        if self._closed:
            return
        self._queue.put_nowait(ChannelEvent(name=name, value=value))

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> AsyncIterator[ChannelEvent]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[ChannelEvent]:
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item


class SuiteProgram(Protocol):
    """A loaded test program exposing one or more event channels."""

    channels: Mapping[str, EventChannel]

    async def run(self) -> None:
        """Execute the suites, publishing lifecycle events on the channels."""


class EntryPoint(Protocol):
    """Builds the test program; ``bridge`` carries the configured browser settings."""

    def __call__(
        self, filter: Optional[str] = None, bridge: Optional[BridgeConfig] = None
    ) -> SuiteProgram: ...
