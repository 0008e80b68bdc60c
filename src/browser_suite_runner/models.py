"""Shared models used across the browser suite runner."""

from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class EventTag(str, enum.Enum):
    """Lifecycle event tags emitted by a running test program."""

    STATUS = "status"
    STATUS_UPDATE = "statusUpdate"
    LOG = "log"
    SCREENSHOTS = "screenshots"
    EXIT = "exit"


class ChannelEvent(BaseModel):
    """Raw tagged event as received from the event channel."""

    name: str
    value: Any = None


class SuiteProgress(BaseModel):
    """Progress snapshot of a single suite."""

    model_config = ConfigDict(populate_by_name=True)

    total: int = Field(ge=0)
    remaining: int
    failed: bool = False
    next_step: str = Field(default="", alias="nextStep")


class StatusEntry(BaseModel):
    """Named progress snapshot carried by ``status`` and ``statusUpdate`` events."""

    name: str
    value: SuiteProgress


class LogSummary(BaseModel):
    """Final textual summary of one suite."""

    name: str
    output: str = ""
    failed: int = 0


class ScreenshotBatch(BaseModel):
    """Base64 encoded screenshots captured for a suite."""

    name: str
    shots: list[str] = Field(default_factory=list)


class ExitSummary(BaseModel):
    """Aggregate outcome of the whole run."""

    failed: int = 0
    output: str = ""


class ErrorKind(str, enum.Enum):
    """Closed set of failure classifications for automation commands."""

    CONNECTION_ERROR = "ConnectionError"
    MISSING_ELEMENT = "MissingElement"
    FAILED_ELEMENT_PRECONDITION = "FailedElementPrecondition"
    UNREACHABLE_ELEMENT = "UnreachableElement"
    INVALID_COMMAND = "InvalidCommand"
    SESSION_CLOSED = "SessionClosed"
    UNKNOWN_ERROR = "UnknownError"


class ErrorOutcome(BaseModel):
    """Typed description of a failed automation command."""

    kind: ErrorKind
    message: str = ""
    error_type: Optional[str] = None
    selector: Optional[str] = None
    screenshot: Optional[bytes] = Field(default=None, repr=False)
