"""Classification of raw driver failures into automation error outcomes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..models import ErrorKind, ErrorOutcome

# Runtime faults whose message contains one of these markers mean the target
# element exists but could not receive the interaction.
UNREACHABLE_MARKERS = (
    "element is not clickable",
    "element not clickable",
    "element not interactable",
)

TRANSPORT_TIMEOUT = "TransportTimeout"


class AutomationError(RuntimeError):
    """Raised by the command bridge when an automation command fails."""

    def __init__(self, outcome: ErrorOutcome) -> None:
        super().__init__(f"{outcome.kind.value}: {outcome.message}")
        self.outcome = outcome

    @property
    def kind(self) -> ErrorKind:
        return self.outcome.kind


@dataclass(frozen=True)
class CallContext:
    """What the bridge knew about the command when it failed."""

    operation: str
    selector: Optional[str] = None
    navigation: bool = False


def classify(
    error_type: Optional[str],
    message: str,
    context: CallContext,
    screenshot: Optional[bytes] = None,
) -> ErrorOutcome:
    """Map a raw failure to exactly one :class:`ErrorKind`.

    Rules, first match wins:

    * ``InvalidCommand`` and ``SessionClosed`` error types keep their own kind.
    * Any failure while opening a session or navigating is a ``ConnectionError``.
    * ``NoSuchElement`` is a ``MissingElement``.
    * ``WaitUntilTimeoutError`` is a ``FailedElementPrecondition``.
    * A ``RuntimeError`` whose message contains one of
      :data:`UNREACHABLE_MARKERS` (case-insensitive) is an ``UnreachableElement``.
    * Everything else is an ``UnknownError``.

    Element kinds always carry a selector (empty when the call had none).
    Screenshots are only kept for connection and runtime faults.
    """

    selector = context.selector if context.selector is not None else ""

    if error_type == ErrorKind.INVALID_COMMAND.value:
        return ErrorOutcome(kind=ErrorKind.INVALID_COMMAND, message=message, error_type=error_type)
    if error_type == ErrorKind.SESSION_CLOSED.value:
        return ErrorOutcome(kind=ErrorKind.SESSION_CLOSED, message=message, error_type=error_type)
    if context.navigation:
        return ErrorOutcome(
            kind=ErrorKind.CONNECTION_ERROR,
            message=message,
            error_type=error_type,
            screenshot=screenshot,
        )
    if error_type == "NoSuchElement":
        return ErrorOutcome(
            kind=ErrorKind.MISSING_ELEMENT,
            message=message,
            error_type=error_type,
            selector=selector,
        )
    if error_type == "WaitUntilTimeoutError":
        return ErrorOutcome(
            kind=ErrorKind.FAILED_ELEMENT_PRECONDITION,
            message=message,
            error_type=error_type,
            selector=selector,
        )
    if error_type == "RuntimeError":
        lowered = message.lower()
        if any(marker in lowered for marker in UNREACHABLE_MARKERS):
            return ErrorOutcome(
                kind=ErrorKind.UNREACHABLE_ELEMENT,
                message=message,
                error_type=error_type,
                selector=selector,
                screenshot=screenshot,
            )
        return ErrorOutcome(
            kind=ErrorKind.UNKNOWN_ERROR,
            message=message,
            error_type=error_type,
            selector=context.selector,
            screenshot=screenshot,
        )
    return ErrorOutcome(
        kind=ErrorKind.UNKNOWN_ERROR,
        message=message,
        error_type=error_type,
        selector=context.selector,
    )
