"""Uniform asynchronous command surface over a remote browser session."""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Sequence

from ..config import BridgeConfig
from ..models import ErrorKind, ErrorOutcome
from .base import DriverError, DriverFactory, RemoteDriver
from .errors import TRANSPORT_TIMEOUT, AutomationError, CallContext, classify

LOGGER = logging.getLogger(__name__)

DriverCall = Callable[[RemoteDriver], Awaitable[Any]]


@dataclass
class Session:
    """Handle for the single live remote session owned by a bridge."""

    id: str
    driver: RemoteDriver


def unwrap_optional(value: Any) -> Any:
    """Unwrap ``{"value": x}`` payloads returned by optional queries.

    ``None`` means absent. A missing cookie, a missing attribute and a
    settled ``None`` (bare or as ``{"value": None}``) all come back as
    ``None``; optional queries never return a present ``None``. Values without
    a nested ``value`` field are returned as they are.
    """

    if isinstance(value, dict) and "value" in value:
        value = value["value"]
    return value


class CommandBridge:
    """Issues automation commands against one remote session.

    Every command settles exactly once: it either returns its payload or
    raises :class:`AutomationError` with a classified :class:`ErrorOutcome`.
    Commands are not queued; callers must await one command before issuing
    the next on the same bridge. Overlapping commands are unsupported.
    """

    def __init__(self, factory: DriverFactory, config: Optional[BridgeConfig] = None) -> None:
        self._factory = factory
        self._config = config or BridgeConfig()
        self._session: Optional[Session] = None

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def config(self) -> BridgeConfig:
        return self._config

    # Session lifecycle

    async def open(self, options: Optional[BridgeConfig] = None) -> Session:
        """Open a new remote session and return its handle."""

        if self._session is not None:
            raise AutomationError(
                ErrorOutcome(
                    kind=ErrorKind.INVALID_COMMAND,
                    message=f"Session {self._session.id} is already open",
                    error_type=ErrorKind.INVALID_COMMAND.value,
                )
            )
        options = options or self._config
        context = CallContext(operation="open", navigation=True)
        driver = await self._settle(
            lambda: self._factory.connect(options), context, self._timeout(0.0)
        )
        self._session = Session(id=uuid.uuid4().hex, driver=driver)
        LOGGER.info("Opened remote session %s", self._session.id)
        return self._session

    async def close(self) -> None:
        await self._release("close", lambda d: d.close())

    async def end(self) -> None:
        await self._release("end", lambda d: d.end())

    async def debug(self) -> None:
        await self._void("debug", lambda d: d.debug())

    # Navigation

    async def url(self, address: str) -> None:
        await self._void("url", lambda d: d.url(address), navigation=True)

    async def back(self) -> None:
        await self._void("back", lambda d: d.back())

    async def forward(self) -> None:
        await self._void("forward", lambda d: d.forward())

    async def get_url(self) -> str:
        return await self._value("get_url", lambda d: d.get_url())

    # Element interaction

    async def click(self, selector: str) -> None:
        await self._void("click", lambda d: d.click(selector), selector=selector)

    async def trigger_click(self, selector: str) -> None:
        await self._void("trigger_click", lambda d: d.trigger_click(selector), selector=selector)

    async def move_to_object_with_offset(
        self,
        selector: str,
        x_offset: Optional[int] = None,
        y_offset: Optional[int] = None,
    ) -> None:
        await self._void(
            "move_to_object_with_offset",
            lambda d: d.move_to_object(selector, x_offset, y_offset),
            selector=selector,
        )

    async def set_value(self, selector: str, value: str) -> None:
        await self._void("set_value", lambda d: d.set_value(selector, value), selector=selector)

    async def add_value(self, selector: str, value: str) -> None:
        await self._void("add_value", lambda d: d.add_value(selector, value), selector=selector)

    async def clear_value(self, selector: str) -> None:
        await self._void("clear_value", lambda d: d.clear_value(selector), selector=selector)

    async def submit_form(self, selector: str) -> None:
        await self._void("submit_form", lambda d: d.submit_form(selector), selector=selector)

    # Selection helpers

    async def select_by_index(self, selector: str, index: int) -> None:
        await self._void(
            "select_by_index", lambda d: d.select_by_index(selector, index), selector=selector
        )

    async def select_by_value(self, selector: str, value: str) -> None:
        await self._void(
            "select_by_value", lambda d: d.select_by_value(selector, value), selector=selector
        )

    async def select_by_text(self, selector: str, text: str) -> None:
        await self._void(
            "select_by_text", lambda d: d.select_by_text(selector, text), selector=selector
        )

    async def select_by_attribute(self, selector: str, attribute: str, value: str) -> None:
        await self._void(
            "select_by_attribute",
            lambda d: d.select_by_attribute(selector, attribute, value),
            selector=selector,
        )

    # Wait-for family

    async def wait_for_exist(self, selector: str, ms: int, reverse: bool = False) -> None:
        await self._wait(
            "wait_for_exist", lambda d: d.wait_for_exist(selector, ms, reverse), selector, ms
        )

    async def wait_for_visible(self, selector: str, ms: int, reverse: bool = False) -> None:
        await self._wait(
            "wait_for_visible", lambda d: d.wait_for_visible(selector, ms, reverse), selector, ms
        )

    async def wait_for_text(self, selector: str, ms: int, reverse: bool = False) -> None:
        await self._wait(
            "wait_for_text", lambda d: d.wait_for_text(selector, ms, reverse), selector, ms
        )

    async def wait_for_selected(self, selector: str, ms: int, reverse: bool = False) -> None:
        await self._wait(
            "wait_for_selected", lambda d: d.wait_for_selected(selector, ms, reverse), selector, ms
        )

    async def wait_for_value(self, selector: str, ms: int, reverse: bool = False) -> None:
        await self._wait(
            "wait_for_value", lambda d: d.wait_for_value(selector, ms, reverse), selector, ms
        )

    async def wait_for_enabled(self, selector: str, ms: int, reverse: bool = False) -> None:
        await self._wait(
            "wait_for_enabled", lambda d: d.wait_for_enabled(selector, ms, reverse), selector, ms
        )

    async def pause(self, ms: int) -> None:
        await self._void("pause", lambda d: d.pause(ms), extra_timeout=ms / 1000)

    # Scrolling

    async def scroll_to_element(self, selector: str, x_offset: int = 0, y_offset: int = 0) -> None:
        await self._void(
            "scroll_to_element",
            lambda d: d.scroll_to_element(selector, x_offset, y_offset),
            selector=selector,
        )

    async def scroll_window(self, x: int, y: int) -> None:
        await self._void("scroll_window", lambda d: d.scroll_window(x, y))

    # Screenshots

    async def viewport_screenshot(self) -> bytes:
        return await self._value("viewport_screenshot", lambda d: d.viewport_screenshot())

    async def page_screenshot(self) -> bytes:
        return await self._value("page_screenshot", lambda d: d.page_screenshot())

    async def save_page_screenshot(self, path: str) -> None:
        await self._void("save_page_screenshot", lambda d: d.save_page_screenshot(path))

    async def frame(self, index: Optional[int]) -> None:
        await self._void("frame", lambda d: d.frame(index))

    # Cookies

    async def get_cookie(self, name: str) -> Optional[Any]:
        return await self._optional("get_cookie", lambda d: d.get_cookie(name))

    async def set_cookie(self, name: str, value: str) -> None:
        await self._void("set_cookie", lambda d: d.set_cookie(name, value))

    async def delete_cookie(self, name: str) -> None:
        await self._void("delete_cookie", lambda d: d.delete_cookie(name))

    # Getters

    async def get_attribute(self, selector: str, name: str) -> Optional[Any]:
        return await self._optional(
            "get_attribute", lambda d: d.get_attribute(selector, name), selector=selector
        )

    async def get_css_property(self, selector: str, name: str) -> Optional[Any]:
        return await self._optional(
            "get_css_property", lambda d: d.get_css_property(selector, name), selector=selector
        )

    async def get_html(self, selector: str) -> str:
        return await self._value("get_html", lambda d: d.get_html(selector), selector=selector)

    async def get_source(self) -> str:
        return await self._value("get_source", lambda d: d.get_source())

    async def get_title(self) -> str:
        return await self._value("get_title", lambda d: d.get_title())

    async def get_text(self, selector: str) -> str:
        return await self._value("get_text", lambda d: d.get_text(selector), selector=selector)

    async def get_value(self, selector: str) -> str:
        return await self._value("get_value", lambda d: d.get_value(selector), selector=selector)

    async def get_element_size(self, selector: str) -> dict[str, float]:
        return await self._value(
            "get_element_size", lambda d: d.get_element_size(selector), selector=selector
        )

    async def get_location(self, selector: str) -> dict[str, float]:
        return await self._value(
            "get_location", lambda d: d.get_location(selector), selector=selector
        )

    async def get_location_in_view(self, selector: str) -> dict[str, float]:
        return await self._value(
            "get_location_in_view", lambda d: d.get_location_in_view(selector), selector=selector
        )

    async def count_elements(self, selector: str) -> int:
        return await self._value(
            "count_elements", lambda d: d.count_elements(selector), selector=selector
        )

    # Predicates

    async def is_existing(self, selector: str) -> bool:
        return await self._value(
            "is_existing", lambda d: d.is_existing(selector), selector=selector
        )

    async def is_enabled(self, selector: str) -> bool:
        return await self._value("is_enabled", lambda d: d.is_enabled(selector), selector=selector)

    async def is_visible(self, selector: str) -> bool:
        return await self._value("is_visible", lambda d: d.is_visible(selector), selector=selector)

    async def is_visible_within_viewport(self, selector: str) -> bool:
        return await self._value(
            "is_visible_within_viewport",
            lambda d: d.is_visible_within_viewport(selector),
            selector=selector,
        )

    async def is_selected(self, selector: str) -> bool:
        return await self._value(
            "is_selected", lambda d: d.is_selected(selector), selector=selector
        )

    # Miscellaneous

    async def execute_script(self, script: str) -> None:
        await self._void("execute_script", lambda d: d.execute_script(script))

    async def choose_file(self, selector: str, local_path: str) -> None:
        await self._void(
            "choose_file", lambda d: d.choose_file(selector, local_path), selector=selector
        )

    async def button_up(self, button: int = 0) -> None:
        await self._void("button_up", lambda d: d.button_up(button))

    async def button_down(self, button: int = 0) -> None:
        await self._void("button_down", lambda d: d.button_down(button))

    async def window_resize(self, width: int, height: int) -> None:
        await self._void("window_resize", lambda d: d.window_resize(width, height))

    async def keys(self, keys: Sequence[str]) -> None:
        await self._void("keys", lambda d: d.keys(list(keys)))

    async def custom_command(self, name: str, *args: Any) -> Any:
        """Invoke a driver method that is not part of the fixed command set."""

        context = CallContext(operation=name)
        driver = self._require_session(context)
        method = getattr(driver, name, None) if not name.startswith("_") else None
        if not callable(method):
            raise AutomationError(
                classify(
                    ErrorKind.INVALID_COMMAND.value,
                    f"Unknown custom command: < {name} >",
                    context,
                )
            )
        return await self._settle(lambda: method(*args), context, self._timeout(0.0))

    # Settlement adapters

    async def _void(
        self,
        operation: str,
        call: DriverCall,
        *,
        selector: Optional[str] = None,
        navigation: bool = False,
        extra_timeout: float = 0.0,
    ) -> None:
        await self._run(operation, call, selector, navigation, extra_timeout)

    async def _value(
        self,
        operation: str,
        call: DriverCall,
        *,
        selector: Optional[str] = None,
    ) -> Any:
        return await self._run(operation, call, selector, False, 0.0)

    async def _optional(
        self,
        operation: str,
        call: DriverCall,
        *,
        selector: Optional[str] = None,
    ) -> Optional[Any]:
        return unwrap_optional(await self._run(operation, call, selector, False, 0.0))

    async def _wait(self, operation: str, call: DriverCall, selector: str, ms: int) -> None:
        await self._run(operation, call, selector, False, ms / 1000)

    async def _release(self, operation: str, call: DriverCall) -> None:
        context = CallContext(operation=operation)
        driver = self._require_session(context)
        session_id = self._session.id if self._session else ""
        try:
            await self._settle(lambda: call(driver), context, self._timeout(0.0))
        finally:
            self._session = None
            LOGGER.info("Released remote session %s", session_id)

    async def _run(
        self,
        operation: str,
        call: DriverCall,
        selector: Optional[str],
        navigation: bool,
        extra_timeout: float,
    ) -> Any:
        context = CallContext(operation=operation, selector=selector, navigation=navigation)
        driver = self._require_session(context)
        LOGGER.debug("Executing %s (selector=%s)", operation, selector)
        return await self._settle(lambda: call(driver), context, self._timeout(extra_timeout))

    def _require_session(self, context: CallContext) -> RemoteDriver:
        if self._session is None:
            raise AutomationError(
                classify(
                    ErrorKind.SESSION_CLOSED.value,
                    f"Cannot run {context.operation}: no open session",
                    context,
                )
            )
        return self._session.driver

    def _timeout(self, extra: float) -> Optional[float]:
        if self._config.command_timeout is None:
            return None
        return self._config.command_timeout + extra

    async def _settle(
        self,
        start: Callable[[], Awaitable[Any]],
        context: CallContext,
        timeout: Optional[float],
    ) -> Any:
        raised: list[BaseException] = []

        async def call() -> Any:
            try:
                return await start()
            except BaseException as exc:
                raised.append(exc)
                raise

        try:
            if timeout is None:
                return await call()
            return await asyncio.wait_for(call(), timeout)
        except DriverError as exc:
            outcome = classify(exc.error_type, exc.message, context, exc.screenshot)
            raise self._fail(outcome) from exc
        except asyncio.TimeoutError as exc:
            # ``asyncio.TimeoutError`` is the builtin on 3.11+; a driver's own
            # timeout is an ordinary failure, not an expired transport call.
            if timeout is None or any(exc is own for own in raised):
                outcome = classify(type(exc).__name__, str(exc), context)
                raise self._fail(outcome) from exc
            outcome = classify(
                TRANSPORT_TIMEOUT,
                f"{context.operation} did not settle within {timeout} seconds",
                context,
            )
            raise self._fail(outcome) from exc
        except Exception as exc:
            outcome = classify(type(exc).__name__, str(exc), context)
            raise self._fail(outcome) from exc

    @staticmethod
    def _fail(outcome: ErrorOutcome) -> AutomationError:
        LOGGER.debug("Command failed with %s: %s", outcome.kind.value, outcome.message)
        return AutomationError(outcome)
