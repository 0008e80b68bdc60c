"""Playwright-powered remote driver implementation."""

from __future__ import annotations

import functools
import logging
from typing import Any, Awaitable, Callable, Optional, Sequence, TypeVar

from playwright.async_api import Error, Frame, Page, Playwright, async_playwright
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..config import BridgeConfig
from .base import DriverError, DriverFactory, RemoteDriver

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

_BUTTONS = {0: "left", 1: "middle", 2: "right"}

# Shares of the bridge command timeout. Element actions and the error screenshot
# must both finish before the bridge gives up on the call.
_ACTION_SHARE = 0.75
_SCREENSHOT_SHARE = 0.15

# Playwright reports an obstructed or off-screen target with these fragments.
_OBSTRUCTED_FRAGMENTS = (
    "intercepts pointer events",
    "element is not visible",
    "outside of the viewport",
    "element is not stable",
)

_WAIT_PREDICATES = {
    "text": "el => (el.innerText || el.textContent || '').trim().length > 0",
    "selected": "el => Boolean(el.selected || el.checked)",
    "value": "el => Boolean(el.value)",
    "enabled": "el => !el.disabled",
}

_SELECT_BY_ATTRIBUTE = """
(el, [attribute, value]) => {
    const option = Array.from(el.options).find(o => o.getAttribute(attribute) === value);
    if (!option) {
        throw new Error(`No option with ${attribute}="${value}"`);
    }
    el.value = option.value;
    el.dispatchEvent(new Event('input', { bubbles: true }));
    el.dispatchEvent(new Event('change', { bubbles: true }));
}
"""

_SUBMIT = """
el => {
    const form = el.form || el;
    form.requestSubmit ? form.requestSubmit() : form.submit();
}
"""

_IN_VIEWPORT = """
el => {
    const rect = el.getBoundingClientRect();
    return rect.width > 0 && rect.height > 0
        && rect.bottom > 0 && rect.right > 0
        && rect.top < window.innerHeight && rect.left < window.innerWidth;
}
"""


def _translated(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    """Convert Playwright failures into :class:`DriverError`."""

    @functools.wraps(func)
    async def wrapper(self: "PlaywrightDriver", *args: Any, **kwargs: Any) -> T:
        try:
            return await func(self, *args, **kwargs)
        except Error as exc:
            message = exc.message
            if any(fragment in message for fragment in _OBSTRUCTED_FRAGMENTS):
                message = f"Element is not clickable: {message}"
            raise DriverError(
                "RuntimeError", message, await self._error_screenshot()
            ) from exc

    return wrapper


def _waiting(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    """Report an expired wait as an unmet element precondition."""

    @functools.wraps(func)
    async def wrapper(self: "PlaywrightDriver", *args: Any, **kwargs: Any) -> T:
        try:
            return await func(self, *args, **kwargs)
        except PlaywrightTimeoutError as exc:
            raise DriverError("WaitUntilTimeoutError", exc.message) from exc

    return wrapper


class PlaywrightDriver(RemoteDriver):
    """Remote driver backed by a Playwright page."""

    def __init__(self, playwright: Playwright, page: Page, config: BridgeConfig) -> None:
        self._playwright = playwright
        self._page = page
        self._config = config
        self._frame: Optional[Frame] = None

    @property
    def _scope(self) -> Page | Frame:
        return self._frame or self._page

    async def _require(self, selector: str) -> None:
        if await self._scope.query_selector(selector) is None:
            raise DriverError(
                "NoSuchElement",
                f"An element could not be located on the page using the given "
                f"search parameters ({selector!r})",
            )

    @property
    def _action_timeout(self) -> Optional[float]:
        return _to_timeout(_share(self._config.command_timeout, _ACTION_SHARE))

    async def _error_screenshot(self) -> Optional[bytes]:
        if not self._config.screenshot_on_error or self._page.is_closed():
            return None
        timeout = _to_timeout(_share(self._config.command_timeout, _SCREENSHOT_SHARE))
        try:
            return await self._page.screenshot(timeout=timeout)
        except Error as exc:
            LOGGER.debug("Could not capture error screenshot: %s", exc.message)
            return None

    async def close(self) -> None:
        LOGGER.debug("Closing Playwright page")
        if not self._page.is_closed():
            await self._page.close()
        await self.end()

    async def end(self) -> None:
        LOGGER.debug("Ending Playwright session")
        browser = self._page.context.browser
        try:
            await self._page.context.close()
            if browser is not None:
                await browser.close()
        finally:
            await self._playwright.stop()

    @_translated
    async def debug(self) -> None:
        await self._page.pause()

    async def url(self, address: str) -> None:
        try:
            await self._page.goto(address, wait_until="load")
        except Error as exc:
            raise DriverError(
                "ConnectionError", exc.message, await self._error_screenshot()
            ) from exc
        self._frame = None

    @_translated
    async def back(self) -> None:
        await self._page.go_back()

    @_translated
    async def forward(self) -> None:
        await self._page.go_forward()

    async def get_url(self) -> str:
        return self._page.url

    @_translated
    async def click(self, selector: str) -> None:
        await self._require(selector)
        await self._scope.click(selector, timeout=self._action_timeout)

    @_translated
    async def trigger_click(self, selector: str) -> None:
        await self._require(selector)
        await self._scope.eval_on_selector_all(selector, "els => els.forEach(el => el.click())")

    @_translated
    async def move_to_object(
        self, selector: str, x_offset: Optional[int], y_offset: Optional[int]
    ) -> None:
        await self._require(selector)
        position = None
        if x_offset is not None or y_offset is not None:
            position = {"x": x_offset or 0, "y": y_offset or 0}
        await self._scope.hover(selector, position=position, timeout=self._action_timeout)

    @_translated
    async def set_value(self, selector: str, value: str) -> None:
        await self._require(selector)
        await self._scope.fill(selector, value, timeout=self._action_timeout)

    @_translated
    async def add_value(self, selector: str, value: str) -> None:
        await self._require(selector)
        await self._scope.locator(selector).first.press_sequentially(
            value, timeout=self._action_timeout
        )

    @_translated
    async def clear_value(self, selector: str) -> None:
        await self._require(selector)
        await self._scope.fill(selector, "", timeout=self._action_timeout)

    @_translated
    async def submit_form(self, selector: str) -> None:
        await self._require(selector)
        await self._scope.eval_on_selector(selector, _SUBMIT)

    @_translated
    async def select_by_index(self, selector: str, index: int) -> None:
        await self._require(selector)
        await self._scope.select_option(selector, index=index, timeout=self._action_timeout)

    @_translated
    async def select_by_value(self, selector: str, value: str) -> None:
        await self._require(selector)
        await self._scope.select_option(selector, value=value, timeout=self._action_timeout)

    @_translated
    async def select_by_text(self, selector: str, text: str) -> None:
        await self._require(selector)
        await self._scope.select_option(selector, label=text, timeout=self._action_timeout)

    @_translated
    async def select_by_attribute(self, selector: str, attribute: str, value: str) -> None:
        await self._require(selector)
        await self._scope.eval_on_selector(selector, _SELECT_BY_ATTRIBUTE, [attribute, value])

    @_translated
    @_waiting
    async def wait_for_exist(self, selector: str, ms: int, reverse: bool) -> None:
        state = "detached" if reverse else "attached"
        await self._scope.wait_for_selector(selector, state=state, timeout=ms)

    @_translated
    @_waiting
    async def wait_for_visible(self, selector: str, ms: int, reverse: bool) -> None:
        state = "hidden" if reverse else "visible"
        await self._scope.wait_for_selector(selector, state=state, timeout=ms)

    async def wait_for_text(self, selector: str, ms: int, reverse: bool) -> None:
        await self._wait_for_predicate("text", selector, ms, reverse)

    async def wait_for_selected(self, selector: str, ms: int, reverse: bool) -> None:
        await self._wait_for_predicate("selected", selector, ms, reverse)

    async def wait_for_value(self, selector: str, ms: int, reverse: bool) -> None:
        await self._wait_for_predicate("value", selector, ms, reverse)

    async def wait_for_enabled(self, selector: str, ms: int, reverse: bool) -> None:
        await self._wait_for_predicate("enabled", selector, ms, reverse)

    @_translated
    @_waiting
    async def _wait_for_predicate(self, kind: str, selector: str, ms: int, reverse: bool) -> None:
        script = (
            "([selector, reverse]) => {"
            " const el = document.querySelector(selector);"
            " if (!el) { return false; }"
            f" const holds = ({_WAIT_PREDICATES[kind]})(el);"
            " return reverse ? !holds : holds; }"
        )
        await self._scope.wait_for_function(script, arg=[selector, reverse], timeout=ms)

    @_translated
    async def pause(self, ms: int) -> None:
        await self._page.wait_for_timeout(ms)

    @_translated
    async def scroll_to_element(self, selector: str, x_offset: int, y_offset: int) -> None:
        await self._require(selector)
        await self._scope.locator(selector).first.scroll_into_view_if_needed(
            timeout=self._action_timeout
        )
        await self._page.mouse.wheel(x_offset, y_offset)

    @_translated
    async def scroll_window(self, x: int, y: int) -> None:
        await self._page.evaluate("([x, y]) => window.scrollTo(x, y)", [x, y])

    @_translated
    async def viewport_screenshot(self) -> bytes:
        return await self._page.screenshot()

    @_translated
    async def page_screenshot(self) -> bytes:
        return await self._page.screenshot(full_page=True)

    @_translated
    async def save_page_screenshot(self, path: str) -> None:
        await self._page.screenshot(path=path, full_page=True)

    @_translated
    async def frame(self, index: Optional[int]) -> None:
        if index is None:
            self._frame = None
            return
        children = self._page.main_frame.child_frames
        if not 0 <= index < len(children):
            raise DriverError("NoSuchFrame", f"No frame at index {index}")
        self._frame = children[index]

    @_translated
    async def get_cookie(self, name: str) -> Optional[dict[str, Any]]:
        for cookie in await self._page.context.cookies():
            if cookie.get("name") == name:
                return dict(cookie)
        return None

    @_translated
    async def set_cookie(self, name: str, value: str) -> None:
        cookie = {"name": name, "value": value, "url": self._page.url}
        await self._page.context.add_cookies([cookie])

    @_translated
    async def delete_cookie(self, name: str) -> None:
        await self._page.context.clear_cookies(name=name)

    @_translated
    async def get_attribute(self, selector: str, name: str) -> Optional[str]:
        await self._require(selector)
        return await self._scope.get_attribute(selector, name)

    @_translated
    async def get_css_property(self, selector: str, name: str) -> Optional[dict[str, Any]]:
        await self._require(selector)
        value = await self._scope.eval_on_selector(
            selector,
            "(el, name) => window.getComputedStyle(el).getPropertyValue(name) || null",
            name,
        )
        return {"property": name, "value": value}

    @_translated
    async def get_html(self, selector: str) -> str:
        await self._require(selector)
        return await self._scope.eval_on_selector(selector, "el => el.outerHTML")

    @_translated
    async def get_source(self) -> str:
        return await self._scope.content()

    @_translated
    async def get_title(self) -> str:
        return await self._page.title()

    @_translated
    async def get_text(self, selector: str) -> str:
        await self._require(selector)
        return await self._scope.inner_text(selector)

    @_translated
    async def get_value(self, selector: str) -> str:
        await self._require(selector)
        return await self._scope.input_value(selector)

    @_translated
    async def get_element_size(self, selector: str) -> dict[str, float]:
        box = await self._bounding_box(selector)
        return {"width": box["width"], "height": box["height"]}

    @_translated
    async def get_location(self, selector: str) -> dict[str, float]:
        box = await self._bounding_box(selector)
        return {"x": box["x"], "y": box["y"]}

    @_translated
    async def get_location_in_view(self, selector: str) -> dict[str, float]:
        await self._require(selector)
        return await self._scope.eval_on_selector(
            selector,
            "el => { const r = el.getBoundingClientRect(); return {x: r.left, y: r.top}; }",
        )

    async def _bounding_box(self, selector: str) -> dict[str, float]:
        await self._require(selector)
        box = await self._scope.locator(selector).first.bounding_box()
        if box is None:
            raise DriverError("RuntimeError", f"Element {selector!r} is not rendered")
        return dict(box)

    @_translated
    async def count_elements(self, selector: str) -> int:
        return await self._scope.locator(selector).count()

    @_translated
    async def is_existing(self, selector: str) -> bool:
        return await self._scope.locator(selector).count() > 0

    @_translated
    async def is_enabled(self, selector: str) -> bool:
        await self._require(selector)
        return await self._scope.is_enabled(selector)

    @_translated
    async def is_visible(self, selector: str) -> bool:
        return await self._scope.is_visible(selector)

    @_translated
    async def is_visible_within_viewport(self, selector: str) -> bool:
        if await self._scope.query_selector(selector) is None:
            return False
        return await self._scope.eval_on_selector(selector, _IN_VIEWPORT)

    @_translated
    async def is_selected(self, selector: str) -> bool:
        await self._require(selector)
        return await self._scope.eval_on_selector(
            selector, "el => Boolean(el.selected || el.checked)"
        )

    @_translated
    async def execute_script(self, script: str) -> Any:
        return await self._scope.evaluate(script)

    @_translated
    async def choose_file(self, selector: str, local_path: str) -> None:
        await self._require(selector)
        await self._scope.set_input_files(selector, local_path, timeout=self._action_timeout)

    @_translated
    async def button_up(self, button: int) -> None:
        await self._page.mouse.up(button=_BUTTONS.get(button, "left"))

    @_translated
    async def button_down(self, button: int) -> None:
        await self._page.mouse.down(button=_BUTTONS.get(button, "left"))

    @_translated
    async def window_resize(self, width: int, height: int) -> None:
        await self._page.set_viewport_size({"width": width, "height": height})

    @_translated
    async def keys(self, keys: Sequence[str]) -> None:
        for key in keys:
            await self._page.keyboard.press(key)


class PlaywrightDriverFactory(DriverFactory):
    """Launches (or connects to) a browser through Playwright."""

    async def connect(self, options: BridgeConfig) -> PlaywrightDriver:
        LOGGER.debug("Starting Playwright %s session", options.browser)
        playwright = await async_playwright().start()
        browser_type = getattr(playwright, options.browser)
        viewport = {"width": options.viewport_width, "height": options.viewport_height}
        try:
            if options.ws_endpoint:
                browser = await browser_type.connect(options.ws_endpoint)
            else:
                browser = await browser_type.launch(
                    headless=options.headless,
                    args=["--no-sandbox", "--disable-dev-shm-usage"]
                    if options.browser == "chromium"
                    else None,
                )
            context = await browser.new_context(viewport=viewport)
            page = await context.new_page()
        except Error as exc:
            await playwright.stop()
            raise DriverError("ConnectionError", exc.message) from exc
        except BaseException:
            # Includes cancellation by the bridge timeout.
            await playwright.stop()
            raise
        return PlaywrightDriver(playwright, page, options)


def _to_timeout(timeout: Optional[float]) -> Optional[float]:
    if timeout is None:
        return None
    return timeout * 1000


def _share(timeout: Optional[float], share: float) -> Optional[float]:
    if timeout is None:
        return None
    return timeout * share
