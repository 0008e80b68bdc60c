from __future__ import annotations

import asyncio
from typing import Any, Optional

import pytest
from playwright.async_api import Error
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from browser_suite_runner.bridge.base import DriverError, DriverFactory, RemoteDriver
from browser_suite_runner.bridge.commands import CommandBridge
from browser_suite_runner.bridge.errors import AutomationError
from browser_suite_runner.bridge.playwright_driver import PlaywrightDriver, PlaywrightDriverFactory
from browser_suite_runner.config import BridgeConfig
from browser_suite_runner.models import ErrorKind


class StubPage:
    """Minimal stand-in for a Playwright page."""

    def __init__(
        self,
        present: bool = True,
        click_error: Optional[Exception] = None,
        wait_error: Optional[Exception] = None,
    ) -> None:
        self.present = present
        self.click_error = click_error
        self.wait_error = wait_error
        self.screenshots = 0
        self.url = "https://shop.test/cart"

    def is_closed(self) -> bool:
        return False

    async def screenshot(self, **_: Any) -> bytes:
        self.screenshots += 1
        return b"error-shot"

    async def query_selector(self, selector: str) -> Optional[object]:
        return object() if self.present else None

    async def click(self, selector: str, timeout: Optional[float] = None) -> None:
        if self.click_error is not None:
            raise self.click_error

    async def wait_for_selector(self, selector: str, state: str, timeout: int) -> None:
        if self.wait_error is not None:
            raise self.wait_error

    async def goto(self, address: str, wait_until: str) -> None:
        raise Error("net::ERR_NAME_NOT_RESOLVED")


def _driver(page: StubPage, **config: Any) -> PlaywrightDriver:
    return PlaywrightDriver(None, page, BridgeConfig(**config))  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_missing_element_is_reported_as_no_such_element():
    driver = _driver(StubPage(present=False))

    with pytest.raises(DriverError) as excinfo:
        await driver.click("#submit")

    assert excinfo.value.error_type == "NoSuchElement"


@pytest.mark.asyncio
async def test_obstructed_click_becomes_not_clickable_runtime_error():
    page = StubPage(click_error=Error("<div class=overlay> intercepts pointer events"))
    driver = _driver(page)

    with pytest.raises(DriverError) as excinfo:
        await driver.click("#buy")

    assert excinfo.value.error_type == "RuntimeError"
    assert excinfo.value.message.startswith("Element is not clickable")
    assert excinfo.value.screenshot == b"error-shot"


@pytest.mark.asyncio
async def test_error_screenshot_can_be_disabled():
    page = StubPage(click_error=Error("detached from DOM"))
    driver = _driver(page, screenshot_on_error=False)

    with pytest.raises(DriverError) as excinfo:
        await driver.click("#buy")

    assert excinfo.value.screenshot is None
    assert page.screenshots == 0


@pytest.mark.asyncio
async def test_expired_wait_is_wait_until_timeout():
    driver = _driver(StubPage(wait_error=PlaywrightTimeoutError("Timeout 500ms exceeded")))

    with pytest.raises(DriverError) as excinfo:
        await driver.wait_for_visible("#modal", 500, False)

    assert excinfo.value.error_type == "WaitUntilTimeoutError"


@pytest.mark.asyncio
async def test_navigation_failure_is_connection_error():
    driver = _driver(StubPage())

    with pytest.raises(DriverError) as excinfo:
        await driver.url("https://nowhere.invalid")

    assert excinfo.value.error_type == "ConnectionError"
    assert excinfo.value.screenshot == b"error-shot"


@pytest.mark.asyncio
async def test_get_url_reads_page_url():
    assert await _driver(StubPage()).get_url() == "https://shop.test/cart"


class OverlaidPage(StubPage):
    """Page whose clicks wait out their own timeout behind an overlay."""

    def __init__(self) -> None:
        super().__init__()
        self.click_timeouts: list[Optional[float]] = []
        self.screenshot_timeouts: list[Optional[float]] = []

    async def click(self, selector: str, timeout: Optional[float] = None) -> None:
        self.click_timeouts.append(timeout)
        await asyncio.sleep((timeout or 0) / 1000)
        raise PlaywrightTimeoutError(
            f"Timeout {timeout}ms exceeded. <div class=overlay> intercepts pointer events"
        )

    async def screenshot(self, timeout: Optional[float] = None, **_: Any) -> bytes:
        self.screenshot_timeouts.append(timeout)
        return await super().screenshot()


class ExistingDriverFactory(DriverFactory):
    def __init__(self, driver: PlaywrightDriver) -> None:
        self.driver = driver

    async def connect(self, options: BridgeConfig) -> RemoteDriver:
        return self.driver


@pytest.mark.asyncio
async def test_blocked_click_through_bridge_is_unreachable_element():
    page = OverlaidPage()
    config = BridgeConfig(command_timeout=0.3)
    bridge = CommandBridge(ExistingDriverFactory(_driver(page, command_timeout=0.3)), config)
    await bridge.open()

    with pytest.raises(AutomationError) as excinfo:
        await bridge.click("#buy")

    assert excinfo.value.kind is ErrorKind.UNREACHABLE_ELEMENT
    assert excinfo.value.outcome.selector == "#buy"
    assert excinfo.value.outcome.screenshot == b"error-shot"
    assert page.click_timeouts[0] < 300
    assert page.click_timeouts[0] + page.screenshot_timeouts[0] < 300



class StalledBrowserType:
    async def launch(self, **_: Any) -> None:
        await asyncio.sleep(3600)


class RecordingPlaywright:
    def __init__(self) -> None:
        self.chromium = StalledBrowserType()
        self.stopped = False

    async def stop(self) -> None:
        self.stopped = True


class PlaywrightStarter:
    def __init__(self, playwright: RecordingPlaywright) -> None:
        self.playwright = playwright

    async def start(self) -> RecordingPlaywright:
        return self.playwright


@pytest.mark.asyncio
async def test_timed_out_launch_stops_playwright(monkeypatch):
    playwright = RecordingPlaywright()
    monkeypatch.setattr(
        "browser_suite_runner.bridge.playwright_driver.async_playwright",
        lambda: PlaywrightStarter(playwright),
    )
    bridge = CommandBridge(PlaywrightDriverFactory(), BridgeConfig(command_timeout=0.05))

    with pytest.raises(AutomationError) as excinfo:
        await bridge.open()

    assert excinfo.value.kind is ErrorKind.CONNECTION_ERROR
    assert playwright.stopped is True
    assert bridge.session is None
