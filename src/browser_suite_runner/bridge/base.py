"""Remote driver abstractions consumed by the command bridge."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

from ..config import BridgeConfig


class DriverError(RuntimeError):
    """Raw failure reported by a remote driver.

    ``error_type`` uses the names understood by the error classifier, e.g.
    ``NoSuchElement`` or ``WaitUntilTimeoutError``.
    """

    def __init__(
        self,
        error_type: str,
        message: str,
        screenshot: Optional[bytes] = None,
    ) -> None:
        super().__init__(message)
        self.error_type = error_type
        self.message = message
        self.screenshot = screenshot


class RemoteDriver(ABC):
    """Interface for an automation-capable remote browser connection."""

    @abstractmethod
    async def close(self) -> None:
        """Close the current window and release the connection."""

    @abstractmethod
    async def end(self) -> None:
        """Terminate the whole remote session."""

    @abstractmethod
    async def debug(self) -> None:
        """Hand control to an interactive debugger."""

    @abstractmethod
    async def url(self, address: str) -> None: ...

    @abstractmethod
    async def back(self) -> None: ...

    @abstractmethod
    async def forward(self) -> None: ...

    @abstractmethod
    async def get_url(self) -> str: ...

    @abstractmethod
    async def click(self, selector: str) -> None: ...

    @abstractmethod
    async def trigger_click(self, selector: str) -> None:
        """Dispatch a DOM click on every element matching ``selector``."""

    @abstractmethod
    async def move_to_object(
        self, selector: str, x_offset: Optional[int], y_offset: Optional[int]
    ) -> None: ...

    @abstractmethod
    async def set_value(self, selector: str, value: str) -> None: ...

    @abstractmethod
    async def add_value(self, selector: str, value: str) -> None: ...

    @abstractmethod
    async def clear_value(self, selector: str) -> None: ...

    @abstractmethod
    async def submit_form(self, selector: str) -> None: ...

    @abstractmethod
    async def select_by_index(self, selector: str, index: int) -> None: ...

    @abstractmethod
    async def select_by_value(self, selector: str, value: str) -> None: ...

    @abstractmethod
    async def select_by_text(self, selector: str, text: str) -> None: ...

    @abstractmethod
    async def select_by_attribute(self, selector: str, attribute: str, value: str) -> None: ...

    @abstractmethod
    async def wait_for_exist(self, selector: str, ms: int, reverse: bool) -> None: ...

    @abstractmethod
    async def wait_for_visible(self, selector: str, ms: int, reverse: bool) -> None: ...

    @abstractmethod
    async def wait_for_text(self, selector: str, ms: int, reverse: bool) -> None: ...

    @abstractmethod
    async def wait_for_selected(self, selector: str, ms: int, reverse: bool) -> None: ...

    @abstractmethod
    async def wait_for_value(self, selector: str, ms: int, reverse: bool) -> None: ...

    @abstractmethod
    async def wait_for_enabled(self, selector: str, ms: int, reverse: bool) -> None: ...

    @abstractmethod
    async def pause(self, ms: int) -> None: ...

    @abstractmethod
    async def scroll_to_element(self, selector: str, x_offset: int, y_offset: int) -> None: ...

    @abstractmethod
    async def scroll_window(self, x: int, y: int) -> None: ...

    @abstractmethod
    async def viewport_screenshot(self) -> bytes: ...

    @abstractmethod
    async def page_screenshot(self) -> bytes: ...

    @abstractmethod
    async def save_page_screenshot(self, path: str) -> None: ...

    @abstractmethod
    async def frame(self, index: Optional[int]) -> None:
        """Switch the command scope to a child frame, or back to the page for ``None``."""

    @abstractmethod
    async def get_cookie(self, name: str) -> Optional[dict[str, Any]]: ...

    @abstractmethod
    async def set_cookie(self, name: str, value: str) -> None: ...

    @abstractmethod
    async def delete_cookie(self, name: str) -> None: ...

    @abstractmethod
    async def get_attribute(self, selector: str, name: str) -> Optional[str]: ...

    @abstractmethod
    async def get_css_property(self, selector: str, name: str) -> Optional[dict[str, Any]]: ...

    @abstractmethod
    async def get_html(self, selector: str) -> str: ...

    @abstractmethod
    async def get_source(self) -> str: ...

    @abstractmethod
    async def get_title(self) -> str: ...

    @abstractmethod
    async def get_text(self, selector: str) -> str: ...

    @abstractmethod
    async def get_value(self, selector: str) -> str: ...

    @abstractmethod
    async def get_element_size(self, selector: str) -> dict[str, float]: ...

    @abstractmethod
    async def get_location(self, selector: str) -> dict[str, float]: ...

    @abstractmethod
    async def get_location_in_view(self, selector: str) -> dict[str, float]: ...

    @abstractmethod
    async def count_elements(self, selector: str) -> int: ...

    @abstractmethod
    async def is_existing(self, selector: str) -> bool: ...

    @abstractmethod
    async def is_enabled(self, selector: str) -> bool: ...

    @abstractmethod
    async def is_visible(self, selector: str) -> bool: ...

    @abstractmethod
    async def is_visible_within_viewport(self, selector: str) -> bool: ...

    @abstractmethod
    async def is_selected(self, selector: str) -> bool: ...

    @abstractmethod
    async def execute_script(self, script: str) -> Any: ...

    @abstractmethod
    async def choose_file(self, selector: str, local_path: str) -> None: ...

    @abstractmethod
    async def button_up(self, button: int) -> None: ...

    @abstractmethod
    async def button_down(self, button: int) -> None: ...

    @abstractmethod
    async def window_resize(self, width: int, height: int) -> None: ...

    @abstractmethod
    async def keys(self, keys: Sequence[str]) -> None: ...


class DriverFactory(ABC):
    """Opens new remote driver connections."""

    @abstractmethod
    async def connect(self, options: BridgeConfig) -> RemoteDriver:
        """Establish a new connection described by ``options``.

        Implementations raise :class:`DriverError` with type ``ConnectionError``
        when the remote browser cannot be reached.
        """
