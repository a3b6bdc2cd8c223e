from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable

from .appium_http_client import AppiumHTTPClient, WebDriverElementRef
from .locators import Locator, to_webdriver


ElementHandle = Any


@runtime_checkable
class AutomationDriver(Protocol):
    """
    The primitives the interaction engine consumes.

    `locate_all` returns an empty list (never raises) when nothing matches.
    Transport failures may surface from any call and are not caught by the
    engine.
    """

    def locate_all(self, locator: Locator) -> list[ElementHandle]: ...

    def is_displayed(self, handle: ElementHandle) -> bool: ...

    def is_enabled(self, handle: ElementHandle) -> bool: ...

    def click(self, handle: ElementHandle) -> None: ...

    def clear(self, handle: ElementHandle) -> None: ...

    def send_text(self, handle: ElementHandle, text: str) -> None: ...

    def get_text(self, handle: ElementHandle) -> str: ...

    def get_attribute(self, handle: ElementHandle, name: str) -> Optional[str]: ...

    def viewport_size(self) -> tuple[int, int]: ...

    def swipe(self, x1: int, y1: int, x2: int, y2: int, duration_ms: int) -> None: ...


class AppiumDriver:
    """
    AutomationDriver backed by an AppiumHTTPClient with a live session.
    """

    def __init__(self, client: AppiumHTTPClient) -> None:
        self._client = client

    @property
    def client(self) -> AppiumHTTPClient:
        return self._client

    def locate_all(self, locator: Locator) -> list[WebDriverElementRef]:
        using, value = to_webdriver(locator)
        return self._client.find_elements(using=using, value=value)

    def is_displayed(self, handle: WebDriverElementRef) -> bool:
        return self._client.is_element_displayed(handle)

    def is_enabled(self, handle: WebDriverElementRef) -> bool:
        return self._client.is_element_enabled(handle)

    def click(self, handle: WebDriverElementRef) -> None:
        self._client.click(handle)

    def clear(self, handle: WebDriverElementRef) -> None:
        self._client.clear(handle)

    def send_text(self, handle: WebDriverElementRef, text: str) -> None:
        self._client.send_keys(handle, text=text)

    def get_text(self, handle: WebDriverElementRef) -> str:
        return self._client.get_element_text(handle)

    def get_attribute(self, handle: WebDriverElementRef, name: str) -> Optional[str]:
        return self._client.get_element_attribute(handle, name)

    def viewport_size(self) -> tuple[int, int]:
        rect = self._client.get_window_rect()
        return rect["width"], rect["height"]

    def swipe(self, x1: int, y1: int, x2: int, y2: int, duration_ms: int) -> None:
        self._client.swipe(x1=x1, y1=y1, x2=x2, y2=y2, duration_ms=duration_ms)
