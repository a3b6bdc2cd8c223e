from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from .driver import AutomationDriver, ElementHandle
from .errors import NotFoundError
from .locators import Locator, describe
from .scroll import ScrollBudget, ScrollSearchPolicy

logger = logging.getLogger("ui_automation.mobile.engine")

T = TypeVar("T")

PROBE_DIVISOR = 4
PROBE_MIN_S = 1.0
PROBE_MAX_S = 5.0
MAX_POLL_INTERVAL_S = 0.25


@dataclass(frozen=True)
class Deadline:
    seconds: float

    def __post_init__(self) -> None:
        if self.seconds < 0:
            raise ValueError("deadline must be >= 0 seconds")

    def clamped(self, lower: float, upper: float) -> "Deadline":
        return Deadline(min(max(self.seconds, lower), upper))

    def for_probe(self) -> "Deadline":
        """
        Short deadline for existence probes: a quarter of this one, kept
        within [1s, 5s] however large the explicit deadline is.
        """
        return Deadline(self.seconds / PROBE_DIVISOR).clamped(PROBE_MIN_S, PROBE_MAX_S)


class InteractionEngine:
    """
    Deterministic wait/poll contracts over an AutomationDriver.

    One engine owns one driver session. Every mutating call re-resolves its
    locator and re-checks visibility inside the same call; nothing is carried
    over from earlier lookups because the UI tree may have been rebuilt.

    `clock` and `sleep` are injectable so waits can be driven without real
    time passing.
    """

    def __init__(
        self,
        driver: AutomationDriver,
        *,
        explicit_timeout_s: float = 10.0,
        poll_interval_s: float = MAX_POLL_INTERVAL_S,
        scroll_budget: Optional[ScrollBudget] = None,
        swipe_duration_ms: int = 500,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if poll_interval_s <= 0 or poll_interval_s > MAX_POLL_INTERVAL_S:
            raise ValueError(f"poll_interval_s must be in (0, {MAX_POLL_INTERVAL_S}]")
        self._driver = driver
        self.deadline = Deadline(explicit_timeout_s)
        self.probe_deadline = self.deadline.for_probe()
        self.poll_interval_s = poll_interval_s
        self._clock = clock
        self._sleep = sleep
        self.scroll_policy = ScrollSearchPolicy(self, budget=scroll_budget, swipe_duration_ms=swipe_duration_ms)

    @property
    def driver(self) -> AutomationDriver:
        return self._driver

    def _timeout(self, timeout_s: Optional[float]) -> float:
        return self.deadline.seconds if timeout_s is None else Deadline(timeout_s).seconds

    def _first_matching(self, locator: Locator, accept: Callable[[ElementHandle], bool]) -> Optional[ElementHandle]:
        for handle in self._driver.locate_all(locator):
            if accept(handle):
                return handle
        return None

    def wait_for(
        self,
        condition: Callable[[], Optional[T]],
        *,
        locator: Locator,
        condition_name: str,
        timeout_s: Optional[float] = None,
    ) -> T:
        """
        Poll `condition` until it returns something truthy, sleeping between
        polls. The condition is always evaluated at least once, and once
        more at the deadline. Raises NotFoundError on expiry.
        """
        timeout = self._timeout(timeout_s)
        end = self._clock() + timeout
        while True:
            result = condition()
            if result:
                return result
            remaining = end - self._clock()
            if remaining <= 0:
                raise NotFoundError(locator=locator, timeout_s=timeout, condition=condition_name)
            self._sleep(min(self.poll_interval_s, remaining))

    def visible_now(self, locator: Locator) -> bool:
        return self._first_matching(locator, self._driver.is_displayed) is not None

    def peek_text(self, locator: Locator) -> Optional[str]:
        handle = self._first_matching(locator, self._driver.is_displayed)
        if handle is None:
            return None
        return self._driver.get_text(handle) or ""

    def peek_attribute(self, locator: Locator, name: str) -> Optional[str]:
        handle = self._first_matching(locator, self._driver.is_displayed)
        if handle is None:
            return None
        return self._driver.get_attribute(handle, name)

    def peek_all_texts(self, locator: Locator) -> list[str]:
        return [
            self._driver.get_text(handle) or ""
            for handle in self._driver.locate_all(locator)
            if self._driver.is_displayed(handle)
        ]

    def wait_visible(self, locator: Locator, timeout_s: Optional[float] = None) -> ElementHandle:
        return self.wait_for(
            lambda: self._first_matching(locator, self._driver.is_displayed),
            locator=locator,
            condition_name="visible",
            timeout_s=timeout_s,
        )

    def wait_invisible(self, locator: Locator, timeout_s: Optional[float] = None) -> None:
        self.wait_for(
            lambda: not self.visible_now(locator),
            locator=locator,
            condition_name="gone",
            timeout_s=timeout_s,
        )

    def wait_clickable(
        self,
        locator: Locator,
        timeout_s: Optional[float] = None,
        *,
        scroll_search: bool = True,
    ) -> ElementHandle:
        if scroll_search:
            self.scroll_policy.ensure_reachable(locator)
        return self.wait_for(
            lambda: self._first_matching(
                locator,
                lambda handle: self._driver.is_displayed(handle) and self._driver.is_enabled(handle),
            ),
            locator=locator,
            condition_name="clickable",
            timeout_s=timeout_s,
        )

    def probe_visible(self, locator: Locator) -> bool:
        try:
            self.wait_visible(locator, self.probe_deadline.seconds)
        except NotFoundError:
            return False
        return True

    def click(self, locator: Locator, *, scroll_search: bool = True) -> None:
        handle = self.wait_clickable(locator, scroll_search=scroll_search)
        # Scrolling can shift layout between resolving and clicking.
        if not self._driver.is_displayed(handle):
            handle = self.wait_visible(locator)
        logger.debug("click %s", describe(locator))
        self._driver.click(handle)

    def type(self, locator: Locator, text: Optional[str]) -> None:
        value = "" if text is None else text
        handle = self.wait_visible(locator)
        self._driver.clear(handle)
        logger.debug("type %d char(s) into %s", len(value), describe(locator))
        self._driver.send_text(handle, value)

    def read_text(self, locator: Locator) -> str:
        return self._driver.get_text(self.wait_visible(locator)) or ""

    def read_attribute(self, locator: Locator, name: str) -> Optional[str]:
        return self._driver.get_attribute(self.wait_visible(locator), name)
