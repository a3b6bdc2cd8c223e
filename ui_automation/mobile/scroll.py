from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

from .errors import ElementUnreachableError
from .locators import Locator, ScrollAction, ScrollCommand, describe

if TYPE_CHECKING:
    from .engine import InteractionEngine

logger = logging.getLogger("ui_automation.mobile.scroll")


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"


@dataclass(frozen=True)
class ScrollBudget:
    # Searched in this order: all downward scrolls, then all upward ones.
    max_down: int = 3
    max_up: int = 5

    def __post_init__(self) -> None:
        if self.max_down < 0 or self.max_up < 0:
            raise ValueError("scroll budget counters must be >= 0")


def swipe_points(width: int, height: int, direction: Direction) -> tuple[int, int, int, int]:
    """
    Map a scroll direction to swipe coordinates `(x1, y1, x2, y2)`.

    "down" reveals content below: the finger drags from 3/4 of the height up
    to 1/4. "up" drags the opposite way. X is always the horizontal midpoint.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"viewport must be positive, got {width}x{height}")
    center_x = width // 2
    lower = height * 3 // 4
    upper = height // 4
    if direction is Direction.DOWN:
        return center_x, lower, center_x, upper
    return center_x, upper, center_x, lower


class ScrollSearchPolicy:
    """
    Bounded trial-and-error scrolling that brings an off-screen element into
    the viewport: up to `max_down` scrolls down, then up to `max_up` scrolls
    up, probing after every scroll.
    """

    def __init__(
        self,
        engine: "InteractionEngine",
        *,
        budget: Optional[ScrollBudget] = None,
        swipes_per_scroll: int = 2,
        swipe_duration_ms: int = 500,
    ) -> None:
        if swipes_per_scroll <= 0:
            raise ValueError("swipes_per_scroll must be > 0")
        self._engine = engine
        self.budget = budget or ScrollBudget()
        self.swipes_per_scroll = swipes_per_scroll
        self.swipe_duration_ms = swipe_duration_ms

    def scroll(self, direction: Direction) -> None:
        # A single swipe is unreliable on some renderers.
        driver = self._engine.driver
        width, height = driver.viewport_size()
        x1, y1, x2, y2 = swipe_points(width, height, direction)
        for _ in range(self.swipes_per_scroll):
            driver.swipe(x1, y1, x2, y2, self.swipe_duration_ms)

    def ensure_reachable(self, locator: Locator) -> None:
        if self._engine.probe_visible(locator):
            return

        for attempt in range(1, self.budget.max_down + 1):
            self.scroll(Direction.DOWN)
            if self._engine.probe_visible(locator):
                logger.debug("found %s after %d scroll(s) down", describe(locator), attempt)
                return

        for attempt in range(1, self.budget.max_up + 1):
            self.scroll(Direction.UP)
            if self._engine.probe_visible(locator):
                logger.debug("found %s after %d scroll(s) up", describe(locator), attempt)
                return

        raise ElementUnreachableError(
            locator=locator,
            down_attempts=self.budget.max_down,
            up_attempts=self.budget.max_up,
        )

    def scroll_container(
        self,
        container: Optional[Locator],
        action: ScrollAction,
        target: Optional[Locator] = None,
    ) -> None:
        """
        Ask UiAutomator to scroll a scrollable container in place.

        The gesture happens as a side effect of locating the command; the
        returned elements carry no meaning.
        """
        command = ScrollCommand(container=container, action=action, target=target)
        logger.debug("container scroll %s", describe(command))
        self._engine.driver.locate_all(command)

    def scroll_into_view(self, target: Locator, *, container: Optional[Locator] = None) -> None:
        self.scroll_container(container, ScrollAction.INTO_VIEW, target)
