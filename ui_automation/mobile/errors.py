from __future__ import annotations

from typing import Optional

from .locators import Locator, describe


class InteractionError(RuntimeError):
    """Base class for failures raised by the interaction engine itself."""


class NotFoundError(InteractionError):
    """
    A wait deadline elapsed before `locator` met `condition`.
    """

    def __init__(
        self,
        *,
        locator: Locator,
        timeout_s: float,
        condition: str = "visible",
        message: Optional[str] = None,
    ) -> None:
        super().__init__(message or f"Element {describe(locator)} not {condition} within {timeout_s:g}s")
        self.locator = locator
        self.timeout_s = timeout_s
        self.condition = condition


class ElementUnreachableError(NotFoundError):
    """
    The scroll-search budget ran out without bringing `locator` into view.
    """

    def __init__(
        self,
        *,
        locator: Locator,
        down_attempts: int,
        up_attempts: int,
        timeout_s: float = 0.0,
        message: Optional[str] = None,
    ) -> None:
        super().__init__(
            locator=locator,
            timeout_s=timeout_s,
            condition="reachable",
            message=message
            or f"Element {describe(locator)} not reachable after {down_attempts} down / {up_attempts} up scroll(s)",
        )
        self.down_attempts = down_attempts
        self.up_attempts = up_attempts


class YearNotFoundError(ElementUnreachableError):
    """
    The year list never showed `year`, neither after `scrolls` list scrolls
    nor after the fling fallback. `timeout_s` is the deadline of the final
    existence check.
    """

    def __init__(self, *, year: int, locator: Locator, scrolls: int, timeout_s: float) -> None:
        super().__init__(
            locator=locator,
            down_attempts=0,
            up_attempts=0,
            timeout_s=timeout_s,
            message=f"Year {year} not found in the year list after {scrolls} scroll(s) and a fling"
            f" (last check waited {timeout_s:g}s)",
        )
        self.year = year
        self.scrolls = scrolls


class UiContractViolation(InteractionError):
    """
    The widget rendered something that no longer matches the structure we
    parse (e.g. a non-numeric year header). Not a timing problem.
    """

    def __init__(self, message: str, *, raw_value: Optional[str] = None) -> None:
        super().__init__(message if raw_value is None else f"{message}: {raw_value!r}")
        self.raw_value = raw_value


class CalendarStateError(RuntimeError):
    pass
