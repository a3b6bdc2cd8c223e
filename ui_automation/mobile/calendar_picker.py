"""
Driver for the native Android DatePicker dialog (calendar mode).

The picker has no "set date" command, so a date is reached the way a person
would reach it: open the year list and scroll it to the target year, page the
month grid with the arrows, then tap the day. Every decision re-reads the
dialog; the values on screen are the only source of truth.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional, Union

from .engine import InteractionEngine
from .errors import CalendarStateError, UiContractViolation, YearNotFoundError
from .locators import ById, ByDescriptionPrefix, ByExactText, Composite, Locator, Relation, ScrollAction

logger = logging.getLogger("ui_automation.mobile.calendar_picker")

INPUT_DATE_FORMAT = "%d/%m/%Y"

MONTH_NAMES = (
    "january",
    "february",
    "march",
    "april",
    "may",
    "june",
    "july",
    "august",
    "september",
    "october",
    "november",
    "december",
)
MONTH_NUMBERS = {name: number for number, name in enumerate(MONTH_NAMES, 1)}

YEAR_SCROLL_MARGIN = 3
MAX_YEAR_SCROLLS = 30
MAX_MONTH_STEPS = 12

_YEAR_RE = re.compile(r"\d+", re.ASCII)
# e.g. "01 October 2025"
_FIRST_OF_MONTH_RE = re.compile(r"(\d{2})\s+([^\W\d_]+)\s+(\d{4})\b")


class PickerState(str, Enum):
    CLOSED = "closed"
    YEAR_LIST_OPEN = "year_list_open"
    YEAR_SELECTED = "year_selected"
    MONTH_VIEW = "month_view"
    DAY_CLICKED = "day_clicked"
    CONFIRMED = "confirmed"


@dataclass
class CalendarState:
    target: Optional[date] = None
    current_year: Optional[int] = None
    current_month: Optional[int] = None


@dataclass(frozen=True)
class DatePickerLocators:
    year_header: Locator = ById("android:id/date_picker_header_year")
    year_list: Locator = ById("android:id/date_picker_year_picker")
    next_month: Locator = ById("android:id/next")
    prev_month: Locator = ById("android:id/prev")
    confirm: Locator = ById("android:id/button1")
    first_of_month: Locator = ByDescriptionPrefix("01 ")
    description_attribute: str = "content-desc"

    def year_item(self, year: int) -> Locator:
        return Composite(self.year_list, Relation.DESCENDANT, ByExactText(str(year)))

    def day(self, day: int) -> Locator:
        return ByExactText(str(day))


def parse_target_date(value: Union[date, str]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value.strip(), INPUT_DATE_FORMAT).date()
    except ValueError as e:
        raise ValueError(f"Expected a date in dd/MM/yyyy format, got {value!r}") from e


def parse_year_header(text: Optional[str]) -> int:
    raw = (text or "").strip()
    if not _YEAR_RE.fullmatch(raw):
        raise UiContractViolation("Year header is not numeric", raw_value=text)
    return int(raw)


def parse_month_description(description: Optional[str]) -> tuple[int, int]:
    """
    Parse a first-of-month cell description ("01 <MonthName> <Year>") into
    `(month, year)`. Anything else is a contract violation; we never guess.
    """
    match = _FIRST_OF_MONTH_RE.match((description or "").strip())
    if not match:
        raise UiContractViolation("Unrecognised first-of-month description", raw_value=description)
    month = MONTH_NUMBERS.get(match.group(2).lower())
    if month is None:
        raise UiContractViolation("Unknown month name in calendar grid", raw_value=description)
    return month, int(match.group(3))


class CalendarNavigator:
    def __init__(
        self,
        engine: InteractionEngine,
        locators: Optional[DatePickerLocators] = None,
        *,
        year_scroll_margin: int = YEAR_SCROLL_MARGIN,
        max_year_scrolls: int = MAX_YEAR_SCROLLS,
        max_month_steps: int = MAX_MONTH_STEPS,
    ) -> None:
        self._engine = engine
        self.locators = locators or DatePickerLocators()
        self.year_scroll_margin = year_scroll_margin
        self.max_year_scrolls = max_year_scrolls
        self.max_month_steps = max_month_steps
        self.state = PickerState.CLOSED
        self.calendar = CalendarState()

    def _require_state(self, operation: str, *allowed: PickerState) -> None:
        if self.state not in allowed:
            expected = ", ".join(s.value for s in allowed)
            raise CalendarStateError(f"{operation}() not allowed in state {self.state.value!r} (expected {expected})")

    def _transition(self, new_state: PickerState) -> None:
        logger.info("date picker: %s -> %s", self.state.value, new_state.value)
        self.state = new_state

    def pick(self, date_field: Locator, target: Union[date, str]) -> date:
        """
        Open the picker from `date_field` and select `target` (a date or a
        dd/MM/yyyy string), then confirm. Returns the date selected.
        """
        target_date = parse_target_date(target)
        self.open(date_field, target_date)
        self.select_year(target_date.year)
        self.select_month_and_day(target_date.month, target_date.day)
        self.confirm()
        return target_date

    def open(self, date_field: Locator, target: Optional[date] = None) -> None:
        self._require_state("open", PickerState.CLOSED, PickerState.CONFIRMED)
        self.calendar = CalendarState(target=target)
        self._engine.click(date_field)
        self._engine.wait_visible(self.locators.year_header)
        self._transition(PickerState.YEAR_LIST_OPEN)

    def read_year(self) -> int:
        year = parse_year_header(self._engine.read_text(self.locators.year_header))
        self.calendar.current_year = year
        return year

    def read_month(self) -> int:
        return self._read_grid()[0]

    def _read_grid(self) -> tuple[int, int]:
        description = self._engine.read_attribute(self.locators.first_of_month, self.locators.description_attribute)
        shown = parse_month_description(description)
        self._record_grid(shown)
        return shown

    def _record_grid(self, shown: tuple[int, int]) -> None:
        self.calendar.current_month, self.calendar.current_year = shown

    def _header_shows(self, year: int) -> bool:
        text = self._engine.peek_text(self.locators.year_header)
        return text is not None and text.strip() == str(year)

    def _grid_other_than(self, previous: tuple[int, int]) -> Optional[tuple[int, int]]:
        description = self._engine.peek_attribute(self.locators.first_of_month, self.locators.description_attribute)
        if description is None:
            return None
        shown = parse_month_description(description)
        return shown if shown != previous else None

    @staticmethod
    def _require_grid_year(shown: tuple[int, int], year: Optional[int]) -> None:
        if year is not None and shown[1] != year:
            month, shown_year = shown
            raise UiContractViolation(
                f"Month grid left the selected year {year}",
                raw_value=f"{MONTH_NAMES[month - 1]} {shown_year}",
            )

    def select_year(self, year: int) -> int:
        """
        Select `year` in the year list. Returns the number of list scrolls
        issued (0 when the header already shows `year`).
        """
        self._require_state("select_year", PickerState.YEAR_LIST_OPEN, PickerState.YEAR_SELECTED)
        current = self.read_year()
        if current == year:
            self._transition(PickerState.YEAR_SELECTED)
            return 0

        loc = self.locators
        scroller = self._engine.scroll_policy
        self._engine.click(loc.year_header, scroll_search=False)
        self._engine.wait_visible(loc.year_list)

        item = loc.year_item(year)
        backward = year < current
        step = ScrollAction.BACKWARD if backward else ScrollAction.FORWARD
        budget = min(abs(year - current) + self.year_scroll_margin, self.max_year_scrolls)

        scrolls = 0
        while not self._engine.visible_now(item) and scrolls < budget:
            scroller.scroll_container(loc.year_list, step)
            scrolls += 1

        if not self._engine.visible_now(item):
            logger.info("year %d not reached after %d scroll(s); flinging", year, scrolls)
            fling = ScrollAction.FLING_TO_BEGINNING if backward else ScrollAction.FLING_TO_END
            scroller.scroll_container(loc.year_list, fling)
            scroller.scroll_into_view(item, container=loc.year_list)
            if not self._engine.probe_visible(item):
                raise YearNotFoundError(
                    year=year,
                    locator=item,
                    scrolls=scrolls,
                    timeout_s=self._engine.probe_deadline.seconds,
                )

        self._engine.click(item, scroll_search=False)
        self._engine.wait_for(
            lambda: self._header_shows(year),
            locator=loc.year_header,
            condition_name=f"showing year {year}",
        )
        self.calendar.current_year = year
        self._transition(PickerState.YEAR_SELECTED)
        return scrolls

    def select_month_and_day(self, month: int, day: int) -> int:
        """
        Page the month grid to `month` and tap `day`. Returns the number of
        arrow clicks issued.
        """
        self._require_state("select_month_and_day", PickerState.YEAR_SELECTED, PickerState.MONTH_VIEW)
        if not 1 <= month <= 12:
            raise ValueError(f"month must be in 1..12, got {month}")
        if not 1 <= day <= 31:
            raise ValueError(f"day must be in 1..31, got {day}")

        loc = self.locators
        selected_year = self.calendar.current_year
        self._transition(PickerState.MONTH_VIEW)
        shown = self._read_grid()
        self._require_grid_year(shown, selected_year)
        steps = 0
        while shown[0] != month:
            if steps >= self.max_month_steps:
                raise UiContractViolation(
                    f"Month grid did not reach month {month} after {steps} arrow click(s)",
                    raw_value=MONTH_NAMES[shown[0] - 1],
                )
            arrow = loc.next_month if month > shown[0] else loc.prev_month
            previous = shown
            self._engine.click(arrow, scroll_search=False)
            shown = self._engine.wait_for(
                lambda: self._grid_other_than(previous),
                locator=loc.first_of_month,
                condition_name=f"showing a month other than {MONTH_NAMES[previous[0] - 1]} {previous[1]}",
            )
            self._record_grid(shown)
            self._require_grid_year(shown, selected_year)
            steps += 1

        self._engine.click(loc.day(day), scroll_search=False)
        self._transition(PickerState.DAY_CLICKED)
        return steps

    def confirm(self) -> None:
        self._require_state(
            "confirm",
            PickerState.YEAR_LIST_OPEN,
            PickerState.YEAR_SELECTED,
            PickerState.MONTH_VIEW,
            PickerState.DAY_CLICKED,
        )
        self._engine.click(self.locators.confirm, scroll_search=False)
        self._engine.wait_invisible(self.locators.year_header)
        self._transition(PickerState.CONFIRMED)
