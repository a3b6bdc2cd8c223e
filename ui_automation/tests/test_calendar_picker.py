"""Tests for the date picker state machine."""
from datetime import date

import pytest

from fake_driver import FakeDatePickerDriver
from ui_automation.mobile.calendar_picker import (
    CalendarNavigator,
    PickerState,
    parse_month_description,
    parse_target_date,
    parse_year_header,
)
from ui_automation.mobile.errors import (
    CalendarStateError,
    NotFoundError,
    UiContractViolation,
    YearNotFoundError,
)
from ui_automation.mobile.locators import ByResourceKey, ScrollAction


BUG_DATE = ByResourceKey("bugDate")


@pytest.fixture
def picker_driver():
    def _make(**kwargs):
        kwargs.setdefault("field_locator", BUG_DATE)
        return FakeDatePickerDriver(**kwargs)

    return _make


@pytest.fixture
def open_navigator(make_engine):
    def _open(fake):
        navigator = CalendarNavigator(make_engine(fake))
        navigator.open(BUG_DATE)
        return navigator

    return _open


def test_parse_target_date_accepts_day_month_year():
    assert parse_target_date("15/06/2023") == date(2023, 6, 15)
    assert parse_target_date(date(2024, 2, 29)) == date(2024, 2, 29)


def test_parse_target_date_rejects_other_formats():
    with pytest.raises(ValueError):
        parse_target_date("2023-06-15")


def test_parse_year_header():
    assert parse_year_header(" 2025 ") == 2025
    with pytest.raises(UiContractViolation):
        parse_year_header("Sat, Oct 4")
    with pytest.raises(UiContractViolation):
        parse_year_header(None)


def test_parse_month_description():
    assert parse_month_description("01 October 2025") == (10, 2025)
    assert parse_month_description("01 march 2024 selected") == (3, 2024)


@pytest.mark.parametrize("description", ["", "October 2025", "01 Octobre 2025", "1 October 2025", None])
def test_parse_month_description_never_guesses(description):
    with pytest.raises(UiContractViolation):
        parse_month_description(description)


def test_open_clicks_field_and_waits_for_header(picker_driver, open_navigator):
    fake = picker_driver(year=2025, month=3)
    navigator = open_navigator(fake)

    assert fake.clicks == ["date-field"]
    assert navigator.state is PickerState.YEAR_LIST_OPEN


def test_select_year_scrolls_backward_to_earlier_year(picker_driver, open_navigator):
    fake = picker_driver(year=2025, month=9)
    navigator = open_navigator(fake)

    scrolls = navigator.select_year(2023)

    assert scrolls >= 1
    assert set(fake.year_scrolls()) == {ScrollAction.BACKWARD}
    assert fake.year == 2023
    assert fake.clicks[-1] == "year-2023"
    assert navigator.state is PickerState.YEAR_SELECTED
    assert navigator.calendar.current_year == 2023


def test_select_year_scrolls_forward_to_later_year(picker_driver, open_navigator):
    fake = picker_driver(year=2020, month=1)
    navigator = open_navigator(fake)

    navigator.select_year(2031)

    assert set(fake.year_scrolls()) == {ScrollAction.FORWARD}
    assert fake.year == 2031


def test_select_year_same_year_is_idempotent(picker_driver, open_navigator):
    """A second call for the year already shown issues no gestures at all."""
    fake = picker_driver(year=2025, month=9)
    navigator = open_navigator(fake)
    navigator.select_year(2023)
    scrolls_before = len(fake.container_scrolls)
    clicks_before = list(fake.clicks)

    assert navigator.select_year(2023) == 0
    assert len(fake.container_scrolls) == scrolls_before
    assert fake.clicks == clicks_before
    assert fake.swipes == []


def test_select_year_rejects_non_numeric_header(picker_driver, open_navigator):
    fake = picker_driver(year=2025, month=9, header_text="Year")
    navigator = open_navigator(fake)

    with pytest.raises(UiContractViolation):
        navigator.select_year(2023)

    assert fake.clicks == ["date-field"]
    assert fake.container_scrolls == []


def test_select_year_falls_back_to_fling_then_gives_up(picker_driver, open_navigator):
    fake = picker_driver(year=2025, month=9, lowest_year=1950)
    navigator = open_navigator(fake)

    with pytest.raises(YearNotFoundError) as excinfo:
        navigator.select_year(1890)

    actions = fake.year_scrolls()
    assert actions[:-2] == [ScrollAction.BACKWARD] * navigator.max_year_scrolls
    assert actions[-2:] == [ScrollAction.FLING_TO_BEGINNING, ScrollAction.INTO_VIEW]
    assert excinfo.value.year == 1890
    assert excinfo.value.timeout_s == navigator._engine.probe_deadline.seconds == 2.5
    assert "2.5s" in str(excinfo.value)
    assert isinstance(excinfo.value, NotFoundError)


def test_select_year_fling_fallback_can_recover(picker_driver, open_navigator):
    fake = picker_driver(year=2025, month=9, years_per_scroll=1)
    navigator = open_navigator(fake)
    navigator.max_year_scrolls = 2

    navigator.select_year(1990)

    assert fake.year_scrolls()[-2:] == [ScrollAction.FLING_TO_BEGINNING, ScrollAction.INTO_VIEW]
    assert fake.year == 1990


def test_select_year_requires_open_picker(make_engine, picker_driver):
    navigator = CalendarNavigator(make_engine(picker_driver(year=2025, month=1)))

    with pytest.raises(CalendarStateError):
        navigator.select_year(2024)


def test_month_earlier_issues_previous_clicks(picker_driver, open_navigator):
    fake = picker_driver(year=2024, month=3)
    navigator = open_navigator(fake)
    navigator.select_year(2024)

    steps = navigator.select_month_and_day(1, 10)

    assert steps == 2
    assert fake.arrow_clicks == ["prev", "prev"]
    assert fake.picked_day == 10
    assert navigator.state is PickerState.DAY_CLICKED


def test_month_already_shown_issues_no_clicks(picker_driver, open_navigator):
    fake = picker_driver(year=2024, month=3)
    navigator = open_navigator(fake)
    navigator.select_year(2024)

    assert navigator.select_month_and_day(3, 31) == 0
    assert fake.arrow_clicks == []
    assert fake.picked_day == 31


def test_month_later_issues_next_clicks(picker_driver, open_navigator):
    fake = picker_driver(year=2024, month=3)
    navigator = open_navigator(fake)
    navigator.select_year(2024)

    navigator.select_month_and_day(12, 1)

    assert fake.arrow_clicks == ["next"] * 9
    assert navigator.calendar.current_month == 12


def test_month_paging_into_another_year_is_a_contract_violation(picker_driver, open_navigator):
    """Arrows that page the wrong way must not land on the month in another year."""
    fake = picker_driver(year=2024, month=3, arrow_mode="reversed")
    navigator = open_navigator(fake)
    navigator.select_year(2024)

    with pytest.raises(UiContractViolation) as excinfo:
        navigator.select_month_and_day(1, 1)

    assert "january 2025" in str(excinfo.value)
    assert fake.arrow_clicks == ["prev"] * 10
    assert fake.picked_day is None
    assert (navigator.calendar.current_year, navigator.calendar.current_month) == (2025, 1)


def test_month_paging_tracks_grid_year(picker_driver, open_navigator):
    fake = picker_driver(year=2024, month=3)
    navigator = open_navigator(fake)
    navigator.select_year(2024)

    navigator.select_month_and_day(5, 2)

    assert (navigator.calendar.current_year, navigator.calendar.current_month) == (2024, 5)


def test_arrow_click_that_changes_nothing_times_out(picker_driver, open_navigator, clock):
    fake = picker_driver(year=2024, month=3, arrow_mode="stuck")
    navigator = open_navigator(fake)
    navigator.select_year(2024)
    started = clock.now

    with pytest.raises(NotFoundError) as excinfo:
        navigator.select_month_and_day(1, 1)

    assert fake.arrow_clicks == ["prev"]
    assert fake.picked_day is None
    assert excinfo.value.locator == navigator.locators.first_of_month
    assert excinfo.value.timeout_s == 10.0
    assert clock.now - started == pytest.approx(10.0)


def test_month_paging_is_bounded(picker_driver, open_navigator):
    fake = picker_driver(year=2024, month=3, arrow_mode="bounce")
    navigator = open_navigator(fake)
    navigator.select_year(2024)

    with pytest.raises(UiContractViolation):
        navigator.select_month_and_day(1, 1)

    assert len(fake.arrow_clicks) == navigator.max_month_steps == 12
    assert fake.picked_day is None


def test_unrecognised_month_name_is_a_contract_violation(picker_driver, open_navigator):
    fake = picker_driver(year=2024, month=3, month_description="01 Mars 2024")
    navigator = open_navigator(fake)
    navigator.select_year(2024)

    with pytest.raises(UiContractViolation):
        navigator.select_month_and_day(1, 1)

    assert fake.arrow_clicks == []


def test_missing_day_fails_with_not_found(picker_driver, open_navigator):
    fake = picker_driver(year=2023, month=2)
    navigator = open_navigator(fake)
    navigator.select_year(2023)

    with pytest.raises(NotFoundError):
        navigator.select_month_and_day(2, 30)

    assert fake.picked_day is None


def test_pick_end_to_end(picker_driver, make_engine):
    """15/06/2023 from a picker showing September 2025."""
    fake = picker_driver(year=2025, month=9)
    navigator = CalendarNavigator(make_engine(fake))

    picked = navigator.pick(BUG_DATE, "15/06/2023")

    assert picked == date(2023, 6, 15)
    assert set(fake.year_scrolls()) == {ScrollAction.BACKWARD}
    assert fake.arrow_clicks == ["prev", "prev", "prev"]
    assert fake.picked_day == 15
    assert fake.clicks[-2:] == ["day-15", "ok"]
    assert fake.dialog_open is False
    assert navigator.state is PickerState.CONFIRMED
    assert fake.swipes == []


def test_navigator_can_be_reused_after_confirm(picker_driver, make_engine):
    fake = picker_driver(year=2025, month=9)
    navigator = CalendarNavigator(make_engine(fake))
    navigator.pick(BUG_DATE, date(2025, 9, 1))

    navigator.pick(BUG_DATE, date(2025, 10, 2))

    assert fake.arrow_clicks == ["next"]
    assert navigator.calendar.target == date(2025, 10, 2)
