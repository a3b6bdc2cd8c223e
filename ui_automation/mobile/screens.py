"""
Screen flows for the bug tracker app.

Each screen is a small object holding its own locators and the shared
InteractionEngine; screens never inherit from each other. Navigation methods
return the object for the screen the app lands on.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional, Union

from .calendar_picker import CalendarNavigator
from .engine import InteractionEngine
from .errors import NotFoundError
from .locators import ByExactText, ByResourceKey, ByTextContains, Composite, Locator, Relation

BUG_ROW_MARKER = "(ID:"
STATUS_FILTERS = ("All", "Open", "Fixed", "Closed", "Not a Bug")


def normalize(value: Optional[str]) -> str:
    return "" if value is None else value.strip()


@dataclass(frozen=True)
class NavigationLocators:
    create_bug: Locator = ByExactText("Create Bug")
    view_bugs: Locator = ByExactText("View Bugs")
    home: Locator = ByExactText("Home")


class NavigationBar:
    def __init__(self, engine: InteractionEngine, locators: Optional[NavigationLocators] = None) -> None:
        self._engine = engine
        self.locators = locators or NavigationLocators()

    def open_create_bug(self) -> "BugFormScreen":
        self._engine.click(self.locators.create_bug)
        return BugFormScreen(self._engine, CREATE_BUG_FORM)

    def open_view_bugs(self) -> "ViewBugsScreen":
        self._engine.click(self.locators.view_bugs)
        return ViewBugsScreen(self._engine)

    def go_home(self) -> "HomeScreen":
        self._engine.click(self.locators.home)
        return HomeScreen(self._engine)

    def is_create_bug_visible(self) -> bool:
        return self._engine.probe_visible(self.locators.create_bug)

    def is_view_bugs_visible(self) -> bool:
        return self._engine.probe_visible(self.locators.view_bugs)

    def create_bug_text(self) -> str:
        return self._engine.read_text(self.locators.create_bug)


class HomeScreen:
    root: Locator = ByResourceKey("homePage")

    def __init__(self, engine: InteractionEngine) -> None:
        self._engine = engine
        self.nav = NavigationBar(engine)

    def is_displayed(self) -> bool:
        return self._engine.probe_visible(self.root)

    def open_create_bug(self) -> "BugFormScreen":
        return self.nav.open_create_bug()

    def open_view_bugs(self) -> "ViewBugsScreen":
        return self.nav.open_view_bugs()

    def go_home(self) -> "HomeScreen":
        return self.nav.go_home()

    def create_bug_button_text(self) -> str:
        return normalize(self.nav.create_bug_text())


@dataclass(frozen=True)
class BugFormLocators:
    root: Locator
    title: Locator
    steps: Locator
    expected: Locator
    actual: Locator
    status: Locator
    severity: Locator
    priority: Locator
    detected_by: Locator
    fixed_by: Locator
    date: Locator
    date_closed: Locator
    submit: Locator
    bug_id: Optional[Locator] = None
    cancel: Optional[Locator] = None


CREATE_BUG_FORM = BugFormLocators(
    root=ByExactText("Create a Bug"),
    bug_id=ByResourceKey("bugId"),
    title=ByResourceKey("bugTitle"),
    steps=ByResourceKey("bugSteps"),
    expected=ByResourceKey("bugExpectedResult"),
    actual=ByResourceKey("bugActualResult"),
    status=ByResourceKey("bugStatus"),
    severity=ByResourceKey("bugSeverity"),
    priority=ByResourceKey("bugPriority"),
    detected_by=ByResourceKey("bugDetectedBy"),
    fixed_by=ByResourceKey("bugFixedBy"),
    date=ByResourceKey("bugDate"),
    date_closed=ByResourceKey("bugDateClosed"),
    submit=ByExactText("Add Bug"),
)

EDIT_BUG_FORM = BugFormLocators(
    root=ByExactText("Edit Bug"),
    title=ByResourceKey("editBugTitle"),
    steps=ByResourceKey("editBugSteps"),
    expected=ByResourceKey("editBugExpectedResult"),
    actual=ByResourceKey("editBugActualResult"),
    status=ByResourceKey("editBugStatus"),
    severity=ByResourceKey("editBugSeverity"),
    priority=ByResourceKey("editBugPriority"),
    detected_by=ByResourceKey("editBugDetectedBy"),
    fixed_by=ByResourceKey("editBugFixedBy"),
    date=ByResourceKey("editBugDate"),
    date_closed=ByResourceKey("editBugDateClosed"),
    submit=ByExactText("Save Changes"),
    cancel=ByExactText("Cancel Editing"),
)


class BugFormScreen:
    """
    The create and edit bug forms share one flow; they differ only in
    locators (the edit form has no id field but has a cancel button).
    """

    def __init__(
        self,
        engine: InteractionEngine,
        locators: BugFormLocators,
        *,
        calendar: Optional[CalendarNavigator] = None,
    ) -> None:
        self._engine = engine
        self.locators = locators
        self._calendar = calendar

    def _navigator(self) -> CalendarNavigator:
        # Unless one was injected, every pick starts from a CLOSED navigator.
        if self._calendar is not None:
            return self._calendar
        return CalendarNavigator(self._engine)

    def is_displayed(self) -> bool:
        return self._engine.probe_visible(self.locators.root)

    def _fill(self, field: Locator, value: Optional[str]) -> "BugFormScreen":
        self._engine.scroll_policy.ensure_reachable(field)
        self._engine.type(field, normalize(value))
        return self

    def enter_bug_id(self, value: Optional[str]) -> "BugFormScreen":
        if self.locators.bug_id is None:
            raise ValueError("This form has no bug id field")
        # Numeric keyboards only accept input after the field is focused.
        self._engine.click(self.locators.bug_id)
        return self._fill(self.locators.bug_id, value)

    def enter_title(self, value: Optional[str]) -> "BugFormScreen":
        return self._fill(self.locators.title, value)

    def enter_steps(self, value: Optional[str]) -> "BugFormScreen":
        return self._fill(self.locators.steps, value)

    def enter_expected(self, value: Optional[str]) -> "BugFormScreen":
        return self._fill(self.locators.expected, value)

    def enter_actual(self, value: Optional[str]) -> "BugFormScreen":
        return self._fill(self.locators.actual, value)

    def set_detected_by(self, value: Optional[str]) -> "BugFormScreen":
        return self._fill(self.locators.detected_by, value)

    def set_fixed_by(self, value: Optional[str]) -> "BugFormScreen":
        return self._fill(self.locators.fixed_by, value)

    def set_status(self, value: Optional[str]) -> "BugFormScreen":
        return self._select_option(self.locators.status, value, "Status")

    def set_severity(self, value: Optional[str]) -> "BugFormScreen":
        return self._select_option(self.locators.severity, value, "Severity")

    def set_priority(self, value: Optional[str]) -> "BugFormScreen":
        return self._select_option(self.locators.priority, value, "Priority")

    def pick_date(self, value: Union[date, str]) -> "BugFormScreen":
        self._navigator().pick(self.locators.date, value)
        return self

    def pick_date_closed(self, value: Union[date, str]) -> "BugFormScreen":
        self._navigator().pick(self.locators.date_closed, value)
        return self

    def submit(self) -> None:
        self._engine.click(self.locators.submit)

    def cancel(self) -> None:
        if self.locators.cancel is None:
            raise ValueError("This form has no cancel button")
        self._engine.click(self.locators.cancel)

    def _select_option(self, field: Locator, value: Optional[str], field_name: str) -> "BugFormScreen":
        option_text = normalize(value)
        if not option_text:
            raise ValueError(f"{field_name} value must not be blank")

        self._engine.click(field)
        option = ByExactText(option_text)
        if not self._engine.probe_visible(option):
            self._engine.scroll_policy.scroll_into_view(option)
            if not self._engine.probe_visible(option):
                raise NotFoundError(
                    locator=option,
                    timeout_s=self._engine.probe_deadline.seconds,
                    condition=f"listed as a {field_name} option",
                )
        self._engine.click(option, scroll_search=False)
        return self


@dataclass(frozen=True)
class ViewBugsLocators:
    root: Locator = ByResourceKey("viewBugsPage")
    search: Locator = ByResourceKey("searchInput")
    bug_list: Locator = ByResourceKey("bugList")


class ViewBugsScreen:
    """
    Bug list with search and status filters.

    The list is virtualised, so rows seen across refreshes are accumulated
    (in first-seen order) until `reset()` is called.
    """

    def __init__(self, engine: InteractionEngine, locators: Optional[ViewBugsLocators] = None) -> None:
        self._engine = engine
        self.locators = locators or ViewBugsLocators()
        self.nav = NavigationBar(engine)
        self._bugs: dict[str, None] = {}

    def is_displayed(self) -> bool:
        return self._engine.probe_visible(self.locators.root)

    def search(self, value: Optional[str]) -> "ViewBugsScreen":
        self._engine.type(self.locators.search, normalize(value))
        self.refresh()
        return self

    def filter_by(self, status: str) -> "ViewBugsScreen":
        if status not in STATUS_FILTERS:
            raise ValueError(f"Unknown status filter {status!r}; expected one of {', '.join(STATUS_FILTERS)}")
        self._engine.click(ByExactText(status))
        self.refresh()
        return self

    def refresh(self) -> list[str]:
        self._engine.wait_visible(self.locators.bug_list)
        rows = Composite(self.locators.bug_list, Relation.DESCENDANT, ByTextContains(BUG_ROW_MARKER))
        # An empty list is valid; the probe bounds how long we wait for rows.
        if self._engine.probe_visible(rows):
            for text in self._engine.peek_all_texts(rows):
                if BUG_ROW_MARKER in text:
                    self._bugs.setdefault(text, None)
        return self.bugs

    def reset(self) -> list[str]:
        self._bugs.clear()
        return self.refresh()

    @property
    def bugs(self) -> list[str]:
        return list(self._bugs)

    @property
    def bug_count(self) -> int:
        return len(self._bugs)

    def row(self, bug_id: str) -> Locator:
        # Rows render as "<title> (ID: <id>)"; the closing paren keeps 1 from matching 12.
        return ByTextContains(f"{BUG_ROW_MARKER} {bug_id})")

    def row_action(self, bug_id: str, label: str) -> Locator:
        return Composite(self.row(bug_id), Relation.FROM_PARENT, ByExactText(label))

    def edit_bug(self, bug_id: str) -> BugFormScreen:
        self._engine.scroll_policy.ensure_reachable(self.row(bug_id))
        self._engine.click(self.row_action(bug_id, "Edit"))
        return BugFormScreen(self._engine, EDIT_BUG_FORM)

    def delete_bug(self, bug_id: str) -> "ViewBugsScreen":
        self._engine.scroll_policy.ensure_reachable(self.row(bug_id))
        self._engine.click(self.row_action(bug_id, "Delete"))
        return self
