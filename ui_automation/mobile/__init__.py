"""
Native mobile interaction engine built around Appium.

Conventions that hold across the package:
- Elements are only ever reached through declarative locators, re-resolved on
  every call; nothing caches a live element.
- Every wait is a bounded poll with an explicit deadline.
- Screen-specific locators live with the screen flows, not in the engine.
"""

from .appium_http_client import AppiumHTTPClient, AppiumHTTPError, WebDriverElementRef
from .calendar_picker import CalendarNavigator, DatePickerLocators, PickerState
from .driver import AppiumDriver, AutomationDriver
from .engine import Deadline, InteractionEngine
from .errors import (
    CalendarStateError,
    ElementUnreachableError,
    InteractionError,
    NotFoundError,
    UiContractViolation,
    YearNotFoundError,
)
from .locators import (
    ByDescriptionPrefix,
    ByExactText,
    ById,
    ByResourceKey,
    ByTextContains,
    Composite,
    Locator,
    Relation,
)
from .scroll import Direction, ScrollBudget, ScrollSearchPolicy

__all__ = [
    "AppiumDriver",
    "AppiumHTTPClient",
    "AppiumHTTPError",
    "AutomationDriver",
    "ByDescriptionPrefix",
    "ByExactText",
    "ById",
    "ByResourceKey",
    "ByTextContains",
    "CalendarNavigator",
    "CalendarStateError",
    "Composite",
    "DatePickerLocators",
    "Deadline",
    "Direction",
    "ElementUnreachableError",
    "InteractionEngine",
    "InteractionError",
    "Locator",
    "NotFoundError",
    "PickerState",
    "Relation",
    "ScrollBudget",
    "ScrollSearchPolicy",
    "UiContractViolation",
    "WebDriverElementRef",
    "YearNotFoundError",
]
