from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class Relation(str, Enum):
    DESCENDANT = "descendant"
    FROM_PARENT = "from_parent"


class ScrollAction(str, Enum):
    FORWARD = "scrollForward()"
    BACKWARD = "scrollBackward()"
    FLING_TO_BEGINNING = "flingToBeginning(10)"
    FLING_TO_END = "flingToEnd(10)"
    INTO_VIEW = "scrollIntoView"


@dataclass(frozen=True)
class ById:
    resource_id: str


@dataclass(frozen=True)
class ByExactText:
    text: str


@dataclass(frozen=True)
class ByTextContains:
    text: str


@dataclass(frozen=True)
class ByResourceKey:
    key: str


@dataclass(frozen=True)
class ByDescriptionPrefix:
    prefix: str


@dataclass(frozen=True)
class Composite:
    parent: "Locator"
    relation: Relation
    child: "Locator"


@dataclass(frozen=True)
class ScrollCommand:
    """
    A UiScrollable gesture expressed as a locator.

    Locating it makes UiAutomator scroll `container` (or the first scrollable
    container when None). `target` is only used by INTO_VIEW.
    """

    container: Optional["Locator"]
    action: ScrollAction
    target: Optional["Locator"] = None


Locator = Union[ById, ByExactText, ByTextContains, ByResourceKey, ByDescriptionPrefix, Composite, ScrollCommand]

UIAUTOMATOR = "-android uiautomator"


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def ui_selector(locator: Locator) -> str:
    """
    Render a locator as a UiAutomator `UiSelector` expression.
    """
    if isinstance(locator, (ById, ByResourceKey)):
        key = locator.resource_id if isinstance(locator, ById) else locator.key
        return f"new UiSelector().resourceId({_quote(key)})"
    if isinstance(locator, ByExactText):
        return f"new UiSelector().text({_quote(locator.text)})"
    if isinstance(locator, ByTextContains):
        return f"new UiSelector().textContains({_quote(locator.text)})"
    if isinstance(locator, ByDescriptionPrefix):
        return f"new UiSelector().descriptionStartsWith({_quote(locator.prefix)})"
    if isinstance(locator, Composite):
        method = "childSelector" if locator.relation is Relation.DESCENDANT else "fromParent"
        return f"{ui_selector(locator.parent)}.{method}({ui_selector(locator.child)})"
    if isinstance(locator, ScrollCommand):
        container = ui_selector(locator.container) if locator.container is not None else (
            "new UiSelector().scrollable(true)"
        )
        scrollable = f"new UiScrollable({container}).setAsVerticalList()"
        if locator.action is ScrollAction.INTO_VIEW:
            if locator.target is None:
                raise ValueError("scrollIntoView requires a target locator")
            return f"{scrollable}.scrollIntoView({ui_selector(locator.target)})"
        return f"{scrollable}.{locator.action.value}"
    raise TypeError(f"Unsupported locator type: {type(locator).__name__}")


def to_webdriver(locator: Locator) -> tuple[str, str]:
    """
    Translate a locator into a WebDriver `(using, value)` pair.

    Plain resource ids use the native `id` strategy; everything else goes
    through UiAutomator so text/relationship selectors keep working inside
    WebViews.
    """
    if isinstance(locator, ById):
        return "id", locator.resource_id
    return UIAUTOMATOR, ui_selector(locator)


_PREFIXES = {
    "id": ById,
    "text": ByExactText,
    "contains": ByTextContains,
    "resource": ByResourceKey,
    "desc": ByDescriptionPrefix,
}


def parse_locator(raw: str) -> Locator:
    """
    Parse a "kind:value" string, e.g. "id:android:id/button1",
    "text:Add Bug", "contains:(ID: 7", "resource:bugTitle", "desc:01 ".
    """
    kind, sep, value = (raw or "").partition(":")
    kind = kind.strip().lower()
    if not sep or kind not in _PREFIXES:
        raise ValueError(f"Locator must look like <{'|'.join(_PREFIXES)}>:<value>, got {raw!r}")
    if not value:
        raise ValueError(f"Locator value is empty in {raw!r}")
    return _PREFIXES[kind](value)


def describe(locator: Locator) -> str:
    if isinstance(locator, ById):
        return f"id={locator.resource_id!r}"
    if isinstance(locator, ByExactText):
        return f"text={locator.text!r}"
    if isinstance(locator, ByTextContains):
        return f"text~={locator.text!r}"
    if isinstance(locator, ByResourceKey):
        return f"resource={locator.key!r}"
    if isinstance(locator, ByDescriptionPrefix):
        return f"desc^={locator.prefix!r}"
    if isinstance(locator, Composite):
        arrow = ">" if locator.relation is Relation.DESCENDANT else "<"
        return f"({describe(locator.parent)} {arrow} {describe(locator.child)})"
    if isinstance(locator, ScrollCommand):
        where = describe(locator.container) if locator.container is not None else "scrollable"
        return f"scroll[{where}].{locator.action.name.lower()}"
    return repr(locator)
