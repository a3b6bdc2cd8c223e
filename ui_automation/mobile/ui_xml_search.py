"""
Locator discovery over a saved UIAutomator page source (`GET /source`).

Screen flows hold static locators and never search the tree at runtime;
this module is only for finding those locators in the first place.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from itertools import islice
from typing import Iterator, Optional
from xml.etree import ElementTree

from .locators import ByDescriptionPrefix, ByExactText, ById, ByResourceKey, Locator

_BOUNDS_RE = re.compile(r"\[(\d+),(\d+)\]\[(\d+),(\d+)\]")


@dataclass(frozen=True)
class UiXmlNodeMatch:
    class_name: Optional[str]
    resource_id: Optional[str]
    text: Optional[str]
    content_desc: Optional[str]
    bounds: Optional[tuple[int, int, int, int]]

    @classmethod
    def from_element(cls, element: ElementTree.Element) -> "UiXmlNodeMatch":
        get = element.attrib.get
        return cls(
            # UiAutomator2 dumps name each node after its widget class.
            class_name=get("class") or element.tag or None,
            resource_id=get("resource-id") or None,
            text=get("text") or None,
            content_desc=get("content-desc") or None,
            bounds=parse_bounds(get("bounds") or ""),
        )

    def haystack(self) -> str:
        fields = (self.class_name, self.resource_id, self.text, self.content_desc)
        return " ".join(f for f in fields if f).lower()


def parse_bounds(bounds_str: str) -> Optional[tuple[int, int, int, int]]:
    """`"[x1,y1][x2,y2]"` -> `(x1, y1, x2, y2)`, or None when absent/garbled."""
    match = _BOUNDS_RE.search(bounds_str)
    if match is None:
        return None
    x1, y1, x2, y2 = map(int, match.groups())
    return x1, y1, x2, y2


def _iter_nodes(page_source_xml: str) -> Iterator[UiXmlNodeMatch]:
    try:
        root = ElementTree.fromstring(page_source_xml)
    except ElementTree.ParseError as e:
        raise ValueError(f"Failed to parse page source XML: {e}") from e
    for element in root.iter():
        yield UiXmlNodeMatch.from_element(element)


def search_uiautomator_xml(page_source_xml: str, *, query: str, limit: int = 30) -> list[UiXmlNodeMatch]:
    """
    Nodes whose class, resource-id, text or content-desc contain `query`
    (case-insensitive), in document order, at most `limit` of them.
    """
    needle = (query or "").strip().lower()
    if not needle:
        raise ValueError("query must be a non-empty string")
    if not page_source_xml.strip():
        return []
    hits = (node for node in _iter_nodes(page_source_xml) if needle in node.haystack())
    return list(islice(hits, limit))


def suggest_locator(node: UiXmlNodeMatch) -> Optional[Locator]:
    # "pkg:id/name" ids resolve natively; bare ids (WebView content) need UiAutomator.
    if node.resource_id:
        return ById(node.resource_id) if ":id/" in node.resource_id else ByResourceKey(node.resource_id)
    if node.text:
        return ByExactText(node.text)
    if node.content_desc:
        return ByDescriptionPrefix(node.content_desc)
    return None
