"""CSS-selector HTML extraction with fallback chains.

Every helper takes a primary selector plus optional fallbacks; the first
selector that matches wins. Catalog and embed markup drift (an extra
wrapper, a renamed class) then only needs a new fallback selector.
"""

from __future__ import annotations

from bs4 import BeautifulSoup, Tag


def parse_html(html: str) -> BeautifulSoup:
    """Parse an HTML string with the lxml parser."""
    return BeautifulSoup(html, "lxml")


def select_items(
    root: BeautifulSoup | Tag,
    selector: str,
    *fallback_selectors: str,
) -> list[Tag]:
    """Return the matches of the first selector that matches anything."""
    for sel in (selector, *fallback_selectors):
        items = root.select(sel)
        if items:
            return items
    return []


def extract_attr(
    element: BeautifulSoup | Tag,
    selector: str,
    attr: str,
    *fallback_selectors: str,
    default: str = "",
) -> str:
    """Read *attr* from the first matching element that carries it.

    With ``selector=""`` the attribute is read from *element* itself.
    """
    if selector == "":
        val = element.get(attr)
        return str(val).strip() if val else default

    for sel in (selector, *fallback_selectors):
        for match in element.select(sel):
            val = match.get(attr)
            if val:
                return str(val).strip()
    return default


def first_attr(element: Tag, *attrs: str, default: str = "") -> str:
    """First non-empty value among *attrs* on *element*."""
    for attr in attrs:
        val = element.get(attr)
        if val:
            return str(val).strip()
    return default
