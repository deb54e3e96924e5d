"""Common infrastructure utilities."""

from __future__ import annotations

from .html_selectors import extract_attr, first_attr, parse_html, select_items
from .http_headers import browser_headers

__all__ = [
    "browser_headers",
    "extract_attr",
    "first_attr",
    "parse_html",
    "select_items",
]
