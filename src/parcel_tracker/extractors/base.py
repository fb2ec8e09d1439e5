#!/usr/bin/env python3
"""
Extractor Helpers

Shared parsing utilities for page extractors. Extractors work on saved HTML
snapshots of rendered pages and return ObservedFact lists; they never raise
for markup they do not recognize, they just observe less.
"""

import re
from collections.abc import Callable
from urllib.parse import parse_qs, urlparse

from bs4 import BeautifulSoup, Tag

QUANTITY_PATTERN = re.compile(r"(?:Qty|Quantity)\s*:?\s*(\d+)", re.IGNORECASE)
PRICE_PATTERN = re.compile(r"\$\s?([\d,]+(?:\.\d{2})?)")

# Link texts that are navigation, not product names
NAVIGATION_TEXT = re.compile(r"^(view|see|track|buy|sell|bid|watch|write|return|leave)\b", re.IGNORECASE)


def parse_html(html: str) -> BeautifulSoup:
    """Parse page HTML."""
    return BeautifulSoup(html, "lxml")


def text_of(node: Tag | BeautifulSoup | None) -> str:
    """Visible text of a node with block boundaries kept as newlines."""
    if node is None:
        return ""
    return node.get_text(separator="\n", strip=True)


def squash_whitespace(text: str) -> str:
    """Collapse runs of whitespace to single spaces."""
    return re.sub(r"\s+", " ", text).strip()


def query_param(url: str | None, name: str) -> str | None:
    """Value of a query parameter, compared case-insensitively by name."""
    if not url:
        return None
    params = parse_qs(urlparse(url).query)
    for key, values in params.items():
        if key.lower() == name.lower() and values:
            return values[0].strip() or None
    return None


def find_quantity(text: str, default: int = 1) -> int:
    """Quantity printed near an item ("Qty: 2"), or the default."""
    match = QUANTITY_PATTERN.search(text)
    if not match:
        return default
    quantity = int(match.group(1))
    return quantity if quantity >= 1 else default


def find_price(text: str) -> str | None:
    """First dollar amount in the text, without the sign."""
    match = PRICE_PATTERN.search(text)
    return match.group(1) if match else None


def closest(node: Tag, predicate: Callable[[Tag], bool]) -> Tag | None:
    """Nearest ancestor (including the node) satisfying predicate."""
    current: Tag | None = node
    while current is not None and isinstance(current, Tag):
        if predicate(current):
            return current
        current = current.parent if isinstance(current.parent, Tag) else None
    return None


def has_class_fragment(*fragments: str) -> Callable[[Tag], bool]:
    """Predicate: tag has a class containing any of the fragments (like [class*="item"])."""

    def predicate(tag: Tag) -> bool:
        classes = tag.get("class") or []
        joined = " ".join(classes).lower()
        return any(fragment in joined for fragment in fragments)

    return predicate


def is_product_name(text: str, min_chars: int = 6, max_chars: int = 500) -> bool:
    """Whether link text plausibly names a product rather than a navigation action."""
    return min_chars <= len(text) <= max_chars and not NAVIGATION_TEXT.match(text)
