"""
Page Extractors Package

Turns saved HTML snapshots of shopping and carrier pages into ObservedFact
lists for the reconciler.

This package provides:
- Carrier tracking number recognition
- Amazon order history and tracking page extraction
- eBay purchase history, order details and tracking page extraction
- Customs forwarder tracking number discovery for lookup
- A registry of extractors by (source, page kind), filtered by configuration
"""

from collections.abc import Callable
from dataclasses import dataclass

from ..core.config import Config, get_config
from ..records.models import ObservedFact
from . import amazon, customs, ebay
from .tracking_numbers import detect_carrier_name, detect_tracking, find_all_tracking


@dataclass(frozen=True)
class PageExtractor:
    """A registered extractor for one kind of page."""

    source: str
    kind: str
    function: Callable[..., list[ObservedFact]]
    uses_url: bool = False
    bulk: bool = False  # page lists many items; reconcile with bulk keys

    def extract(self, html: str, url: str | None = None) -> list[ObservedFact]:
        """Run the extractor on page HTML."""
        if self.uses_url:
            return self.function(html, url=url)
        return self.function(html)


EXTRACTORS: dict[tuple[str, str], PageExtractor] = {
    ("amazon", "orders"): PageExtractor("amazon", "orders", amazon.extract_orders_page),
    ("amazon", "tracking"): PageExtractor("amazon", "tracking", amazon.extract_tracking_page, uses_url=True),
    ("ebay", "purchases"): PageExtractor("ebay", "purchases", ebay.extract_purchase_history, bulk=True),
    ("ebay", "order"): PageExtractor("ebay", "order", ebay.extract_order_details, uses_url=True),
    ("ebay", "tracking"): PageExtractor("ebay", "tracking", ebay.extract_tracking_page, uses_url=True),
    ("ebay", "modal"): PageExtractor("ebay", "modal", ebay.extract_tracking_modal, uses_url=True),
}


def get_extractor(source: str, kind: str, config: Config | None = None) -> PageExtractor:
    """
    Look up the extractor for a page.

    Args:
        source: Site name ("amazon", "ebay")
        kind: Page kind ("orders", "tracking", "purchases", "order", "modal")
        config: Configuration whose active sources are enforced (global if omitted)

    Raises:
        ValueError: If no extractor exists or the source is disabled
    """
    config = config or get_config()
    key = (source.lower(), kind.lower())
    if key not in EXTRACTORS:
        known = ", ".join(f"{s}/{k}" for s, k in sorted(EXTRACTORS))
        raise ValueError(f"No extractor for {source}/{kind}; known pages: {known}")
    if not config.extraction.is_active(key[0]):
        raise ValueError(f"Source {source} is disabled by PARCELS_SOURCES")
    return EXTRACTORS[key]


def available_extractors(config: Config | None = None) -> list[PageExtractor]:
    """Extractors whose source is enabled, in registry order."""
    config = config or get_config()
    return [extractor for extractor in EXTRACTORS.values() if config.extraction.is_active(extractor.source)]


__all__ = [
    "EXTRACTORS",
    "PageExtractor",
    "amazon",
    "available_extractors",
    "customs",
    "detect_carrier_name",
    "detect_tracking",
    "ebay",
    "find_all_tracking",
    "get_extractor",
]
