#!/usr/bin/env python3
"""
Amazon Page Extractors

Reads saved Amazon "Your Orders" and "Track package" pages. The orders page
yields one fact per order card; the tracking page yields a single fact linking
a tracking number to its order.
"""

import logging
import re

from bs4 import Tag

from ..core.dates import OrderDate
from ..core.money import Money
from ..records.models import ObservedFact, OrderItem, Source
from .base import (
    closest,
    find_price,
    find_quantity,
    has_class_fragment,
    parse_html,
    query_param,
    squash_whitespace,
    text_of,
)
from .tracking_numbers import detect_carrier_name, detect_tracking

logger = logging.getLogger(__name__)

ORDER_ID_PATTERN = re.compile(r"\b(\d{3}-\d{7}-\d{7})\b")
ORDER_DATE_PATTERNS = (
    re.compile(r"(?:Order placed|Ordered on)\s*([A-Z][a-z]+\.?\s+\d{1,2},?\s*\d{4})", re.IGNORECASE),
    re.compile(r"([A-Z][a-z]+\s+\d{1,2},?\s*\d{4})"),
)
TOTAL_PATTERN = re.compile(r"(?:Order Total|Total)\s*:?\s*\$?\s*([\d,]+(?:\.\d{1,2})?)", re.IGNORECASE)

PRODUCT_LINK_PATTERN = re.compile(r"/dp/|/gp/product/")
MIN_ITEM_NAME_CHARS = 6

_is_card = has_class_fragment("order-card", "ordercard", "a-box-group", "js-order-card", "order-info")
_is_item_container = has_class_fragment("a-row", "a-column", "item", "product")


def _order_cards(soup) -> list[Tag]:
    cards = [
        tag
        for tag in soup.find_all(True)
        if _is_card(tag) or tag.get("data-component") == "orderCard"
    ]
    # Keep outermost cards only
    card_ids = {id(card) for card in cards}
    return [
        card
        for card in cards
        if not any(id(parent) in card_ids for parent in card.parents)
    ]


def _find_order_date(text: str) -> OrderDate | None:
    for pattern in ORDER_DATE_PATTERNS:
        match = pattern.search(text)
        if match:
            parsed = OrderDate.parse(match.group(1).replace(".", ""))
            if parsed is not None:
                return parsed
    return None


def _product_items(node) -> list[OrderItem]:
    items: list[OrderItem] = []
    seen: set[str] = set()
    for link in node.find_all("a", href=PRODUCT_LINK_PATTERN):
        name = squash_whitespace(link.get_text(" ", strip=True))
        if len(name) < MIN_ITEM_NAME_CHARS or name in seen:
            continue
        seen.add(name)

        container = closest(link.parent, _is_item_container) if isinstance(link.parent, Tag) else None
        context = text_of(container) if container is not None else ""
        items.append(
            OrderItem(
                name=name,
                quantity=find_quantity(context),
                price=Money.parse(find_price(context)),
            )
        )
    return items


def _fact_from_card(card: Tag) -> ObservedFact | None:
    text = text_of(card)
    order_match = ORDER_ID_PATTERN.search(text)
    if not order_match:
        return None

    total_match = TOTAL_PATTERN.search(text)
    return ObservedFact(
        source=Source.AMAZON,
        order_id=order_match.group(1),
        order_date=_find_order_date(text),
        total=Money.parse(total_match.group(1)) if total_match else None,
        items=_product_items(card),
    )


def extract_orders_page(html: str) -> list[ObservedFact]:
    """
    Extract one fact per order on an Amazon order history page.

    Order cards give order id, date, total and items. When no card carries an
    order id, every order id in the page text yields an id-only fact so the
    order is at least known.

    Args:
        html: Saved page HTML

    Returns:
        Facts in page order, one per distinct order id
    """
    soup = parse_html(html)
    facts: list[ObservedFact] = []
    seen: set[str] = set()

    for card in _order_cards(soup):
        fact = _fact_from_card(card)
        if fact is None or fact.order_id in seen:
            continue
        seen.add(fact.order_id)
        facts.append(fact)

    if not facts:
        for order_id in ORDER_ID_PATTERN.findall(text_of(soup)):
            if order_id not in seen:
                seen.add(order_id)
                facts.append(ObservedFact(source=Source.AMAZON, order_id=order_id))
        if facts:
            logger.debug("No order cards found; %d order ids taken from page text", len(facts))

    logger.info("Extracted %d Amazon orders", len(facts))
    return facts


def extract_tracking_page(html: str, url: str | None = None) -> list[ObservedFact]:
    """
    Extract the tracking number shown on an Amazon package tracking page.

    Args:
        html: Saved page HTML
        url: Page URL; its orderId parameter names the order

    Returns:
        A single fact, or an empty list when the page shows no tracking number
    """
    soup = parse_html(html)
    text = text_of(soup)

    order_id = query_param(url, "orderId")
    if not order_id or not ORDER_ID_PATTERN.fullmatch(order_id):
        match = ORDER_ID_PATTERN.search(text)
        order_id = match.group(1) if match else None

    detected = detect_tracking(text)
    if detected is None:
        logger.info("No tracking number found on Amazon tracking page")
        return []
    tracking_id, pattern_carrier = detected

    items = _product_items(soup)[:1]
    return [
        ObservedFact(
            source=Source.AMAZON,
            order_id=order_id,
            tracking_id=tracking_id,
            carrier=detect_carrier_name(text) or pattern_carrier,
            items=items,
        )
    ]
