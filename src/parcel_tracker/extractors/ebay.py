#!/usr/bin/env python3
"""
eBay Page Extractors

Four eBay page kinds are understood:

- purchase history: many items per page, read as a bulk scan
- order details (order.ebay.com): one order with its tracking number
- shipment tracking (/ship/trk/): a tracking number and the item id in the URL
- shipment dialogs: the tracking number shown in a modal opened over any page

Purchase history cards rarely carry an order id, so their facts are usually
matched on item name or keyed by a slug of it.
"""

import logging
import re

from bs4 import Tag

from ..core.money import Money
from ..records.models import ObservedFact, OrderItem, Source
from .base import (
    closest,
    find_price,
    find_quantity,
    has_class_fragment,
    is_product_name,
    parse_html,
    query_param,
    squash_whitespace,
    text_of,
)
from .tracking_numbers import CARRIER_PATTERNS, detect_carrier_name, detect_tracking, find_all_tracking

logger = logging.getLogger(__name__)

ORDER_ID_PATTERN = re.compile(r"\b(\d{2}-\d{5}-\d{5})\b")
ITEM_LINK_PATTERN = re.compile(r"/itm/")
MIN_ITEM_NAME_CHARS = 10

_is_title = has_class_fragment("title")
_is_item_card = has_class_fragment("item", "card", "order")
_CARD_TAGS = ("li", "tr", "article", "section")


def _item_card(link: Tag) -> Tag | None:
    if not isinstance(link.parent, Tag):
        return None
    return closest(link.parent, lambda tag: tag.name in _CARD_TAGS or _is_item_card(tag))


def _item_name(link: Tag) -> str:
    name = squash_whitespace(link.get_text(" ", strip=True))
    if is_product_name(name, MIN_ITEM_NAME_CHARS):
        return name

    # Image-only links: take the title element of the surrounding card
    card = _item_card(link)
    if card is not None:
        title = card.find(_is_title) or card.find(["h3", "h4"])
        if title is not None:
            return squash_whitespace(title.get_text(" ", strip=True))
    return name


def _fact_from_link(link: Tag) -> ObservedFact | None:
    name = _item_name(link)
    if not is_product_name(name, MIN_ITEM_NAME_CHARS):
        return None

    card = _item_card(link)
    context = text_of(card if card is not None else link.parent)
    price = Money.parse(find_price(context))
    detected = detect_tracking(context)
    order_match = ORDER_ID_PATTERN.search(context)

    return ObservedFact(
        source=Source.EBAY,
        order_id=order_match.group(1) if order_match else None,
        tracking_id=detected[0] if detected else None,
        carrier=detected[1] if detected else None,
        items=[OrderItem(name=name, quantity=find_quantity(context), price=price)],
        total=price,
        item_id=_item_id_from_href(link.get("href")),
    )


def _item_id_from_href(href: str | None) -> str | None:
    if not href:
        return None
    match = re.search(r"/itm/(?:[^/?#]+/)?(\d{9,})", href)
    return match.group(1) if match else None


def extract_purchase_history(html: str) -> list[ObservedFact]:
    """
    Extract one fact per item on an eBay purchase history page.

    Tracking numbers printed on the page outside any item card are handed out,
    in page order, to items that have none.

    Args:
        html: Saved page HTML

    Returns:
        Facts in page order, one per distinct item name
    """
    soup = parse_html(html)
    facts: list[ObservedFact] = []
    seen: set[str] = set()

    for link in soup.find_all("a", href=ITEM_LINK_PATTERN):
        fact = _fact_from_link(link)
        if fact is None or fact.primary_item_name in seen:
            continue
        seen.add(fact.primary_item_name)
        facts.append(fact)

    _attach_leftover_tracking(facts, text_of(soup))
    logger.info(
        "Extracted %d eBay items (%d with tracking)",
        len(facts),
        sum(1 for fact in facts if fact.tracking_id),
    )
    return facts


def _attach_leftover_tracking(facts: list[ObservedFact], page_text: str) -> None:
    claimed = {fact.tracking_id for fact in facts if fact.tracking_id}
    waiting = [fact for fact in facts if not fact.tracking_id]
    for tracking_id, carrier in find_all_tracking(page_text):
        if not waiting:
            return
        if tracking_id in claimed:
            continue
        fact = waiting.pop(0)
        fact.tracking_id = tracking_id
        fact.carrier = carrier
        claimed.add(tracking_id)
        logger.debug("Attached page tracking %s to item %s", tracking_id, fact.primary_item_name)


def extract_order_details(html: str, url: str | None = None) -> list[ObservedFact]:
    """
    Extract the order shown on an eBay order details page.

    Args:
        html: Saved page HTML
        url: Page URL; its orderId parameter names the order

    Returns:
        A single fact, or an empty list when neither tracking number nor item
        name could be found
    """
    soup = parse_html(html)
    text = text_of(soup)

    order_id = query_param(url, "orderId")
    if not order_id:
        match = ORDER_ID_PATTERN.search(text)
        order_id = match.group(1) if match else None

    name = None
    for link in soup.find_all("a", href=ITEM_LINK_PATTERN):
        candidate = squash_whitespace(link.get_text(" ", strip=True))
        if is_product_name(candidate, MIN_ITEM_NAME_CHARS, 300):
            name = candidate
            break
    if name is None:
        title = soup.find(has_class_fragment("item-title", "line-item-title"))
        if title is not None:
            name = squash_whitespace(title.get_text(" ", strip=True)) or None

    detected = detect_tracking(text)
    if detected is None and name is None:
        logger.info("No tracking number or item found on eBay order details page")
        return []

    price = Money.parse(find_price(text))
    items = [OrderItem(name=name, quantity=find_quantity(text), price=price)] if name else []
    return [
        ObservedFact(
            source=Source.EBAY,
            order_id=order_id,
            tracking_id=detected[0] if detected else None,
            carrier=(detect_carrier_name(text) or detected[1]) if detected else None,
            items=items,
            total=price,
        )
    ]


def extract_tracking_page(html: str, url: str | None = None) -> list[ObservedFact]:
    """
    Extract the tracking number from an eBay shipment tracking page.

    The item id comes from the URL's itemid parameter and is what links the
    tracking number to a purchase history record.

    Returns:
        A single fact, or an empty list when the page shows no tracking number
    """
    text = text_of(parse_html(html))
    detected = detect_tracking(text)
    if detected is None:
        logger.info("No tracking number found on eBay tracking page")
        return []

    tracking_id, carrier = detected
    return [
        ObservedFact(
            source=Source.EBAY,
            tracking_id=tracking_id,
            carrier=detect_carrier_name(text) or carrier,
            item_id=query_param(url, "itemid"),
        )
    ]


_is_dialog_class = has_class_fragment("modal", "lightbox", "overlay")


def _dialogs(soup) -> list[Tag]:
    found = [tag for tag in soup.find_all(True) if tag.get("role") == "dialog" or _is_dialog_class(tag)]
    found_ids = {id(tag) for tag in found}
    return [tag for tag in found if not any(id(parent) in found_ids for parent in tag.parents)]


def extract_tracking_modal(html: str, url: str | None = None) -> list[ObservedFact]:
    """
    Extract tracking numbers from shipment dialogs on a saved eBay page.

    Each outermost dialog (role="dialog", or a modal/lightbox/overlay class)
    contributes at most one tracking number. Only carrier-recognizable numbers
    count; the dialogs carry no order details.

    Args:
        html: Saved page HTML with the dialog open
        url: Page URL; an itemid parameter links the tracking to an item

    Returns:
        One fact per distinct tracking number found
    """
    item_id = query_param(url, "itemid")
    facts: list[ObservedFact] = []
    seen: set[str] = set()

    for dialog in _dialogs(parse_html(html)):
        detected = detect_tracking(text_of(dialog), CARRIER_PATTERNS)
        if detected is None or detected[0] in seen:
            continue
        tracking_id, carrier = detected
        seen.add(tracking_id)
        facts.append(ObservedFact(source=Source.EBAY, tracking_id=tracking_id, carrier=carrier, item_id=item_id))

    logger.info("Extracted %d tracking numbers from eBay dialogs", len(facts))
    return facts
