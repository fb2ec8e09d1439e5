#!/usr/bin/env python3
"""
Record Key Generation

A record's key is chosen once, from the most identifying information the
first fact carries: order id, then tracking id, then a synthetic key.
"""

import re
from collections.abc import Container
from datetime import datetime
from enum import IntEnum

from ..core.dates import epoch_millis
from .models import ObservedFact, OrderRecord

SLUG_MAX_CHARS = 30
_NON_WORD = re.compile(r"\W", re.UNICODE)


class KeyRank(IntEnum):
    """How authoritative a key is; promotion only moves a record upward."""

    SYNTHETIC = 1
    TRACKING = 2
    ORDER = 3


def slugify_item_name(name: str) -> str:
    """
    Compact an item name into a key fragment.

    Takes the first 30 characters and drops every non-word character.

    Example:
        slugify_item_name("USB-C Cable, 6ft (2 pack)") -> "USBCCable6ft2pack"
    """
    return _NON_WORD.sub("", name[:SLUG_MAX_CHARS])


def generate_key(
    fact: ObservedFact,
    now: datetime,
    taken: Container[str] = (),
    bulk: bool = False,
) -> str:
    """
    Choose the key a new record for this fact would be stored under.

    Priority: order id, tracking id, then for bulk scans
    "{source}-{slugified item name}", otherwise "{source}-{epoch millis}".
    Synthetic keys that collide with an existing key get a numeric suffix.

    Args:
        fact: Incoming observation
        now: Current time (the time component of synthetic keys)
        taken: Keys already in use
        bulk: Whether the fact comes from a multi-item page scan
    """
    if fact.order_id:
        return fact.order_id
    if fact.tracking_id:
        return fact.tracking_id

    source = fact.source.value
    slug = slugify_item_name(fact.primary_item_name or "") if bulk else ""
    base = f"{source}-{slug}" if slug else f"{source}-{epoch_millis(now)}"

    candidate = base
    suffix = 1
    while candidate in taken:
        suffix += 1
        candidate = f"{base}-{suffix}"
    return candidate


def fact_key_rank(fact: ObservedFact) -> KeyRank:
    """Rank of the key generate_key would build for this fact."""
    if fact.order_id:
        return KeyRank.ORDER
    if fact.tracking_id:
        return KeyRank.TRACKING
    return KeyRank.SYNTHETIC


def record_key_rank(record: OrderRecord) -> KeyRank:
    """Rank of the key a stored record currently lives under."""
    if record.order_id and record.key == record.order_id:
        return KeyRank.ORDER
    if record.tracking_id and record.key.upper() == record.tracking_id.upper():
        return KeyRank.TRACKING
    return KeyRank.SYNTHETIC
