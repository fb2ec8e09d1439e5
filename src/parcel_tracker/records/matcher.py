#!/usr/bin/env python3
"""
Record Matcher

Decides which existing record, if any, an incoming fact belongs to. The
policy is an ordered list of tiers, each a function (fact, snapshot) -> key;
the first tier returning a key wins and later tiers are not consulted:

1. Exact order id
2. Tracking id (case-insensitive, records and tracking index)
3. Site item id contained in a record's key (sources without order ids)
4. Fuzzy item-name prefix containment

Tier 4 is a heuristic, not an identity test: the prefix length trades false
positives for recall against truncated or reformatted product titles.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from .models import ObservedFact
from .store import StoreSnapshot

logger = logging.getLogger(__name__)

DEFAULT_FUZZY_PREFIX_LENGTH = 20

MatchTier = Callable[[ObservedFact, StoreSnapshot], "str | None"]


def match_order_id(fact: ObservedFact, snapshot: StoreSnapshot) -> str | None:
    """Tier 1: a record whose order id equals the fact's."""
    if not fact.order_id:
        return None
    for key, record in snapshot.all().items():
        if record.order_id == fact.order_id:
            return key
    return None


def match_tracking_id(fact: ObservedFact, snapshot: StoreSnapshot) -> str | None:
    """Tier 2: a record holding the fact's tracking id, or an index entry for it."""
    if not fact.tracking_id:
        return None
    wanted = fact.tracking_id.upper()
    for key, record in snapshot.all().items():
        if record.tracking_id and record.tracking_id.upper() == wanted:
            return key

    ref = snapshot.get_tracking(fact.tracking_id)
    if ref is not None and ref.key in snapshot:
        return ref.key
    return None


def match_item_id(fact: ObservedFact, snapshot: StoreSnapshot) -> str | None:
    """Tier 3: a record carrying the fact's site item id, or keyed by a string containing it."""
    if not fact.item_id:
        return None
    for key, record in snapshot.all().items():
        if record.item_id == fact.item_id or fact.item_id in key:
            return key
    return None


@dataclass
class ItemNameMatch:
    """Tier 4: primary item name prefix containment, in either direction."""

    prefix_length: int = DEFAULT_FUZZY_PREFIX_LENGTH

    def __post_init__(self) -> None:
        if self.prefix_length <= 0:
            raise ValueError(f"prefix_length must be positive, got {self.prefix_length}")

    def __call__(self, fact: ObservedFact, snapshot: StoreSnapshot) -> str | None:
        name = fact.primary_item_name
        if not name:
            return None
        prefix = name[: self.prefix_length]
        for key, record in snapshot.all().items():
            stored = record.primary_item_name
            if not stored:
                continue
            if prefix in stored or stored[: self.prefix_length] in name:
                return key
        return None


class RecordMatcher:
    """
    Ordered matching policy.

    Args:
        tiers: Tier functions tried in order. Defaults to order id, tracking id,
            item id, then fuzzy item name with fuzzy_prefix_length characters.
        fuzzy_prefix_length: Prefix length for the default fuzzy tier
    """

    def __init__(
        self,
        tiers: Sequence[MatchTier] | None = None,
        fuzzy_prefix_length: int = DEFAULT_FUZZY_PREFIX_LENGTH,
    ):
        if tiers is None:
            tiers = (
                match_order_id,
                match_tracking_id,
                match_item_id,
                ItemNameMatch(fuzzy_prefix_length),
            )
        self.tiers: tuple[MatchTier, ...] = tuple(tiers)

    def match(self, fact: ObservedFact, snapshot: StoreSnapshot) -> str | None:
        """
        Find the key of the record this fact belongs to.

        Returns:
            Matching record key, or None if no tier matched
        """
        for tier in self.tiers:
            key = tier(fact, snapshot)
            if key is not None:
                logger.debug("Fact matched record %s via %s", key, _tier_name(tier))
                return key
        return None


def _tier_name(tier: MatchTier) -> str:
    return getattr(tier, "__name__", type(tier).__name__)
