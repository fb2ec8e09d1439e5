#!/usr/bin/env python3
"""
Record Reconciler

Merges observed facts into the record store:

1. Match the fact to an existing record (RecordMatcher), or choose a new key.
2. Merge scalar fields non-destructively: a present incoming value overwrites,
   an absent one never erases.
3. Replace the item list only when the fact carries items; item lists are
   scraped as complete snapshots, so a later list supersedes an earlier one.
4. Promote the record to a better key when the fact supplies one (an order id
   arriving for a record created under its tracking number).
5. Absorb other records the fact proves to be the same shipment.
6. Point the tracking index entry for the fact's tracking id at the result.

Every reconcile is one serialized store transaction.
"""

import dataclasses
import logging
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import TYPE_CHECKING

from ..core.dates import utc_now
from .keys import fact_key_rank, generate_key, record_key_rank
from .matcher import RecordMatcher
from .models import ObservedFact, OrderRecord, TrackingRef
from .store import RecordStore, StoreSnapshot

if TYPE_CHECKING:
    from ..core.config import Config

logger = logging.getLogger(__name__)

SCALAR_FIELDS = ("order_id", "tracking_id", "carrier", "total", "order_date", "item_id")


def merge_fact(record: OrderRecord, fact: ObservedFact, now: datetime) -> OrderRecord:
    """
    Apply a fact to a record, returning the updated copy.

    Args:
        record: Stored record (not modified)
        fact: Incoming observation
        now: Update timestamp

    Returns:
        New OrderRecord with the fact's present fields applied
    """
    updated = record.copy()
    for name in SCALAR_FIELDS:
        value = getattr(fact, name)
        if value is not None:
            setattr(updated, name, value)

    if fact.items:
        updated.items = [dataclasses.replace(item) for item in fact.items]

    updated.source = fact.source
    updated.last_updated = now
    return updated


def overlay_record(base: OrderRecord, winner: OrderRecord) -> OrderRecord:
    """
    Combine two records describing the same order.

    The winner's present fields take precedence; the base fills the gaps.
    The result keeps the base's key.
    """
    combined = base.copy()
    for name in SCALAR_FIELDS:
        value = getattr(winner, name)
        if value is not None:
            setattr(combined, name, value)
    if winner.items:
        combined.items = [dataclasses.replace(item) for item in winner.items]
    combined.source = winner.source
    combined.last_updated = max(base.last_updated, winner.last_updated)
    return combined


class Reconciler:
    """
    Reconciles facts into a RecordStore.

    Args:
        store: Record store to update
        matcher: Matching policy (default tiers if omitted)
        clock: Source of "now"; injectable for tests
    """

    def __init__(
        self,
        store: RecordStore,
        matcher: RecordMatcher | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.matcher = matcher or RecordMatcher()
        self.clock = clock

    @classmethod
    def from_config(cls, config: "Config", store: RecordStore | None = None) -> "Reconciler":
        """Create a reconciler using the configured store and fuzzy prefix length."""
        return cls(
            store if store is not None else RecordStore.from_config(config),
            RecordMatcher(fuzzy_prefix_length=config.matching.fuzzy_prefix_length),
        )

    def reconcile(self, fact: ObservedFact, bulk: bool = False) -> str | None:
        """
        Merge one fact into the store.

        Args:
            fact: Incoming observation
            bulk: Whether the fact is one of several items from a page scan
                (synthetic keys are then derived from the item name)

        Returns:
            Key of the record the fact ended up in, or None if the fact has
            nothing to key or match on (the store is left untouched)

        Raises:
            StoreWriteError: If persisting the result fails
        """
        if not fact.is_reconcilable:
            logger.debug("Skipping %s fact with no order id, tracking id or item name", fact.source.value)
            return None

        with self.store.transaction() as working:
            key = self._apply(working, fact, bulk)

        logger.info("Reconciled %s fact into record %s", fact.source.value, key)
        return key

    def reconcile_many(self, facts: Iterable[ObservedFact], bulk: bool = True) -> list[str | None]:
        """
        Reconcile an ordered sequence of facts, one transaction each.

        Returns:
            Resolved keys in input order (None for skipped facts)
        """
        return [self.reconcile(fact, bulk=bulk) for fact in facts]

    def _apply(self, working: StoreSnapshot, fact: ObservedFact, bulk: bool) -> str:
        now = self.clock()
        existing_key = self.matcher.match(fact, working)
        candidate = generate_key(fact, now, taken=working, bulk=bulk)

        # An order/tracking key already in use is the same record even if no tier saw it
        if existing_key is None and candidate in working:
            existing_key = candidate

        if existing_key is None:
            target = candidate
            record = OrderRecord(key=target, source=fact.source, last_updated=now)
        else:
            target = existing_key
            record = _require(working, existing_key)
            if candidate != existing_key and fact_key_rank(fact) > record_key_rank(record):
                record = self._promote(working, record, candidate)
                target = candidate

        working.put(target, merge_fact(record, fact, now))

        if fact.tracking_id:
            self._absorb_duplicates(working, target, fact.tracking_id)
            merged = _require(working, target)
            working.put_tracking(
                TrackingRef(
                    tracking_id=fact.tracking_id,
                    key=target,
                    carrier=fact.carrier or merged.carrier,
                    source=fact.source,
                    captured_at=now,
                )
            )

        return target

    def _promote(self, working: StoreSnapshot, record: OrderRecord, new_key: str) -> OrderRecord:
        """Move a record to a better key, merging with any record already there."""
        old_key = record.key
        moved = record.copy(key=new_key)
        occupant = working.get(new_key)
        if occupant is not None:
            moved = overlay_record(moved, occupant)

        working.delete(old_key)
        working.put(new_key, moved)
        _repoint_refs(working, old_key, new_key)
        logger.info("Promoted record %s to key %s", old_key, new_key)
        return moved

    def _absorb_duplicates(self, working: StoreSnapshot, target: str, tracking_id: str) -> None:
        """
        Fold other records holding this tracking id into the target.

        A record with a different order id is a distinct order that was wrongly
        associated with the shipment; it keeps its data but loses the tracking id,
        which now belongs to the target.
        """
        wanted = tracking_id.upper()
        others = [
            key
            for key, record in working.all().items()
            if key != target and record.tracking_id and record.tracking_id.upper() == wanted
        ]
        ref = working.get_tracking(tracking_id)
        if ref is not None and ref.key != target and ref.key in working and ref.key not in others:
            others.append(ref.key)

        for key in others:
            target_record = _require(working, target)
            other = _require(working, key)

            if other.order_id and target_record.order_id and other.order_id != target_record.order_id:
                if other.tracking_id and other.tracking_id.upper() == wanted:
                    working.put(key, other.copy(tracking_id=None, carrier=None))
                    logger.info("Detached tracking %s from record %s", tracking_id, key)
                continue

            working.delete(key)
            working.put(target, overlay_record(other.copy(key=target), target_record))
            _repoint_refs(working, key, target)
            logger.info("Absorbed record %s into %s", key, target)


def _require(working: StoreSnapshot, key: str) -> OrderRecord:
    """Record stored under key; its absence means the working copy is inconsistent."""
    record = working.get(key)
    if record is None:
        raise RuntimeError(f"Record {key!r} disappeared from the working store")
    return record


def _repoint_refs(working: StoreSnapshot, old_key: str, new_key: str) -> None:
    """Rewrite tracking index entries that referenced old_key."""
    for ref in working.refs_for_key(old_key):
        working.put_tracking(dataclasses.replace(ref, key=new_key))
