#!/usr/bin/env python3
"""
Tracking Number Lookup

Finds the record for a tracking number, for consumers such as the customs
declaration auto-fill. Captured orders and manual entries are both searched.
"""

import logging
from collections.abc import Iterable

from .models import OrderRecord
from .store import RecordStore, StoreSnapshot

logger = logging.getLogger(__name__)


class LookupService:
    """Read-only queries against the committed record state."""

    def __init__(self, store: RecordStore):
        self.store = store

    def find_by_tracking(self, tracking_id: str | None) -> OrderRecord | None:
        """
        Find the record a tracking number belongs to, ignoring case.

        The tracking index is authoritative and consulted first; records are
        then scanned directly for entries written without an index entry.

        Returns:
            Matching record, or None if the tracking number has not been seen
        """
        if not tracking_id or not tracking_id.strip():
            return None
        return _find(self.store.snapshot(), tracking_id.strip())

    def match_tracking_numbers(self, tracking_ids: Iterable[str]) -> dict[str, OrderRecord]:
        """
        Resolve several tracking numbers against one consistent snapshot.

        Returns:
            Mapping of each tracking number that has a record to that record
        """
        snapshot = self.store.snapshot()
        matches: dict[str, OrderRecord] = {}
        for tracking_id in tracking_ids:
            if not tracking_id or not tracking_id.strip():
                continue
            record = _find(snapshot, tracking_id.strip())
            if record is not None:
                matches[tracking_id] = record
        logger.debug("Matched %d tracking numbers to records", len(matches))
        return matches


def merged_entries(snapshot: StoreSnapshot) -> dict[str, OrderRecord]:
    """Captured orders overlaid with manual entries; a manual entry wins on an equal key."""
    return {**snapshot.all(), **snapshot.all_manual()}


def _find(snapshot: StoreSnapshot, tracking_id: str) -> OrderRecord | None:
    entries = merged_entries(snapshot)

    ref = snapshot.get_tracking(tracking_id)
    if ref is not None:
        record = entries.get(ref.key)
        if record is not None:
            return record
        logger.debug("Tracking %s points at missing record %s", tracking_id, ref.key)

    wanted = tracking_id.upper()
    for record in entries.values():
        if record.tracking_id and record.tracking_id.upper() == wanted:
            return record
    return None
