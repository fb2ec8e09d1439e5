#!/usr/bin/env python3
"""
Record Catalog

User-facing view of the store: captured orders merged with manual entries at
read time (the two mappings are never physically combined), search, counts,
clipboard text, manual entry, deletion, and tabular export.
"""

import logging
from dataclasses import dataclass

import pandas as pd

from ..core.currency import cents_to_dollars_str
from ..core.dates import to_iso_timestamp, utc_now
from ..core.money import Money
from .lookup import merged_entries
from .models import OrderItem, OrderRecord, Source
from .store import RecordStore

logger = logging.getLogger(__name__)

MANUAL_DESCRIPTION_DEFAULT = "Manual entry"

EXPORT_COLUMNS = [
    "key",
    "source",
    "order_id",
    "tracking_id",
    "carrier",
    "order_date",
    "item_name",
    "quantity",
    "price",
    "total",
    "last_updated",
]


@dataclass(frozen=True)
class CatalogStats:
    """Counts shown above the record list."""

    order_count: int
    tracking_count: int


def _search_text(record: OrderRecord) -> str:
    parts = [
        record.order_id,
        record.tracking_id,
        record.carrier.value if record.carrier else None,
        *(item.name for item in record.items),
    ]
    return " ".join(part for part in parts if part).lower()


def copy_text(record: OrderRecord) -> str:
    """
    Clipboard text for filling a declaration by hand.

    One block per item (name, quantity, value); an order with no items but a
    total yields just the value line.
    """
    lines: list[str] = []
    for item in record.items:
        lines.append(item.name)
        lines.append(f"Qty: {item.quantity}")
        if item.price is not None:
            lines.append(f"Value: {item.price}")

    if record.total is not None and not record.items:
        lines.append(f"Value: {record.total}")

    return "\n".join(lines)


class Catalog:
    """Merged read view plus user-initiated edits of the record store."""

    def __init__(self, store: RecordStore, clock=utc_now):
        self.store = store
        self.clock = clock

    def entries(self) -> dict[str, OrderRecord]:
        """All records by key: captured orders overlaid with manual entries."""
        return merged_entries(self.store.snapshot())

    def listing(self, query: str | None = None) -> list[OrderRecord]:
        """
        Records sorted most recently updated first.

        Args:
            query: Optional case-insensitive filter over order id, tracking id,
                carrier and item names
        """
        records = list(self.entries().values())
        needle = (query or "").strip().lower()
        if needle:
            records = [record for record in records if needle in _search_text(record)]
        return sorted(records, key=lambda record: record.last_updated, reverse=True)

    def stats(self) -> CatalogStats:
        """Number of records and how many of them carry a tracking number."""
        records = self.entries().values()
        return CatalogStats(
            order_count=len(records),
            tracking_count=sum(1 for record in records if record.tracking_id),
        )

    def add_manual_entry(
        self,
        tracking_id: str,
        description: str | None = None,
        quantity: int = 1,
        value: str | None = None,
    ) -> OrderRecord:
        """
        Store a user-entered record keyed by its tracking number.

        Raises:
            ValueError: If the tracking number is blank or quantity is below 1
            StoreWriteError: If persisting fails
        """
        tracking = (tracking_id or "").strip()
        if not tracking:
            raise ValueError("A tracking number is required for a manual entry")

        price = Money.parse(value)
        item = OrderItem(
            name=(description or "").strip() or MANUAL_DESCRIPTION_DEFAULT,
            quantity=quantity,
            price=price,
        )
        record = OrderRecord(
            key=tracking,
            source=Source.MANUAL,
            last_updated=self.clock(),
            tracking_id=tracking,
            items=[item],
            total=price,
        )

        with self.store.transaction() as working:
            working.put_manual(tracking, record)

        logger.info("Saved manual entry for tracking %s", tracking)
        return record

    def delete(self, key: str) -> bool:
        """
        Delete a record from both captured orders and manual entries.

        Tracking index entries pointing at the key are dropped as well.

        Returns:
            True if anything was deleted
        """
        with self.store.transaction() as working:
            removed_order = working.delete(key)
            removed_manual = working.delete_manual(key)
            for ref in working.refs_for_key(key):
                working.delete_tracking(ref.tracking_id)

        deleted = removed_order is not None or removed_manual is not None
        if deleted:
            logger.info("Deleted record %s", key)
        return deleted

    def clear_all(self) -> int:
        """
        Delete every captured order and manual entry.

        The tracking index is emptied too, since every entry would dangle.

        Returns:
            Number of records removed
        """
        with self.store.transaction() as working:
            count = len(working.all()) + len(working.all_manual())
            for key in working.all():
                working.delete(key)
            for key in working.all_manual():
                working.delete_manual(key)
            for tracking_id in working.all_tracking():
                working.delete_tracking(tracking_id)
            count += working.discard_unparsed()

        logger.info("Cleared %d records", count)
        return count

    def to_dataframe(self) -> pd.DataFrame:
        """One row per item (or per record without items), most recent first."""
        rows = []
        for record in self.listing():
            base = {
                "key": record.key,
                "source": record.source.value,
                "order_id": record.order_id,
                "tracking_id": record.tracking_id,
                "carrier": record.carrier.value if record.carrier else None,
                "order_date": record.order_date.to_iso_string() if record.order_date else None,
                "total": _dollars(record.total),
                "last_updated": to_iso_timestamp(record.last_updated),
            }
            items: list[OrderItem | None] = list(record.items) or [None]
            for item in items:
                rows.append(
                    {
                        **base,
                        "item_name": item.name if item else None,
                        "quantity": item.quantity if item else None,
                        "price": _dollars(item.price) if item else None,
                    }
                )
        return pd.DataFrame(rows, columns=EXPORT_COLUMNS)


def _dollars(amount: Money | None) -> str | None:
    return cents_to_dollars_str(amount.to_cents()) if amount is not None else None
