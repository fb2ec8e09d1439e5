#!/usr/bin/env python3
"""
Record Store

StoreSnapshot holds the three keyed mappings (orders, tracking index, manual
entries). RecordStore owns the committed snapshot and its persistence backend,
and is the only way to change them: every mutation runs inside
RecordStore.transaction(), a FIFO single-writer critical section that re-reads
the persisted document, applies the change to a private working copy, writes
the full document back, and only then publishes the copy to readers.
"""

import copy
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from ..core.datastore import DataStore
from ..core.serial import SerialWriter
from .datastore import DOCUMENT_SECTIONS, JsonStoreFile, MemoryStoreBackend
from .models import OrderRecord, TrackingRef

if TYPE_CHECKING:
    from ..core.config import Config

logger = logging.getLogger(__name__)


class StoreWriteError(RuntimeError):
    """Persisting the record document failed; the committed state is unchanged."""


class StoreSnapshot:
    """
    One consistent state of the record store.

    Orders and manual entries are keyed by record key. The tracking index is
    keyed by tracking number as first written; lookups on it ignore case and
    at most one entry exists per tracking number regardless of case.
    """

    def __init__(
        self,
        orders: dict[str, OrderRecord] | None = None,
        tracking: dict[str, TrackingRef] | None = None,
        manual: dict[str, OrderRecord] | None = None,
    ):
        self._orders: dict[str, OrderRecord] = dict(orders or {})
        self._tracking: dict[str, TrackingRef] = dict(tracking or {})
        self._manual: dict[str, OrderRecord] = dict(manual or {})
        # Raw entries that could not be parsed, by document section; written back untouched
        self._unparsed: dict[str, dict[str, Any]] = {section: {} for section in DOCUMENT_SECTIONS}

    # Orders

    def get(self, key: str) -> OrderRecord | None:
        return self._orders.get(key)

    def put(self, key: str, record: OrderRecord) -> None:
        if record.key != key:
            raise ValueError(f"Record key {record.key!r} does not match store key {key!r}")
        self._orders[key] = record
        self._unparsed["orders"].pop(key, None)

    def delete(self, key: str) -> OrderRecord | None:
        self._unparsed["orders"].pop(key, None)
        return self._orders.pop(key, None)

    def all(self) -> dict[str, OrderRecord]:
        return dict(self._orders)

    def __contains__(self, key: object) -> bool:
        return key in self._orders

    def __len__(self) -> int:
        return len(self._orders)

    # Tracking index

    def _tracking_slot(self, tracking_id: str) -> str | None:
        """Stored index key equal to tracking_id ignoring case."""
        if tracking_id in self._tracking:
            return tracking_id
        wanted = tracking_id.upper()
        for stored in self._tracking:
            if stored.upper() == wanted:
                return stored
        return None

    def get_tracking(self, tracking_id: str) -> TrackingRef | None:
        slot = self._tracking_slot(tracking_id)
        return self._tracking[slot] if slot is not None else None

    def put_tracking(self, ref: TrackingRef) -> None:
        slot = self._tracking_slot(ref.tracking_id)
        if slot is not None:
            del self._tracking[slot]
        self._tracking[ref.tracking_id] = ref
        self._drop_unparsed_tracking(ref.tracking_id)

    def delete_tracking(self, tracking_id: str) -> TrackingRef | None:
        self._drop_unparsed_tracking(tracking_id)
        slot = self._tracking_slot(tracking_id)
        return self._tracking.pop(slot) if slot is not None else None

    def _drop_unparsed_tracking(self, tracking_id: str) -> None:
        wanted = tracking_id.upper()
        unparsed = self._unparsed["trackingMap"]
        for stored in [stored for stored in unparsed if stored.upper() == wanted]:
            del unparsed[stored]

    def all_tracking(self) -> dict[str, TrackingRef]:
        return dict(self._tracking)

    def refs_for_key(self, key: str) -> list[TrackingRef]:
        """Tracking refs pointing at a record key."""
        return [ref for ref in self._tracking.values() if ref.key == key]

    # Manual entries

    def get_manual(self, key: str) -> OrderRecord | None:
        return self._manual.get(key)

    def put_manual(self, key: str, record: OrderRecord) -> None:
        if record.key != key:
            raise ValueError(f"Record key {record.key!r} does not match store key {key!r}")
        self._manual[key] = record
        self._unparsed["manualEntries"].pop(key, None)

    def delete_manual(self, key: str) -> OrderRecord | None:
        self._unparsed["manualEntries"].pop(key, None)
        return self._manual.pop(key, None)

    def all_manual(self) -> dict[str, OrderRecord]:
        return dict(self._manual)

    # Unreadable entries

    def unparsed(self, section: str) -> dict[str, Any]:
        """Raw entries of a document section that could not be parsed."""
        return copy.deepcopy(self._unparsed[section])

    def discard_unparsed(self) -> int:
        """
        Drop every unreadable entry.

        Returns:
            Number of unreadable orders and manual entries dropped
        """
        count = len(self._unparsed["orders"]) + len(self._unparsed["manualEntries"])
        for section in self._unparsed.values():
            section.clear()
        return count

    # Serialization

    def to_document(self) -> dict[str, Any]:
        """
        Convert to the persisted document layout.

        Entries that could not be parsed on load are written back as they were.
        """
        document = {section: copy.deepcopy(entries) for section, entries in self._unparsed.items()}
        document["orders"].update((key, record.to_dict()) for key, record in self._orders.items())
        document["trackingMap"].update((tid, ref.to_dict()) for tid, ref in self._tracking.items())
        document["manualEntries"].update((key, record.to_dict()) for key, record in self._manual.items())
        return document

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "StoreSnapshot":
        """
        Build a snapshot from the persisted document layout.

        Malformed individual entries are left out of the parsed mappings with a
        warning, so one bad record does not make the whole store unreadable.
        Their raw data is kept and written back by to_document().

        Raises:
            ValueError: If the document is not a dictionary
        """
        if not isinstance(document, dict):
            raise ValueError(f"Record document must be a dict, got {type(document).__name__}")

        snapshot = cls()

        for key, data in (document.get("orders") or {}).items():
            try:
                snapshot._orders[key] = OrderRecord.from_dict(key, data)
            except (ValueError, TypeError, AttributeError) as e:
                logger.warning("Skipping malformed order %s: %s", key, e)
                snapshot._unparsed["orders"][key] = copy.deepcopy(data)

        for tracking_id, data in (document.get("trackingMap") or {}).items():
            try:
                snapshot.put_tracking(TrackingRef.from_dict(tracking_id, data))
            except (ValueError, TypeError, AttributeError) as e:
                logger.warning("Skipping malformed tracking entry %s: %s", tracking_id, e)
                snapshot._unparsed["trackingMap"][tracking_id] = copy.deepcopy(data)

        for key, data in (document.get("manualEntries") or {}).items():
            try:
                snapshot._manual[key] = OrderRecord.from_dict(key, data)
            except (ValueError, TypeError, AttributeError) as e:
                logger.warning("Skipping malformed manual entry %s: %s", key, e)
                snapshot._unparsed["manualEntries"][key] = copy.deepcopy(data)

        return snapshot


class RecordStore:
    """
    Owner of the committed record state.

    Reads (snapshot(), get(), all(), ...) never wait and see the last committed
    snapshot; treat returned snapshots as read-only. Writes go through
    transaction(), one at a time in arrival order.
    """

    def __init__(self, backend: DataStore[dict[str, Any]] | None = None, name: str = "records"):
        self.backend = backend if backend is not None else MemoryStoreBackend()
        self._writer = SerialWriter(name)
        self._committed = self._read_backend()

    @classmethod
    def from_config(cls, config: "Config") -> "RecordStore":
        """Create a store backed by the configured JSON file."""
        return cls(JsonStoreFile(config.storage.store_file))

    def _read_backend(self) -> StoreSnapshot:
        return StoreSnapshot.from_document(self.backend.load())

    def snapshot(self) -> StoreSnapshot:
        """The last committed snapshot."""
        return self._committed

    @contextmanager
    def transaction(self) -> Iterator[StoreSnapshot]:
        """
        Serialized read-modify-write of the whole store.

        Yields a working copy of the persisted state. On normal exit the copy is
        written to the backend and becomes the committed snapshot; if the block
        raises, nothing is written.

        Raises:
            StoreWriteError: If the backend write fails
        """
        with self._writer.turn():
            working = self._read_backend()
            yield working
            try:
                self.backend.save(working.to_document())
            except (OSError, TypeError, ValueError) as e:
                logger.error("Record store write failed: %s", e)
                raise StoreWriteError(f"Could not persist record store: {e}") from e
            self._committed = working

    # Single-operation conveniences

    def get(self, key: str) -> OrderRecord | None:
        return self._committed.get(key)

    def all(self) -> dict[str, OrderRecord]:
        return self._committed.all()

    def put(self, record: OrderRecord) -> None:
        with self.transaction() as working:
            working.put(record.key, record)

    def delete(self, key: str) -> bool:
        with self.transaction() as working:
            return working.delete(key) is not None

    def get_tracking(self, tracking_id: str) -> TrackingRef | None:
        return self._committed.get_tracking(tracking_id)

    def put_tracking(self, ref: TrackingRef) -> None:
        with self.transaction() as working:
            working.put_tracking(ref)

    def delete_tracking(self, tracking_id: str) -> bool:
        with self.transaction() as working:
            return working.delete_tracking(tracking_id) is not None
