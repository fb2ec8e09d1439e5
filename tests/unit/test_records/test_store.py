#!/usr/bin/env python3
"""Tests for the record store and its snapshots."""

import threading
from datetime import datetime, timezone

import pytest

from parcel_tracker.records.datastore import JsonStoreFile, MemoryStoreBackend
from parcel_tracker.records.models import Carrier, ObservedFact, OrderItem, OrderRecord, Source, TrackingRef
from parcel_tracker.records.reconciler import Reconciler
from parcel_tracker.records.store import RecordStore, StoreSnapshot, StoreWriteError
from tests.fixtures import SlowMemoryBackend

NOW = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)
LEGACY_ORDER_ID = "111-0000000-0000000"


def _record(key: str, **fields) -> OrderRecord:
    return OrderRecord(key=key, source=Source.AMAZON, last_updated=NOW, **fields)


def _ref(tracking_id: str, key: str) -> TrackingRef:
    return TrackingRef(tracking_id=tracking_id, key=key, source=Source.AMAZON, captured_at=NOW)


@pytest.mark.records
class TestStoreSnapshot:
    """Test the three keyed mappings."""

    def test_put_requires_matching_key(self):
        snapshot = StoreSnapshot()
        with pytest.raises(ValueError, match="does not match"):
            snapshot.put("other", _record("111-1234567-1234567"))
        with pytest.raises(ValueError, match="does not match"):
            snapshot.put_manual("other", _record("1Z999AA10123456784"))

    def test_order_mapping(self):
        snapshot = StoreSnapshot()
        snapshot.put("A", _record("A"))

        assert "A" in snapshot
        assert len(snapshot) == 1
        assert snapshot.get("A").key == "A"
        assert snapshot.delete("A").key == "A"
        assert snapshot.delete("A") is None
        assert snapshot.get("A") is None

    def test_tracking_index_ignores_case(self):
        snapshot = StoreSnapshot()
        snapshot.put_tracking(_ref("1Z999AA10123456784", "A"))

        assert snapshot.get_tracking("1z999aa10123456784").key == "A"

        # A differently-cased write replaces the entry instead of adding one
        snapshot.put_tracking(_ref("1z999aa10123456784", "B"))
        assert list(snapshot.all_tracking()) == ["1z999aa10123456784"]
        assert snapshot.get_tracking("1Z999AA10123456784").key == "B"

        assert snapshot.delete_tracking("1Z999AA10123456784") is not None
        assert snapshot.all_tracking() == {}

    def test_refs_for_key(self):
        snapshot = StoreSnapshot()
        snapshot.put_tracking(_ref("T1", "A"))
        snapshot.put_tracking(_ref("T2", "A"))
        snapshot.put_tracking(_ref("T3", "B"))

        assert sorted(ref.tracking_id for ref in snapshot.refs_for_key("A")) == ["T1", "T2"]

    def test_all_returns_copies_of_mappings(self):
        snapshot = StoreSnapshot()
        snapshot.put("A", _record("A"))
        snapshot.all().clear()
        assert "A" in snapshot

    def test_document_round_trip(self):
        snapshot = StoreSnapshot()
        snapshot.put("111-1234567-1234567", _record("111-1234567-1234567", order_id="111-1234567-1234567"))
        snapshot.put_tracking(_ref("1Z999AA10123456784", "111-1234567-1234567"))
        snapshot.put_manual("TBA123456789012", _record("TBA123456789012", tracking_id="TBA123456789012"))

        document = snapshot.to_document()
        assert set(document) == {"orders", "trackingMap", "manualEntries"}

        restored = StoreSnapshot.from_document(document)
        assert restored.all() == snapshot.all()
        assert restored.all_tracking() == snapshot.all_tracking()
        assert restored.all_manual() == snapshot.all_manual()

    def test_malformed_entries_skipped(self, caplog):
        document = {
            "orders": {
                "good": {"orderId": "good", "source": "amazon"},
                "bad": {"items": "not-a-list"},
            },
            "trackingMap": {},
            "manualEntries": {},
        }
        snapshot = StoreSnapshot.from_document(document)

        assert list(snapshot.all()) == ["good"]
        assert "Skipping malformed order bad" in caplog.text

    def test_malformed_entries_written_back(self):
        bad_order = {"orderId": "bad", "items": "not-a-list"}
        bad_manual = {"items": [{"name": "Desk Lamp", "quantity": "many"}]}
        document = {
            "orders": {"bad": bad_order},
            "trackingMap": {"1Z999AA10123456784": "not-a-dict"},
            "manualEntries": {"lamp": bad_manual},
        }
        snapshot = StoreSnapshot.from_document(document)

        assert snapshot.all() == {}
        assert snapshot.unparsed("orders") == {"bad": bad_order}

        written = snapshot.to_document()
        assert written["orders"] == {"bad": bad_order}
        assert written["trackingMap"] == {"1Z999AA10123456784": "not-a-dict"}
        assert written["manualEntries"] == {"lamp": bad_manual}

    def test_unreadable_timestamps_fall_back(self):
        document = {
            "orders": {
                LEGACY_ORDER_ID: {"orderId": LEGACY_ORDER_ID, "source": "amazon", "lastUpdated": "Mon Jan 15 2024"}
            },
            "trackingMap": {"1Z999AA10123456784": {"key": LEGACY_ORDER_ID, "capturedAt": "yesterday"}},
            "manualEntries": {},
        }
        snapshot = StoreSnapshot.from_document(document)

        record = snapshot.get(LEGACY_ORDER_ID)
        assert record.order_id == LEGACY_ORDER_ID
        assert record.last_updated.tzinfo is not None
        assert snapshot.get_tracking("1Z999AA10123456784").key == LEGACY_ORDER_ID
        assert snapshot.unparsed("orders") == {}

    def test_replacing_or_deleting_drops_raw_entry(self):
        snapshot = StoreSnapshot.from_document({"orders": {"bad": {"items": "not-a-list"}}})

        snapshot.put("bad", _record("bad", order_id="bad"))
        assert snapshot.to_document()["orders"]["bad"]["orderId"] == "bad"
        assert snapshot.unparsed("orders") == {}

        snapshot = StoreSnapshot.from_document({"orders": {"bad": {"items": "not-a-list"}}})
        assert snapshot.delete("bad") is None
        assert snapshot.to_document()["orders"] == {}

    def test_discard_unparsed(self):
        snapshot = StoreSnapshot.from_document(
            {
                "orders": {"bad": {"items": "not-a-list"}},
                "trackingMap": {"T1": "not-a-dict"},
                "manualEntries": {"lamp": "not-a-dict"},
            }
        )

        assert snapshot.discard_unparsed() == 2
        assert snapshot.to_document() == {"orders": {}, "trackingMap": {}, "manualEntries": {}}

    def test_non_dict_document_rejected(self):
        with pytest.raises(ValueError):
            StoreSnapshot.from_document(["orders"])


@pytest.mark.records
class TestRecordStoreTransactions:
    """Test serialized read-modify-write transactions."""

    def test_commit_publishes_and_persists(self):
        backend = MemoryStoreBackend()
        store = RecordStore(backend)

        with store.transaction() as working:
            working.put("A", _record("A"))
            # Readers keep seeing the committed state until the block ends
            assert store.get("A") is None

        assert store.get("A").key == "A"
        assert backend.save_count == 1
        assert "A" in backend.load()["orders"]

    def test_exception_in_block_writes_nothing(self):
        backend = MemoryStoreBackend()
        store = RecordStore(backend)

        with pytest.raises(RuntimeError):
            with store.transaction() as working:
                working.put("A", _record("A"))
                raise RuntimeError("abandon")

        assert store.all() == {}
        assert backend.save_count == 0

    def test_write_failure_raises_and_keeps_committed_state(self):
        backend = MemoryStoreBackend()
        store = RecordStore(backend)
        store.put(_record("A"))

        backend.fail_writes = True
        with pytest.raises(StoreWriteError, match="Could not persist"):
            with store.transaction() as working:
                working.put("B", _record("B"))

        assert list(store.all()) == ["A"]
        assert list(RecordStore(backend).all()) == ["A"]

    def test_single_operation_wrappers(self):
        store = RecordStore()
        store.put(_record("A", carrier=Carrier.UPS))
        store.put_tracking(_ref("1Z999AA10123456784", "A"))

        assert store.get_tracking("1z999aa10123456784").key == "A"
        assert store.delete_tracking("1Z999AA10123456784") is True
        assert store.delete_tracking("1Z999AA10123456784") is False
        assert store.delete("A") is True
        assert store.delete("A") is False

    def test_unrelated_write_keeps_malformed_entry(self, clock):
        raw = {"orderId": LEGACY_ORDER_ID, "items": "not-a-list", "lastUpdated": "Mon Jan 15 2024"}
        backend = MemoryStoreBackend({"orders": {LEGACY_ORDER_ID: raw}, "trackingMap": {}, "manualEntries": {}})
        store = RecordStore(backend)

        Reconciler(store, clock=clock).reconcile(ObservedFact(source=Source.AMAZON, order_id="999-1111111-2222222"))

        saved = backend.load()["orders"]
        assert saved[LEGACY_ORDER_ID] == raw
        assert "999-1111111-2222222" in saved

    def test_unrelated_write_keeps_record_with_unreadable_timestamp(self, clock):
        raw = {"orderId": LEGACY_ORDER_ID, "source": "amazon", "lastUpdated": "Mon Jan 15 2024"}
        backend = MemoryStoreBackend({"orders": {LEGACY_ORDER_ID: raw}, "trackingMap": {}, "manualEntries": {}})
        store = RecordStore(backend)

        Reconciler(store, clock=clock).reconcile(ObservedFact(source=Source.AMAZON, order_id="999-1111111-2222222"))

        assert set(backend.load()["orders"]) == {LEGACY_ORDER_ID, "999-1111111-2222222"}
        assert store.get(LEGACY_ORDER_ID).order_id == LEGACY_ORDER_ID

    def test_transaction_rereads_persisted_document(self, temp_dir):
        """Test that a second store on the same file does not clobber the first's writes."""
        path = temp_dir / "store.json"
        first = RecordStore(JsonStoreFile(path))
        second = RecordStore(JsonStoreFile(path))

        first.put(_record("A"))
        second.put(_record("B"))

        assert sorted(RecordStore(JsonStoreFile(path)).all()) == ["A", "B"]

    @pytest.mark.slow
    def test_concurrent_writers_lose_no_updates(self):
        store = RecordStore()

        def write(n):
            store.put(_record(f"key-{n}"))

        threads = [threading.Thread(target=write, args=(n,)) for n in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert len(store.all()) == 20

    @pytest.mark.slow
    def test_concurrent_updates_to_one_record_all_land(self):
        backend = SlowMemoryBackend()
        store = RecordStore(backend)
        store.put(_record("A"))

        def add_item(n):
            with store.transaction() as working:
                record = working.get("A")
                working.put("A", record.copy(items=[*record.items, OrderItem(name=f"Item {n}")]))

        threads = [threading.Thread(target=add_item, args=(n,)) for n in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        saved = backend.load()["orders"]["A"]["items"]
        assert sorted(item["name"] for item in saved) == sorted(f"Item {n}" for n in range(20))
        assert len(store.get("A").items) == 20
