#!/usr/bin/env python3
"""Tests for tracking number lookup."""

from datetime import datetime, timezone

import pytest

from parcel_tracker.records.lookup import LookupService, merged_entries
from parcel_tracker.records.models import OrderItem, OrderRecord, Source, TrackingRef
from tests.conftest import UPS_TRACKING, USB_ORDER_ID

NOW = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


def _record(key, source=Source.AMAZON, **fields) -> OrderRecord:
    return OrderRecord(key=key, source=source, last_updated=NOW, **fields)


@pytest.mark.records
class TestLookupService:
    """Test find_by_tracking and batch matching."""

    def test_case_insensitive(self, reconciler, store, usb_order_fact, usb_tracking_fact):
        reconciler.reconcile(usb_order_fact)
        reconciler.reconcile(usb_tracking_fact)

        record = LookupService(store).find_by_tracking("1z999aa10123456784")

        assert record is not None
        assert record.key == USB_ORDER_ID

    def test_miss_returns_none(self, store):
        lookup = LookupService(store)
        assert lookup.find_by_tracking("1Z000000000000000") is None
        assert lookup.find_by_tracking("") is None
        assert lookup.find_by_tracking("   ") is None
        assert lookup.find_by_tracking(None) is None

    def test_input_is_trimmed(self, store):
        store.put(_record(USB_ORDER_ID, tracking_id=UPS_TRACKING))
        assert LookupService(store).find_by_tracking(f"  {UPS_TRACKING}\n").key == USB_ORDER_ID

    def test_record_without_index_entry_found_by_scan(self, store):
        store.put(_record(USB_ORDER_ID, tracking_id=UPS_TRACKING))
        assert store.get_tracking(UPS_TRACKING) is None

        assert LookupService(store).find_by_tracking(UPS_TRACKING).key == USB_ORDER_ID

    def test_dangling_index_entry_falls_back_to_scan(self, store):
        store.put(_record(USB_ORDER_ID, tracking_id=UPS_TRACKING))
        store.put_tracking(TrackingRef(tracking_id=UPS_TRACKING, key="deleted", source=Source.AMAZON, captured_at=NOW))

        assert LookupService(store).find_by_tracking(UPS_TRACKING).key == USB_ORDER_ID

    def test_manual_entries_found(self, store):
        with store.transaction() as working:
            working.put_manual(
                "TBA123456789012",
                _record("TBA123456789012", source=Source.MANUAL, tracking_id="TBA123456789012", items=[OrderItem(name="Gift")]),
            )

        record = LookupService(store).find_by_tracking("tba123456789012")
        assert record.source is Source.MANUAL
        assert record.primary_item_name == "Gift"

    def test_match_tracking_numbers(self, store):
        store.put(_record(USB_ORDER_ID, tracking_id=UPS_TRACKING))
        store.put(_record("9400111899223197428490", source=Source.EBAY, tracking_id="9400111899223197428490"))

        matches = LookupService(store).match_tracking_numbers(
            [UPS_TRACKING, "TBA000000000000", "", "9400111899223197428490"]
        )

        assert {tid: record.key for tid, record in matches.items()} == {
            UPS_TRACKING: USB_ORDER_ID,
            "9400111899223197428490": "9400111899223197428490",
        }


@pytest.mark.records
class TestMergedEntries:
    """Test the read-time merge of orders and manual entries."""

    def test_manual_entry_wins_on_equal_key(self, store):
        store.put(_record(UPS_TRACKING, tracking_id=UPS_TRACKING, items=[OrderItem(name="Captured")]))
        with store.transaction() as working:
            working.put_manual(
                UPS_TRACKING,
                _record(UPS_TRACKING, source=Source.MANUAL, tracking_id=UPS_TRACKING, items=[OrderItem(name="Typed")]),
            )

        entries = merged_entries(store.snapshot())
        assert list(entries) == [UPS_TRACKING]
        assert entries[UPS_TRACKING].primary_item_name == "Typed"
        assert LookupService(store).find_by_tracking(UPS_TRACKING).primary_item_name == "Typed"

        # The stored mappings themselves stay separate
        assert store.get(UPS_TRACKING).primary_item_name == "Captured"
