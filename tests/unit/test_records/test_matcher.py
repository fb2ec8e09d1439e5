#!/usr/bin/env python3
"""Tests for tiered record matching."""

from datetime import datetime, timezone

import pytest

from parcel_tracker.records.matcher import (
    ItemNameMatch,
    RecordMatcher,
    match_item_id,
    match_order_id,
    match_tracking_id,
)
from parcel_tracker.records.models import ObservedFact, OrderItem, OrderRecord, Source, TrackingRef
from parcel_tracker.records.store import StoreSnapshot

NOW = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


def _snapshot(*records: OrderRecord) -> StoreSnapshot:
    snapshot = StoreSnapshot()
    for record in records:
        snapshot.put(record.key, record)
    return snapshot


def _record(key, name=None, **fields) -> OrderRecord:
    items = [OrderItem(name=name)] if name else []
    return OrderRecord(key=key, source=Source.EBAY, last_updated=NOW, items=items, **fields)


@pytest.mark.records
class TestMatchTiers:
    """Test each tier in isolation."""

    def test_order_id(self):
        snapshot = _snapshot(_record("111-1234567-1234567", order_id="111-1234567-1234567"))
        assert match_order_id(ObservedFact(source=Source.AMAZON, order_id="111-1234567-1234567"), snapshot) == (
            "111-1234567-1234567"
        )
        assert match_order_id(ObservedFact(source=Source.AMAZON, order_id="999-0000000-0000000"), snapshot) is None
        assert match_order_id(ObservedFact(source=Source.AMAZON), snapshot) is None

    def test_tracking_id_ignores_case(self):
        snapshot = _snapshot(_record("ebay-Lamp", tracking_id="1Z999AA10123456784"))
        fact = ObservedFact(source=Source.EBAY, tracking_id="1z999aa10123456784")
        assert match_tracking_id(fact, snapshot) == "ebay-Lamp"

    def test_tracking_id_via_index(self):
        """Test a record found through the tracking index when its own field was detached."""
        snapshot = _snapshot(_record("111-1234567-1234567"))
        snapshot.put_tracking(
            TrackingRef(tracking_id="TBA123456789012", key="111-1234567-1234567", source=Source.AMAZON, captured_at=NOW)
        )
        fact = ObservedFact(source=Source.AMAZON, tracking_id="TBA123456789012")
        assert match_tracking_id(fact, snapshot) == "111-1234567-1234567"

    def test_tracking_index_pointing_at_missing_record_ignored(self):
        snapshot = StoreSnapshot()
        snapshot.put_tracking(TrackingRef(tracking_id="TBA123456789012", key="gone", source=Source.AMAZON, captured_at=NOW))
        assert match_tracking_id(ObservedFact(source=Source.AMAZON, tracking_id="TBA123456789012"), snapshot) is None

    def test_item_id_field_or_key(self):
        by_field = _snapshot(_record("ebay-Keyboard", item_id="223456789012"))
        by_key = _snapshot(_record("ebay-223456789012"))
        fact = ObservedFact(source=Source.EBAY, item_id="223456789012")

        assert match_item_id(fact, by_field) == "ebay-Keyboard"
        assert match_item_id(fact, by_key) == "ebay-223456789012"

    def test_item_name_prefix_containment(self):
        snapshot = _snapshot(_record("ebay-Lamp", "Vintage Brass Desk Lamp with Shade"))
        tier = ItemNameMatch()

        longer = ObservedFact(source=Source.EBAY, items=[OrderItem(name="Vintage Brass Desk Lamp - Free Shipping")])
        truncated = ObservedFact(source=Source.EBAY, items=[OrderItem(name="Vintage Brass Desk L")])
        different = ObservedFact(source=Source.EBAY, items=[OrderItem(name="Vintage Brass Floor Lamp")])

        assert tier(longer, snapshot) == "ebay-Lamp"
        assert tier(truncated, snapshot) == "ebay-Lamp"
        assert tier(different, snapshot) is None

    def test_item_name_prefix_is_tunable(self):
        snapshot = _snapshot(_record("ebay-Lamp", "Vintage Brass Desk Lamp with Shade"))
        fact = ObservedFact(source=Source.EBAY, items=[OrderItem(name="Vintage Brass Floor Lamp")])

        assert ItemNameMatch(prefix_length=14)(fact, snapshot) == "ebay-Lamp"
        with pytest.raises(ValueError):
            ItemNameMatch(prefix_length=0)


@pytest.mark.records
class TestRecordMatcher:
    """Test tier precedence."""

    def test_order_id_beats_tracking_id(self):
        """Test the exact order id match wins over a tracking match on another record."""
        snapshot = _snapshot(
            _record("111-1234567-1234567", order_id="111-1234567-1234567"),
            _record("222-2222222-2222222", order_id="222-2222222-2222222", tracking_id="1Z999AA10123456784"),
        )
        fact = ObservedFact(source=Source.AMAZON, order_id="111-1234567-1234567", tracking_id="1Z999AA10123456784")

        assert RecordMatcher().match(fact, snapshot) == "111-1234567-1234567"

    def test_tracking_beats_item_name(self):
        snapshot = _snapshot(
            _record("ebay-Lamp", "Vintage Brass Desk Lamp with Shade"),
            _record("9400111899223197428490", "Something Else Entirely", tracking_id="9400111899223197428490"),
        )
        fact = ObservedFact(
            source=Source.EBAY,
            tracking_id="9400111899223197428490",
            items=[OrderItem(name="Vintage Brass Desk Lamp with Shade")],
        )
        assert RecordMatcher().match(fact, snapshot) == "9400111899223197428490"

    def test_no_match(self):
        fact = ObservedFact(source=Source.AMAZON, order_id="111-1234567-1234567")
        assert RecordMatcher().match(fact, StoreSnapshot()) is None

    def test_custom_tiers(self):
        snapshot = _snapshot(_record("ebay-Lamp", "Vintage Brass Desk Lamp with Shade"))
        fact = ObservedFact(source=Source.EBAY, items=[OrderItem(name="Vintage Brass Desk Lamp with Shade")])

        assert RecordMatcher(tiers=[match_order_id]).match(fact, snapshot) is None
        assert RecordMatcher(fuzzy_prefix_length=10).match(fact, snapshot) == "ebay-Lamp"
