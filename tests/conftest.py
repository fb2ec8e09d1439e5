"""
Pytest Configuration and Shared Fixtures

Provides common test fixtures and configuration for the entire test suite.
"""

import tempfile
from pathlib import Path

import pytest

from parcel_tracker.core import config as config_module
from parcel_tracker.core.dates import OrderDate
from parcel_tracker.core.money import Money
from parcel_tracker.records.models import Carrier, ObservedFact, OrderItem, Source
from parcel_tracker.records.reconciler import Reconciler
from parcel_tracker.records.store import RecordStore
from tests.fixtures import FakeClock

USB_ORDER_ID = "111-1234567-1234567"
UPS_TRACKING = "1Z999AA10123456784"


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as temp_path:
        yield Path(temp_path)


@pytest.fixture
def clock() -> FakeClock:
    """Deterministic clock starting 2024-01-15 12:00 UTC."""
    return FakeClock()


@pytest.fixture
def store() -> RecordStore:
    """Empty in-memory record store."""
    return RecordStore()


@pytest.fixture
def reconciler(store, clock) -> Reconciler:
    """Reconciler over the in-memory store with the fake clock."""
    return Reconciler(store, clock=clock)


@pytest.fixture
def usb_order_fact() -> ObservedFact:
    """Order page fact: one item, no tracking yet."""
    return ObservedFact(
        source=Source.AMAZON,
        order_id=USB_ORDER_ID,
        items=[OrderItem(name="USB Cable", quantity=2, price=Money.from_cents(999))],
        order_date=OrderDate.parse("January 15, 2024"),
        total=Money.from_cents(1998),
    )


@pytest.fixture
def usb_tracking_fact() -> ObservedFact:
    """Tracking page fact for the same order."""
    return ObservedFact(
        source=Source.AMAZON,
        order_id=USB_ORDER_ID,
        tracking_id=UPS_TRACKING,
        carrier=Carrier.UPS,
    )


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch, tmp_path):
    """Set up test environment variables."""
    # Ensure tests don't use real data
    monkeypatch.setenv("PARCELS_ENV", "test")
    monkeypatch.setenv("PARCELS_DATA_DIR", str(tmp_path / "parcels_data"))
    for name in ("PARCELS_STORE_FILE", "PARCELS_FUZZY_PREFIX", "PARCELS_SOURCES", "DEBUG"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("LOG_LEVEL", "INFO")

    config_module.reload_config()
    yield
    config_module._config = None


# Test markers for categorizing tests
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests for complete workflows")
    config.addinivalue_line("markers", "currency: Tests for currency handling and precision")
    config.addinivalue_line("markers", "records: Tests for record storage and reconciliation")
    config.addinivalue_line("markers", "extractors: Tests for page extraction")
    config.addinivalue_line("markers", "slow: Tests that take significant time to run")
