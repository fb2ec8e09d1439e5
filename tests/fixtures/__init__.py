"""
Test Fixtures and Utilities

Synthetic saved pages and helpers shared across the test suite.

This module provides:
- HTML snapshots of Amazon, eBay and forwarder pages (pages.py)
- A controllable clock for deterministic timestamps
- A store backend that stalls between reading and writing
"""

import time
from datetime import datetime, timedelta, timezone
from typing import Any

from parcel_tracker.records.datastore import MemoryStoreBackend


class FakeClock:
    """Callable clock that advances one second per call."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + timedelta(seconds=1)
        return current


class SlowMemoryBackend(MemoryStoreBackend):
    """
    Memory backend that sleeps after every load and before every save.

    Two unserialized read-modify-write cycles on it overlap almost surely,
    so the later save would overwrite the earlier one.
    """

    def __init__(self, delay: float = 0.005, document: dict[str, Any] | None = None):
        super().__init__(document)
        self.delay = delay

    def load(self) -> dict[str, Any]:
        data = super().load()
        time.sleep(self.delay)
        return data

    def save(self, data: dict[str, Any]) -> None:
        time.sleep(self.delay)
        super().save(data)
