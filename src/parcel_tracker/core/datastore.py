#!/usr/bin/env python3
"""
DataStore Protocol - Standard interface for persisted state.

Separates where captured records live (a JSON file, process memory) from the
reconciliation logic that reads and rewrites them.
"""

from datetime import datetime
from typing import Protocol, TypeVar

T = TypeVar("T")


class DataStore(Protocol[T]):
    """
    Protocol for data persistence and metadata queries.

    Type parameter T represents the persisted data type (for the record store,
    the raw document with "orders", "trackingMap" and "manualEntries").
    """

    def exists(self) -> bool:
        """
        Check if data exists in storage.

        Returns:
            True if data has been written, False otherwise
        """
        ...

    def load(self) -> T:
        """
        Load data from storage.

        Returns:
            Stored data structure

        Raises:
            ValueError: If data is invalid/corrupted
        """
        ...

    def save(self, data: T) -> None:
        """
        Save data to storage, replacing what was there.

        Args:
            data: Data to persist

        Raises:
            OSError: If the underlying storage cannot be written
        """
        ...

    def last_modified(self) -> datetime | None:
        """
        Get timestamp of most recent data modification.

        Returns:
            datetime of last modification, or None if data doesn't exist
        """
        ...

    def age_days(self) -> int | None:
        """
        Get age of data in days since last modification.

        Returns:
            Number of days since last modification, or None if data doesn't exist
        """
        ...

    def item_count(self) -> int | None:
        """
        Get count of records in stored data.

        Returns:
            Count of records, or None if data doesn't exist
        """
        ...

    def size_bytes(self) -> int | None:
        """
        Get total storage size in bytes.

        Returns:
            Size of stored data in bytes, or None if data doesn't exist
        """
        ...

    def summary_text(self) -> str:
        """
        Get human-readable summary of current data state.

        Returns:
            Brief text description for display in CLI output and logs
        """
        ...
