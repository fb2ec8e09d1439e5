#!/usr/bin/env python3
"""
Record Store DataStore Implementations

Backends persisting the record document: a JSON object with three keyed
mappings, "orders", "trackingMap" and "manualEntries".
"""

import copy
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from ..core.datastore_mixin import FileDataStoreMixin
from ..core.json_utils import read_json, write_json_atomic

logger = logging.getLogger(__name__)

DOCUMENT_SECTIONS = ("orders", "trackingMap", "manualEntries")


def empty_document() -> dict[str, dict[str, Any]]:
    """A document with every section present and empty."""
    return {section: {} for section in DOCUMENT_SECTIONS}


def _record_count(document: dict[str, Any]) -> int:
    return len(document.get("orders") or {}) + len(document.get("manualEntries") or {})


class JsonStoreFile(FileDataStoreMixin):
    """
    DataStore for the record document kept in one JSON file.

    Writes replace the file atomically; a failed write leaves the previous
    file in place.
    """

    def __init__(self, path: Path):
        """
        Initialize the JSON store file.

        Args:
            path: Location of the JSON document (created on first save)
        """
        self.path = Path(path)

    def load(self) -> dict[str, Any]:
        """
        Load the record document.

        Returns:
            Document dictionary; an empty document if the file does not exist yet

        Raises:
            ValueError: If the file is not valid JSON or not a JSON object
        """
        if not self.exists():
            return empty_document()

        try:
            data = read_json(self.path)
        except json.JSONDecodeError as e:
            raise ValueError(f"Record store {self.path} is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"Invalid record store format: expected object, got {type(data).__name__}")

        for section in DOCUMENT_SECTIONS:
            data.setdefault(section, {})
        return data

    def save(self, data: dict[str, Any]) -> None:
        """
        Replace the record document.

        Args:
            data: Document dictionary with the three sections
        """
        write_json_atomic(self.path, data)
        logger.debug("Wrote record store %s (%d records)", self.path, _record_count(data))

    def item_count(self) -> int | None:
        """Get count of stored records (orders plus manual entries)."""
        if not self.exists():
            return None
        try:
            return _record_count(self.load())
        except (OSError, ValueError):
            return None

    def summary_text(self) -> str:
        """Get human-readable summary."""
        count = self.item_count()
        if count is None:
            return "No captured records found"
        return f"Captured records: {count} in {self.path.name}"


class MemoryStoreBackend:
    """
    In-process DataStore for embedding callers and tests.

    Saved documents are deep-copied so later mutation of the caller's data
    cannot leak into the stored state. Setting fail_writes makes save() raise
    OSError, simulating an unavailable or full persistence layer.
    """

    def __init__(self, document: dict[str, Any] | None = None):
        self._document: dict[str, Any] | None = copy.deepcopy(document) if document is not None else None
        self._modified: datetime | None = datetime.now() if document is not None else None
        self.fail_writes = False
        self.save_count = 0

    def exists(self) -> bool:
        return self._document is not None

    def load(self) -> dict[str, Any]:
        if self._document is None:
            return empty_document()
        data = copy.deepcopy(self._document)
        for section in DOCUMENT_SECTIONS:
            data.setdefault(section, {})
        return data

    def save(self, data: dict[str, Any]) -> None:
        if self.fail_writes:
            raise OSError("Simulated storage failure")
        # Serialize first so an unserializable document fails like the file backend does
        json.dumps(data)
        self._document = copy.deepcopy(data)
        self._modified = datetime.now()
        self.save_count += 1

    def last_modified(self) -> datetime | None:
        return self._modified

    def age_days(self) -> int | None:
        if self._modified is None:
            return None
        return (datetime.now() - self._modified).days

    def item_count(self) -> int | None:
        if self._document is None:
            return None
        return _record_count(self._document)

    def size_bytes(self) -> int | None:
        if self._document is None:
            return None
        return len(json.dumps(self._document).encode("utf-8"))

    def summary_text(self) -> str:
        count = self.item_count()
        if count is None:
            return "No captured records found"
        return f"Captured records: {count} in memory"
