"""
Record Reconciliation Package

Merges fragmentary order and shipment observations into one durable record
per order, and answers tracking number lookups against the result.

Key Components:
- models: ObservedFact, OrderRecord, TrackingRef
- store: Serialized, persisted record store with three keyed mappings
- keys: Record key generation and ranking
- matcher: Tiered matching of facts to existing records
- reconciler: Merge, promotion and absorption of records
- lookup: Tracking number lookup over orders and manual entries
- catalog: Merged listing, search, manual entries and export
"""

from .catalog import Catalog, CatalogStats, copy_text
from .datastore import JsonStoreFile, MemoryStoreBackend
from .keys import KeyRank, generate_key
from .lookup import LookupService, merged_entries
from .matcher import ItemNameMatch, RecordMatcher
from .models import Carrier, ObservedFact, OrderItem, OrderRecord, Source, TrackingRef
from .reconciler import Reconciler
from .store import RecordStore, StoreSnapshot, StoreWriteError

__all__ = [
    "Carrier",
    "Catalog",
    "CatalogStats",
    "ItemNameMatch",
    "JsonStoreFile",
    "KeyRank",
    "LookupService",
    "MemoryStoreBackend",
    "ObservedFact",
    "OrderItem",
    "OrderRecord",
    "Reconciler",
    "RecordMatcher",
    "RecordStore",
    "Source",
    "StoreSnapshot",
    "StoreWriteError",
    "TrackingRef",
    "copy_text",
    "generate_key",
    "merged_entries",
]
