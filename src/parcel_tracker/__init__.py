"""
Parcel Tracker - Order and Shipment Records for Customs Declarations

Keeps a durable, consistent record of online purchases assembled from
fragmentary page observations, so that a parcel arriving at a forwarder can be
matched by tracking number to its order details.

Key Features:
- Reconciliation of partial facts from order, tracking and history pages
- Record matching by order id, tracking number, item id and item name
- Key promotion when better identifying information arrives
- Case-insensitive tracking number lookup
- Manual entries, search, and CSV export

Domain Packages:
- core: Money, dates, configuration, JSON persistence, serialized writes
- records: Record models, store, matcher, reconciler, lookup and catalog
- extractors: Amazon, eBay and forwarder page extraction
- cli: Command-line interface (parcels)

Example Usage:
    from parcel_tracker.records import RecordStore, Reconciler, LookupService
    from parcel_tracker.extractors import amazon

Version: 0.1.0
"""

__version__ = "0.1.0"
__author__ = "Parcel Tracker Developers"

# Export core utilities for easy access
from .core.config import Environment, get_config
from .core.money import Money

# Export key domain functionality
from .records.lookup import LookupService
from .records.models import ObservedFact, OrderItem, OrderRecord
from .records.reconciler import Reconciler
from .records.store import RecordStore, StoreWriteError

__all__ = [
    # Configuration
    "Environment",
    "get_config",
    # Core models
    "Money",
    "ObservedFact",
    "OrderItem",
    "OrderRecord",
    # Services
    "LookupService",
    "Reconciler",
    "RecordStore",
    "StoreWriteError",
]
