"""
Core Utilities Package

Shared primitives and infrastructure used across the parcel tracker.

This package provides:
- Currency handling with integer arithmetic for precision
- Order date parsing and UTC timestamp helpers
- Configuration management for environment-specific settings
- Atomic JSON persistence and the DataStore protocol
- FIFO serialized write access
"""

from .config import (
    Config,
    Environment,
    get_config,
    get_data_dir,
    get_store_file,
    is_test,
    reload_config,
)
from .currency import (
    cents_to_dollars_str,
    format_cents,
    parse_dollars_to_cents,
    safe_currency_to_cents,
)
from .datastore import DataStore
from .dates import OrderDate, utc_now
from .json_utils import format_json, read_json, write_json, write_json_atomic
from .money import Money
from .serial import SerialWriter

__all__ = [
    # Configuration
    "Config",
    "DataStore",
    "Environment",
    "Money",
    "OrderDate",
    "SerialWriter",
    # Currency functions
    "cents_to_dollars_str",
    "format_cents",
    "format_json",
    "get_config",
    "get_data_dir",
    "get_store_file",
    "is_test",
    "parse_dollars_to_cents",
    "read_json",
    "reload_config",
    "safe_currency_to_cents",
    "utc_now",
    "write_json",
    "write_json_atomic",
]
