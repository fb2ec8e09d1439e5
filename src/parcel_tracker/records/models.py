#!/usr/bin/env python3
"""
Record Domain Models

ObservedFact is what an extractor saw on one page at one moment; it is
transient and usually partial. OrderRecord is the merged, persisted view of one
order or shipment. TrackingRef is an entry of the reverse index from tracking
number to record key.

Persisted dictionaries use the camelCase field names of the stored document
("orderId", "trackingId", "lastUpdated", ...).
"""

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from ..core.dates import OrderDate, parse_timestamp, to_iso_timestamp, utc_now
from ..core.money import Money


class Source(Enum):
    """Where a fact or record came from."""

    AMAZON = "amazon"
    EBAY = "ebay"
    MANUAL = "manual"

    @classmethod
    def from_value(cls, value: "str | Source | None", default: "Source | None" = None) -> "Source":
        """
        Parse a source name case-insensitively.

        Raises:
            ValueError: If the value is unknown and no default is given
        """
        if isinstance(value, Source):
            return value
        if value:
            for source in cls:
                if source.value == str(value).strip().lower():
                    return source
        if default is not None:
            return default
        raise ValueError(f"Unknown source: {value!r}")


class Carrier(Enum):
    """Shipping carriers recognized on tracking pages."""

    UPS = "UPS"
    USPS = "USPS"
    FEDEX = "FedEx"
    DHL = "DHL"
    OTHER = "Other"

    @classmethod
    def from_text(cls, text: "str | Carrier | None") -> "Carrier | None":
        """
        Normalize a carrier name as printed on a page.

        Unknown non-empty names ("Amazon Logistics", "OnTrac") map to OTHER;
        blank input maps to None.
        """
        if isinstance(text, Carrier):
            return text
        if text is None:
            return None
        cleaned = str(text).strip()
        if not cleaned:
            return None
        lowered = cleaned.lower().replace(" ", "")
        for carrier in cls:
            if carrier.value.lower() == lowered:
                return carrier
        if lowered.startswith("fedex") or lowered == "federalexpress":
            return cls.FEDEX
        return cls.OTHER


def _clean(value: str | None) -> str | None:
    """Strip a scraped string, mapping blank to None."""
    if value is None:
        return None
    cleaned = str(value).strip()
    return cleaned or None


@dataclass
class OrderItem:
    """One line item: product name, quantity and optional unit price."""

    name: str
    quantity: int = 1
    price: Money | None = None

    def __post_init__(self) -> None:
        """Validate item data."""
        self.name = " ".join(str(self.name).split())
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise ValueError(f"Quantity must be an integer, got {self.quantity!r}")
        if self.quantity < 1:
            raise ValueError(f"Quantity must be at least 1, got {self.quantity}")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OrderItem":
        """Create from a persisted dict; prices are stored as cents."""
        price = data.get("price")
        if isinstance(price, int) and not isinstance(price, bool):
            parsed_price: Money | None = Money.from_cents(price)
        else:
            parsed_price = Money.parse(price)
        return cls(
            name=data.get("name", ""),
            quantity=int(data.get("quantity") or 1),
            price=parsed_price,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return {
            "name": self.name,
            "quantity": self.quantity,
            "price": self.price.to_cents() if self.price is not None else None,
        }


@dataclass
class ObservedFact:
    """
    A single observation produced by an extractor.

    Any field may be absent. Blank strings are normalized to None so that an
    empty scrape never looks like a value.
    """

    source: Source
    order_id: str | None = None
    tracking_id: str | None = None
    carrier: Carrier | None = None
    items: list[OrderItem] = field(default_factory=list)
    total: Money | None = None
    order_date: OrderDate | None = None
    observed_at: datetime = field(default_factory=utc_now)
    item_id: str | None = None  # opaque site item identifier (eBay itemid)

    def __post_init__(self) -> None:
        self.source = Source.from_value(self.source)
        self.order_id = _clean(self.order_id)
        self.tracking_id = _clean(self.tracking_id)
        self.item_id = _clean(self.item_id)
        self.carrier = Carrier.from_text(self.carrier)
        self.items = [item for item in self.items if item.name]

    @property
    def primary_item_name(self) -> str | None:
        """Name of the first item, if any."""
        if not self.items:
            return None
        return self.items[0].name or None

    @property
    def is_reconcilable(self) -> bool:
        """True when the fact carries anything a record can be keyed or matched on."""
        return bool(self.order_id or self.tracking_id or self.item_id or self.primary_item_name)


@dataclass
class OrderRecord:
    """
    Durable merged representation of one order or shipment.

    The key is chosen when the record is created and never edited in place;
    re-keying (promotion) creates a record under the new key and deletes the old.
    """

    key: str
    source: Source
    last_updated: datetime
    order_id: str | None = None
    tracking_id: str | None = None
    carrier: Carrier | None = None
    items: list[OrderItem] = field(default_factory=list)
    total: Money | None = None
    order_date: OrderDate | None = None
    item_id: str | None = None

    @property
    def primary_item_name(self) -> str | None:
        """Name of the first item, if any."""
        if not self.items:
            return None
        return self.items[0].name or None

    def copy(self, **changes: Any) -> "OrderRecord":
        """Return an independent copy, optionally with fields replaced."""
        copied = dataclasses.replace(self, **changes)
        if "items" not in changes:
            copied.items = [dataclasses.replace(item) for item in self.items]
        return copied

    @classmethod
    def from_dict(cls, key: str, data: dict[str, Any]) -> "OrderRecord":
        """
        Create from a persisted dict.

        Unreadable timestamps and dates fall back (now, absent) rather than
        failing the whole record.

        Args:
            key: Store key the record lives under
            data: Record fields in the stored camelCase layout
        """
        order_date = data.get("orderDate")
        total = data.get("total")
        if isinstance(total, int) and not isinstance(total, bool):
            parsed_total: Money | None = Money.from_cents(total)
        else:
            parsed_total = Money.parse(total)

        return cls(
            key=key,
            source=Source.from_value(data.get("source"), default=Source.MANUAL),
            last_updated=parse_timestamp(data.get("lastUpdated")) or utc_now(),
            order_id=_clean(data.get("orderId")),
            tracking_id=_clean(data.get("trackingId")),
            carrier=Carrier.from_text(data.get("carrier")),
            items=[OrderItem.from_dict(item) for item in data.get("items") or [] if item.get("name")],
            total=parsed_total,
            order_date=OrderDate.parse(order_date) if isinstance(order_date, str) else None,
            item_id=_clean(data.get("itemId")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return {
            "orderId": self.order_id,
            "trackingId": self.tracking_id,
            "carrier": self.carrier.value if self.carrier else None,
            "items": [item.to_dict() for item in self.items],
            "total": self.total.to_cents() if self.total is not None else None,
            "orderDate": self.order_date.to_iso_string() if self.order_date else None,
            "itemId": self.item_id,
            "source": self.source.value,
            "lastUpdated": to_iso_timestamp(self.last_updated),
        }


@dataclass
class TrackingRef:
    """Reverse-index entry: which record a tracking number belongs to."""

    tracking_id: str
    key: str
    source: Source
    captured_at: datetime
    carrier: Carrier | None = None

    @classmethod
    def from_dict(cls, tracking_id: str, data: dict[str, Any]) -> "TrackingRef":
        """
        Create from a persisted dict.

        Entries written before records were keyed explicitly stored the
        target under "orderId"; that is read as the key.
        """
        return cls(
            tracking_id=tracking_id,
            key=data.get("key") or data.get("orderId") or "",
            source=Source.from_value(data.get("source"), default=Source.AMAZON),
            captured_at=parse_timestamp(data.get("capturedAt")) or utc_now(),
            carrier=Carrier.from_text(data.get("carrier")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return {
            "key": self.key,
            "carrier": self.carrier.value if self.carrier else None,
            "source": self.source.value,
            "capturedAt": to_iso_timestamp(self.captured_at),
        }
