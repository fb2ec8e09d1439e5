#!/usr/bin/env python3
"""
Date and Timestamp Primitives

OrderDate wraps the calendar date an order was placed, parsed from the
formats order pages print ("January 5, 2024", "Jan 5 2024", "2024-01-05").
Capture and update timestamps are timezone-aware UTC datetimes stored as
ISO-8601 strings.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, timezone

# Formats seen on order pages, tried in order
ORDER_DATE_FORMATS = (
    "%Y-%m-%d",
    "%B %d, %Y",
    "%B %d %Y",
    "%b %d, %Y",
    "%b %d %Y",
    "%d %B %Y",
    "%m/%d/%Y",
)


@dataclass(frozen=True)
class OrderDate:
    """Immutable order date wrapper with consistent formatting."""

    date: date

    @classmethod
    def from_string(cls, date_str: str, format: str = "%Y-%m-%d") -> "OrderDate":
        """
        Parse from string in specified format.

        Args:
            date_str: Date string to parse
            format: Date format (default: ISO format "%Y-%m-%d")

        Returns:
            OrderDate object
        """
        return cls(date=datetime.strptime(date_str.strip(), format).date())

    @classmethod
    def parse(cls, date_str: str | None) -> "OrderDate | None":
        """
        Parse a date as printed on an order page, trying each known format.

        Returns:
            OrderDate, or None when the text matches no known format
        """
        if not date_str:
            return None
        text = re.sub(r"\s+", " ", date_str).strip()
        for fmt in ORDER_DATE_FORMATS:
            try:
                return cls.from_string(text, fmt)
            except ValueError:
                continue
        return None

    def to_iso_string(self) -> str:
        """Format as YYYY-MM-DD."""
        return self.date.isoformat()

    def __str__(self) -> str:
        return self.to_iso_string()

    def __lt__(self, other: "OrderDate") -> bool:
        return self.date < other.date

    def __repr__(self) -> str:
        return f"OrderDate(date={self.date!r})"


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_iso_timestamp(moment: datetime) -> str:
    """Serialize a datetime as ISO-8601, assuming UTC for naive values."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.isoformat()


def parse_timestamp(value: str | None) -> datetime | None:
    """
    Parse an ISO-8601 timestamp written by to_iso_timestamp.

    Accepts the trailing "Z" that JavaScript's toISOString() produces.

    Returns:
        Aware datetime, or None for blank or unparseable input
    """
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        moment = datetime.fromisoformat(text)
    except ValueError:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def epoch_millis(moment: datetime) -> int:
    """Milliseconds since the Unix epoch."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp() * 1000)
