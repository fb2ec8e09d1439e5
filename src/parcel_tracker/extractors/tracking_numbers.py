#!/usr/bin/env python3
"""
Tracking Number Recognition

Carrier-specific patterns for spotting tracking numbers in page text. The
patterns are tried most specific first; a match also implies the carrier.
"""

import re
from dataclasses import dataclass

from ..records.models import Carrier


@dataclass(frozen=True)
class TrackingPattern:
    """A tracking number pattern and the carrier it implies (None if unknown)."""

    regex: re.Pattern
    carrier: Carrier | None
    requires_word: str | None = None  # page must mention this word for the pattern to count


UPS_PATTERN = re.compile(r"\b(1Z[A-Z0-9]{16})\b", re.IGNORECASE)
USPS_PATTERN = re.compile(r"\b(9\d{15,21})\b")
AMAZON_PATTERN = re.compile(r"\b(TBA\d{12,})\b", re.IGNORECASE)
FEDEX_PATTERN = re.compile(r"\b(\d{12,15})\b")
LONG_DIGITS_PATTERN = re.compile(r"\b(\d{20,22})\b")
LABELED_PATTERN = re.compile(r"Tracking\s*(?:ID|Number|#)?\s*[:#]?\s*([A-Z0-9]{10,30})\b", re.IGNORECASE)

CARRIER_PATTERNS: tuple[TrackingPattern, ...] = (
    TrackingPattern(UPS_PATTERN, Carrier.UPS),
    TrackingPattern(AMAZON_PATTERN, Carrier.OTHER),
    TrackingPattern(USPS_PATTERN, Carrier.USPS),
    TrackingPattern(FEDEX_PATTERN, Carrier.FEDEX, requires_word="fedex"),
    TrackingPattern(LONG_DIGITS_PATTERN, Carrier.FEDEX, requires_word="fedex"),
)

DEFAULT_PATTERNS: tuple[TrackingPattern, ...] = (*CARRIER_PATTERNS, TrackingPattern(LABELED_PATTERN, None))

_CARRIER_PHRASE = re.compile(
    r"(?:shipped|delivered|sent)\s+(?:with|via|by)\s+(UPS|FedEx|USPS|DHL|Amazon(?: Logistics)?|OnTrac|LaserShip)",
    re.IGNORECASE,
)
_CARRIER_NAME = re.compile(r"\b(UPS|FedEx|USPS|DHL|OnTrac|LaserShip|Amazon Logistics)\b", re.IGNORECASE)


def _looks_like_tracking(candidate: str) -> bool:
    """Labeled matches must contain a digit; this drops words like 'information'."""
    return any(ch.isdigit() for ch in candidate)


def find_all_tracking(text: str, patterns: tuple[TrackingPattern, ...] = DEFAULT_PATTERNS) -> list[tuple[str, Carrier | None]]:
    """
    Find every distinct tracking number in the text.

    Returns:
        (tracking_id, carrier) pairs in pattern order, then order of appearance
    """
    lowered = text.lower()
    found: list[tuple[str, Carrier | None]] = []
    seen: set[str] = set()
    for pattern in patterns:
        if pattern.requires_word and pattern.requires_word not in lowered:
            continue
        for match in pattern.regex.finditer(text):
            candidate = match.group(1).upper()
            # First pattern to claim a number decides its carrier
            if candidate in seen or not _looks_like_tracking(candidate):
                continue
            seen.add(candidate)
            found.append((candidate, pattern.carrier))
    return found


def detect_tracking(text: str, patterns: tuple[TrackingPattern, ...] = DEFAULT_PATTERNS) -> tuple[str, Carrier | None] | None:
    """
    Find the first tracking number in the text.

    Returns:
        (tracking_id, carrier) or None if no pattern matched
    """
    lowered = text.lower()
    for pattern in patterns:
        if pattern.requires_word and pattern.requires_word not in lowered:
            continue
        for match in pattern.regex.finditer(text):
            candidate = match.group(1).upper()
            if _looks_like_tracking(candidate):
                return candidate, pattern.carrier
    return None


def detect_carrier_name(text: str) -> Carrier | None:
    """Carrier named on the page ("Shipped with UPS"), or None."""
    match = _CARRIER_PHRASE.search(text) or _CARRIER_NAME.search(text)
    if not match:
        return None
    return Carrier.from_text(match.group(1))
