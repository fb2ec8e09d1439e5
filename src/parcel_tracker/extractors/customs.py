#!/usr/bin/env python3
"""
Customs Forwarder Pages

The package forwarder's dashboard lists inbound packages with their carrier
tracking numbers, and each customs declaration page shows the tracking number
of the package being declared. Both are read only to find tracking numbers for
lookup; nothing here produces facts.
"""

import logging
import re

from .base import parse_html, text_of

logger = logging.getLogger(__name__)

# Inbound tracking as printed on the dashboard ("IN Tracking #: TBA...")
DASHBOARD_PATTERNS = (
    re.compile(r"IN\s*Tracking\s*#?:?\s*(TBA\d{12,})", re.IGNORECASE),
    re.compile(r"IN\s*Tracking\s*#?:?\s*(1Z[A-Z0-9]{16})", re.IGNORECASE),
    re.compile(r"IN\s*Tracking\s*#?:?\s*([A-Z0-9]{12,30})", re.IGNORECASE),
    re.compile(r"Tracking[:\s]+(TBA\d{12,})", re.IGNORECASE),
    re.compile(r"Tracking[:\s]+(1Z[A-Z0-9]{16})", re.IGNORECASE),
)

DECLARATION_PATTERNS = (
    re.compile(r"\b(TBA\d{12,})", re.IGNORECASE),
    re.compile(r"\b(1Z[A-Z0-9]{16})", re.IGNORECASE),
    re.compile(r"Tracking[:\s#]+([A-Z0-9]{10,30})", re.IGNORECASE),
)


def find_tracking_numbers(html: str) -> list[str]:
    """
    Find every inbound tracking number on the forwarder dashboard.

    Returns:
        Distinct tracking numbers, uppercased, in pattern then page order
    """
    text = text_of(parse_html(html))
    found: list[str] = []
    for pattern in DASHBOARD_PATTERNS:
        for match in pattern.finditer(text):
            tracking_id = match.group(1).upper()
            if tracking_id not in found and any(ch.isdigit() for ch in tracking_id):
                found.append(tracking_id)
    logger.debug("Found %d tracking numbers on dashboard", len(found))
    return found


def find_declaration_tracking(html: str) -> str | None:
    """Tracking number of the package on a declaration page, or None."""
    text = text_of(parse_html(html))
    for pattern in DECLARATION_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1).upper()
    return None
