#!/usr/bin/env python3
"""Tests for core currency utilities."""

from decimal import Decimal

import pytest

from parcel_tracker.core.currency import (
    cents_to_dollars_str,
    format_cents,
    parse_dollars_to_cents,
    safe_currency_to_cents,
)


class TestCurrencyConversions:
    """Test core currency conversion functions."""

    @pytest.mark.currency
    def test_cents_to_dollars_str(self):
        """Test formatting cents as dollar strings."""
        assert cents_to_dollars_str(4599) == "45.99"
        assert cents_to_dollars_str(100) == "1.00"
        assert cents_to_dollars_str(0) == "0.00"
        assert cents_to_dollars_str(5) == "0.05"
        assert cents_to_dollars_str(-4599) == "-45.99"

    @pytest.mark.currency
    def test_format_cents(self):
        """Test formatting with dollar sign."""
        assert format_cents(1234) == "$12.34"

    @pytest.mark.currency
    def test_parse_dollars_to_cents_scraped_formats(self):
        """Test parsing prices as they appear on order pages."""
        assert parse_dollars_to_cents("12.34") == 1234
        assert parse_dollars_to_cents("$12.34") == 1234
        assert parse_dollars_to_cents("1,234.56") == 123456
        assert parse_dollars_to_cents("US $12") == 1200
        assert parse_dollars_to_cents("$9.9") == 990

    @pytest.mark.currency
    def test_parse_dollars_to_cents_without_amount_raises(self):
        """Test that text without digits is rejected."""
        with pytest.raises(ValueError, match="No amount found"):
            parse_dollars_to_cents("FREE")


class TestSafeCurrencyToCents:
    """Test lenient parsing used for scraped values."""

    @pytest.mark.currency
    def test_strings(self):
        assert safe_currency_to_cents("$45.99") == 4599
        assert safe_currency_to_cents("45.99") == 4599

    @pytest.mark.currency
    def test_numbers(self):
        """Integers are dollars; floats and Decimals are converted exactly."""
        assert safe_currency_to_cents(12) == 1200
        assert safe_currency_to_cents(9.99) == 999
        assert safe_currency_to_cents(Decimal("19.99")) == 1999

    @pytest.mark.currency
    def test_unusable_values_return_none(self):
        assert safe_currency_to_cents(None) is None
        assert safe_currency_to_cents("") is None
        assert safe_currency_to_cents("   ") is None
        assert safe_currency_to_cents("FREE") is None
        assert safe_currency_to_cents(True) is None
