#!/usr/bin/env python3
"""
Money Primitive Type

Immutable currency value wrapper that uses integer cents internally.
Item prices and order totals captured from different pages are compared and
merged through this type, never as floats or raw strings.
"""

from dataclasses import dataclass
from decimal import Decimal

from .currency import format_cents, parse_dollars_to_cents, safe_currency_to_cents


@dataclass(frozen=True)
class Money:
    """
    Immutable money value in cents (USD).

    Examples:
        >>> price = Money.from_dollars("$9.99")
        >>> price.to_cents()
        999
        >>> str(price * 2)
        '$19.98'
    """

    cents: int

    @classmethod
    def from_cents(cls, cents: int) -> "Money":
        """Create Money from cents."""
        return cls(cents=cents)

    @classmethod
    def from_dollars(cls, dollars: str | int) -> "Money":
        """
        Parse from dollar string like '$123.45' or integer dollars.

        Args:
            dollars: String like "$12.34" or integer like 12

        Returns:
            Money object

        Raises:
            ValueError: If the string holds no amount
        """
        if isinstance(dollars, int):
            return cls(cents=dollars * 100)
        return cls(cents=parse_dollars_to_cents(dollars))

    @classmethod
    def parse(cls, value: "str | int | float | Decimal | Money | None") -> "Money | None":
        """
        Lenient constructor for scraped values.

        Returns None for blank or unparseable input instead of raising, which is
        what extractors want: an absent price is simply not observed.
        """
        if isinstance(value, Money):
            return value
        cents = safe_currency_to_cents(value)
        if cents is None:
            return None
        return cls(cents=cents)

    def to_cents(self) -> int:
        """Get value in cents."""
        return self.cents

    def to_decimal(self) -> Decimal:
        """Get value as a Decimal dollar amount."""
        return Decimal(self.cents) / 100

    def to_dollars(self) -> str:
        """Get formatted dollar string."""
        return str(self)

    def __add__(self, other: "Money") -> "Money":
        """Add two Money objects."""
        return Money(cents=self.cents + other.cents)

    def __mul__(self, scalar: int) -> "Money":
        """Multiply Money by integer scalar."""
        return Money(cents=self.cents * scalar)

    def __lt__(self, other: "Money") -> bool:
        return self.cents < other.cents

    def __le__(self, other: "Money") -> bool:
        return self.cents <= other.cents

    def __gt__(self, other: "Money") -> bool:
        return self.cents > other.cents

    def __ge__(self, other: "Money") -> bool:
        return self.cents >= other.cents

    def __str__(self) -> str:
        """Format as dollar string."""
        return format_cents(self.cents)

    def __repr__(self) -> str:
        return f"Money(cents={self.cents})"
