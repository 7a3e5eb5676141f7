"""
Common Value Objects

Value objects used across multiple domains:
- Money: A monetary amount held in integer minor units (cents) with currency
"""

from dataclasses import dataclass

from shared.domain.base import ValueObject

SUPPORTED_CURRENCIES = ('USD',)


@dataclass(frozen=True)
class Money(ValueObject):
    """
    Money value object

    Amounts are integer minor units so that no float or decimal rounding
    ever reaches a charge request.
    """
    amount: int
    currency: str = 'USD'

    def __post_init__(self):
        if not isinstance(self.amount, int) or isinstance(self.amount, bool):
            raise TypeError("Amount must be an integer number of minor units")
        if self.amount < 0:
            raise ValueError("Amount cannot be negative")
        if self.currency not in SUPPORTED_CURRENCIES:
            raise ValueError(f"Unsupported currency: {self.currency}")

    @classmethod
    def major(cls, units: int, currency: str = 'USD') -> 'Money':
        """Build from whole currency units, e.g. Money.major(1000) is $1000.00"""
        return cls(units * 100, currency)

    def __add__(self, other: 'Money') -> 'Money':
        if not isinstance(other, Money):
            raise TypeError("Can only add Money to Money")
        if self.currency != other.currency:
            raise ValueError(f"Cannot add different currencies: {self.currency} and {other.currency}")
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: 'Money') -> 'Money':
        if not isinstance(other, Money):
            raise TypeError("Can only subtract Money from Money")
        if self.currency != other.currency:
            raise ValueError(f"Cannot subtract different currencies: {self.currency} and {other.currency}")
        return Money(self.amount - other.amount, self.currency)

    def __str__(self):
        return f"{self.amount / 100:,.2f} {self.currency}"

    def __repr__(self):
        return f"Money({self.amount}, '{self.currency}')"
