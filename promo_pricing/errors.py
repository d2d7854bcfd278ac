from __future__ import annotations


class PricingError(Exception):
    pass


class InvalidQuantityError(PricingError, ValueError):
    """Quantity is not a positive integer."""


class InvalidPriceError(PricingError, ValueError):
    """A price or fee is negative or not a number."""
