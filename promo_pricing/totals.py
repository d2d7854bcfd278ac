from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Sequence

from promo_pricing.errors import InvalidPriceError
from promo_pricing.models import (
    AnyOffer,
    BundleResult,
    FeeSchedule,
    FreeShippingOffer,
    OrderTotals,
    PricingResult,
    Quote,
)

CENT = Decimal("0.01")
ZERO = Decimal("0")


def money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def discounted_units(quote: Quote, quantity: int) -> int:
    """Units covered by whole bundles of the quote."""
    eligible = quantity if quote.discounted_limit is None else min(quantity, quote.discounted_limit)
    return (eligible // quote.bundle_size) * quote.bundle_size


def quote_total(quote: Quote, base_price: Decimal, quantity: int) -> Decimal:
    """
    Line cost under a quote, unrounded.

    Whole bundles cost `bundle_price` each; units left over (or past the
    offer's quantity cap) are charged at `base_price`.
    """
    covered = discounted_units(quote, quantity)
    bundles = covered // quote.bundle_size
    return quote.bundle_price * bundles + base_price * (quantity - covered)


def free_units(quote: Quote, quantity: int) -> int:
    return (discounted_units(quote, quantity) // quote.bundle_size) * quote.free_per_bundle


def fee_for(subtotal: Decimal, schedule: FeeSchedule) -> Decimal:
    if schedule.rate < 0 or schedule.fixed_fee < 0:
        raise InvalidPriceError(f"Fee schedule must not be negative: {schedule}")
    if subtotal <= 0:
        return ZERO.quantize(CENT)
    return money(subtotal * schedule.rate + schedule.fixed_fee)


def free_shipping_offer_for(
    offers: Iterable[AnyOffer], order_total: Decimal
) -> Optional[FreeShippingOffer]:
    for offer in offers:
        if not isinstance(offer, FreeShippingOffer) or not offer.minimum_order_value:
            continue
        if order_total >= offer.minimum_order_value:
            return offer
    return None


def qualifies_for_free_shipping(offers: Iterable[AnyOffer], order_total: Decimal) -> bool:
    """Eligibility is the caller's job; pass only offers that are live."""
    return free_shipping_offer_for(offers, order_total) is not None


class OrderAggregator:
    """
    Order-level totals on top of priced lines.

    Fee schedules are always supplied by the caller (see `config`); nothing
    here assumes a rate.
    """

    def __init__(self, customer_fees: FeeSchedule, platform_fees: Optional[FeeSchedule] = None):
        self.customer_fees = customer_fees
        self.platform_fees = platform_fees or FeeSchedule(rate=ZERO)

    def subtotal(self, lines: Iterable[PricingResult]) -> Decimal:
        return money(sum((line.total_cost for line in lines), ZERO))

    def totals(
        self,
        lines: Sequence[PricingResult],
        delivery_cost: Decimal = ZERO,
        order_offers: Iterable[AnyOffer] = (),
        bundles: Sequence[BundleResult] = (),
    ) -> OrderTotals:
        """Lines priced under a bundle deal come in as one `BundleResult`, not as `lines`."""
        subtotal = money(self.subtotal(lines) + sum((b.total_cost for b in bundles), ZERO))
        free_shipping = any(line.free_shipping for line in lines) or qualifies_for_free_shipping(
            order_offers, subtotal
        )
        return self.from_subtotal(subtotal, delivery_cost, free_shipping)

    def from_subtotal(self, subtotal: Decimal, delivery_cost: Decimal = ZERO, free_shipping: bool = False) -> OrderTotals:
        if subtotal < 0:
            raise InvalidPriceError(f"subtotal must be >= 0, got {subtotal}")
        if delivery_cost < 0:
            raise InvalidPriceError(f"delivery cost must be >= 0, got {delivery_cost}")
        subtotal = money(subtotal)
        transaction_fee = fee_for(subtotal, self.customer_fees)
        platform_fee = fee_for(subtotal, self.platform_fees)
        delivery = ZERO.quantize(CENT) if free_shipping else money(delivery_cost)
        return OrderTotals(
            subtotal=subtotal,
            transaction_fee=transaction_fee,
            delivery_cost=delivery,
            total=subtotal + transaction_fee + delivery,
            platform_fee=platform_fee,
            merchant_receives=subtotal - platform_fee,
            free_shipping=free_shipping,
        )
