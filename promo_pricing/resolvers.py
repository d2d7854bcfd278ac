"""
Candidate prices, one offer at a time.

Every resolver answers with a `Quote` or None ("not applicable"). None is
also the answer for offers that never change a single product's unit price:
bundle deals (priced through `resolve_bundle`), free shipping (a delivery
concern) and unknown types.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from promo_pricing.models import (
    AnyOffer,
    BulkTierOffer,
    BundleDealOffer,
    BundleLine,
    BundleResult,
    BuyXGetYOffer,
    DiscountKind,
    FixedDiscountOffer,
    FixedPriceOffer,
    MultiBuyOffer,
    OfferType,
    PercentageDiscountOffer,
    Quote,
)
from promo_pricing.tiers import select_tier
from promo_pricing.totals import money

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def reduce_by_percentage(price: Decimal, percentage: Decimal) -> Decimal:
    return max(ZERO, price * (1 - percentage / HUNDRED))


def reduce_by_amount(price: Decimal, amount: Decimal) -> Decimal:
    return max(ZERO, price - amount)


def _reduce(price: Decimal, kind: Optional[DiscountKind], value: Decimal) -> Optional[Decimal]:
    if not value:
        return None
    if kind is DiscountKind.PERCENTAGE:
        return reduce_by_percentage(price, value)
    if kind is DiscountKind.FIXED:
        return reduce_by_amount(price, value)
    return None


def _percentage(offer: PercentageDiscountOffer, base_price: Decimal, quantity: int) -> Optional[Quote]:
    if not offer.discount_percentage:
        return None
    return Quote(reduce_by_percentage(base_price, offer.discount_percentage))


def _fixed_discount(offer: FixedDiscountOffer, base_price: Decimal, quantity: int) -> Optional[Quote]:
    if not offer.discount_amount:
        return None
    return Quote(reduce_by_amount(base_price, offer.discount_amount))


def _fixed_price(offer: FixedPriceOffer, base_price: Decimal, quantity: int) -> Optional[Quote]:
    if not offer.fixed_price:
        return None
    return Quote(offer.fixed_price)


def _buy_x_get_y(offer: BuyXGetYOffer, base_price: Decimal, quantity: int) -> Optional[Quote]:
    if offer.buy_quantity <= 0 or quantity < offer.buy_quantity:
        return None
    if offer.get_quantity <= 0:
        return Quote(base_price)
    return Quote(
        bundle_price=base_price * offer.buy_quantity,
        bundle_size=offer.buy_quantity + offer.get_quantity,
        free_per_bundle=offer.get_quantity,
    )


def _multi_buy(offer: MultiBuyOffer, base_price: Decimal, quantity: int) -> Optional[Quote]:
    if not offer.threshold_quantity or quantity < offer.threshold_quantity:
        return None
    price = _reduce(base_price, offer.discount_type, offer.discount_value)
    return None if price is None else Quote(price)


def _bulk(offer: BulkTierOffer, base_price: Decimal, quantity: int) -> Optional[Quote]:
    tier = select_tier(offer.bulk_tiers, quantity)
    if tier is None:
        return None
    if tier.price_per_unit:
        return Quote(tier.price_per_unit)
    if offer.type is OfferType.BULK_TIER:
        return None
    if tier.discount_percentage:
        return Quote(reduce_by_percentage(base_price, tier.discount_percentage))
    if tier.discount_amount:
        return Quote(reduce_by_amount(base_price, tier.discount_amount))
    return None


def _not_applicable(offer: AnyOffer, base_price: Decimal, quantity: int) -> Optional[Quote]:
    return None


_RESOLVERS: Dict[OfferType, Callable[..., Optional[Quote]]] = {
    OfferType.PERCENTAGE_DISCOUNT: _percentage,
    OfferType.FIXED_DISCOUNT: _fixed_discount,
    OfferType.FIXED_AMOUNT_DISCOUNT: _fixed_discount,
    OfferType.FIXED_PRICE: _fixed_price,
    OfferType.BOGO: _buy_x_get_y,
    OfferType.BUY_X_GET_Y_FREE: _buy_x_get_y,
    OfferType.MULTI_BUY: _multi_buy,
    OfferType.BULK_TIER: _bulk,
    OfferType.BULK_DISCOUNT: _bulk,
    OfferType.BUNDLE_DEAL: _not_applicable,
    OfferType.FREE_SHIPPING: _not_applicable,
    OfferType.UNKNOWN: _not_applicable,
}

_unhandled = set(OfferType) - set(_RESOLVERS)
if _unhandled:
    raise RuntimeError(f"No price resolver for offer types: {sorted(t.value for t in _unhandled)}")


def resolve_offer(offer: AnyOffer, base_price: Decimal, quantity: int) -> Optional[Quote]:
    """
    Candidate price for `quantity` units under one offer.

    `min_quantity` unmet means not applicable; `max_quantity` limits how many
    units receive the offer price.
    """
    if offer.min_quantity and quantity < offer.min_quantity:
        return None
    quote = _RESOLVERS[offer.type](offer, base_price, quantity)
    if quote is not None and offer.max_quantity:
        quote.discounted_limit = offer.max_quantity
    return quote


def resolve_bundle(offer: BundleDealOffer, lines: Sequence[BundleLine]) -> Optional[BundleResult]:
    """
    Price a basket under a bundle deal.

    Every bundled product must be in `lines`. A bundle is one unit of each
    bundled product, and the number of bundles is the smallest quantity among
    them, capped by `max_quantity`; fewer than `min_quantity` bundles means
    no deal. Eligibility is checked by the caller (`PricingEngine.price_bundle`).
    `bundle_price` is shared across the products of a bundle in
    proportion to their base prices; without it the offer's own discount is
    applied to bundled units. Returns None when the deal cannot apply or
    would not lower the basket total.
    """
    product_ids = list(dict.fromkeys(offer.bundle_products))
    if not product_ids:
        return None
    by_id = {line.product_id: line for line in lines}
    if any(pid not in by_id for pid in product_ids):
        return None
    bundled = [by_id[pid] for pid in product_ids]
    bundles = min(line.quantity for line in bundled)
    if offer.max_quantity:
        bundles = min(bundles, offer.max_quantity)
    if bundles <= 0 or (offer.min_quantity and bundles < offer.min_quantity):
        return None

    unit_prices: Dict[str, Decimal] = {}
    if offer.bundle_price:
        bundle_base = sum((line.base_price for line in bundled), ZERO)
        if bundle_base <= 0:
            return None
        for line in bundled:
            unit_prices[line.product_id] = offer.bundle_price * line.base_price / bundle_base
    else:
        for line in bundled:
            price = _reduce(line.base_price, offer.discount_type, offer.discount_value)
            if price is None:
                return None
            unit_prices[line.product_id] = price

    line_totals: List[Tuple[str, Decimal]] = []
    original_total = ZERO
    for line in lines:
        full = line.base_price * line.quantity
        original_total += full
        if line.product_id in unit_prices:
            total = unit_prices[line.product_id] * bundles + line.base_price * (line.quantity - bundles)
        else:
            total = full
        line_totals.append((line.product_id, money(total)))

    total_cost = sum((total for _, total in line_totals), ZERO)
    original_total = money(original_total)
    if total_cost >= original_total:
        return None
    return BundleResult(
        bundles=bundles,
        line_totals=line_totals,
        original_total=original_total,
        total_cost=total_cost,
    )
