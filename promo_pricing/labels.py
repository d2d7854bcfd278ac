"""Short badge text for offers, as shown on product cards and campaign previews."""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, List

from promo_pricing.currency import format_currency
from promo_pricing.models import (
    AnyOffer,
    BulkTierOffer,
    BundleDealOffer,
    BuyXGetYOffer,
    DiscountKind,
    FixedDiscountOffer,
    FixedPriceOffer,
    FreeShippingOffer,
    MultiBuyOffer,
    OfferType,
    PercentageDiscountOffer,
    PricingResult,
)


def _pct(value: Decimal) -> str:
    return f"{value.normalize():f}%"


def _discount(kind, value: Decimal, currency: str) -> str:
    if kind is DiscountKind.PERCENTAGE:
        return f"{_pct(value)} OFF"
    return f"{format_currency(value, currency)} OFF"


def offer_label(offer: AnyOffer, currency: str = "GBP") -> str:
    if isinstance(offer, PercentageDiscountOffer):
        return f"{_pct(offer.discount_percentage)} OFF"
    if isinstance(offer, FixedDiscountOffer):
        return f"{format_currency(offer.discount_amount, currency)} OFF"
    if isinstance(offer, FixedPriceOffer):
        return f"Fixed Price: {format_currency(offer.fixed_price or 0, currency)}"
    if isinstance(offer, BuyXGetYOffer):
        return f"Buy {offer.buy_quantity}, Get {offer.get_quantity} FREE"
    if isinstance(offer, MultiBuyOffer):
        return f"Buy {offer.threshold_quantity or 0}+ get {_discount(offer.discount_type, offer.discount_value, currency)}"
    if isinstance(offer, BulkTierOffer):
        if not offer.bulk_tiers:
            return "Bulk Discount"
        first = min(offer.bulk_tiers, key=lambda t: t.min_quantity)
        if first.price_per_unit and offer.type is OfferType.BULK_DISCOUNT:
            return f"Bulk Pricing from {format_currency(first.price_per_unit, currency)} each"
        if first.price_per_unit:
            return f"{first.min_quantity}+ units = {format_currency(first.price_per_unit, currency)} each"
        best = max(offer.bulk_tiers, key=lambda t: t.min_quantity)
        if best.discount_percentage:
            return f"Bulk Discount up to {_pct(best.discount_percentage)} OFF"
        if best.discount_amount:
            return f"Bulk Discount up to {format_currency(best.discount_amount, currency)} OFF each"
        return "Bulk Discount"
    if isinstance(offer, FreeShippingOffer):
        return f"Free Shipping on orders {format_currency(offer.minimum_order_value or 0, currency)}+"
    if isinstance(offer, BundleDealOffer):
        if offer.bundle_price:
            return f"Bundle Deal: {format_currency(offer.bundle_price, currency)}"
        if offer.discount_type is not None and offer.discount_value:
            return f"Bundle Deal: {_discount(offer.discount_type, offer.discount_value, currency)}"
        return "Bundle Deal"
    return offer.name or "Special Offer"


def offer_labels(offers: Iterable[AnyOffer], currency: str = "GBP") -> List[str]:
    return [offer_label(offer, currency) for offer in offers]


def price_badge(result: PricingResult, currency: str = "GBP") -> str:
    """Plain price, or "PROMO <price> (was <price>)" when discounted."""
    if result.effective_price < result.original_price:
        return (
            f"PROMO {format_currency(result.effective_price, currency)} "
            f"(was {format_currency(result.original_price, currency)})"
        )
    return format_currency(result.original_price, currency)
