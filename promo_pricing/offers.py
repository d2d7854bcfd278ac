"""
Turning catalogue offer records into offer variants, and deciding eligibility.

Catalogue records are loosely typed mappings with camelCase keys whose fields
depend on `type`. Parsing never fails on bad data: unreadable numbers become
zero, unreadable dates become "no bound", and an unrecognised `type` becomes
an `UnknownOffer`.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from promo_pricing.models import (
    AnyOffer,
    BulkTier,
    BulkTierOffer,
    BundleDealOffer,
    BuyXGetYOffer,
    DiscountKind,
    FixedDiscountOffer,
    FixedPriceOffer,
    FreeShippingOffer,
    MultiBuyOffer,
    Offer,
    OfferType,
    PercentageDiscountOffer,
    UnknownOffer,
)

ZERO = Decimal("0")


def to_decimal(value: Any) -> Optional[Decimal]:
    """Missing or unreadable -> None, negative -> 0."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite():
        return None
    return max(number, ZERO)


def to_int(value: Any) -> Optional[int]:
    number = to_decimal(value)
    if number is None:
        return None
    return int(number)


def parse_timestamp(value: Any, end_of_day: bool = False) -> Optional[datetime]:
    """
    ISO timestamps; naive values are UTC. A bare date means the start of the
    day, or the last instant of it when `end_of_day` is set.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.max if end_of_day else time.min)
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            if len(text) == 10:
                day = date.fromisoformat(text)
                parsed = datetime.combine(day, time.max if end_of_day else time.min)
            else:
                parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    return as_utc(parsed)


def as_utc(moment: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def _discount_kind(value: Any) -> Optional[DiscountKind]:
    try:
        return DiscountKind(value)
    except ValueError:
        return None


def _first(data: Mapping[str, Any], *keys: str) -> Optional[Decimal]:
    for key in keys:
        number = to_decimal(data.get(key))
        if number is not None and number != ZERO:
            return number
    return None


def parse_tier(data: Mapping[str, Any]) -> BulkTier:
    return BulkTier(
        min_quantity=to_int(data.get("minQuantity")) or 0,
        discount_percentage=to_decimal(data.get("discountPercentage")),
        discount_amount=to_decimal(data.get("discountAmount")),
        price_per_unit=to_decimal(data.get("pricePerUnit")),
    )


def _common(data: Mapping[str, Any], offer_type: OfferType) -> Dict[str, Any]:
    return dict(
        id="" if data.get("id") is None else str(data.get("id")),
        type=offer_type,
        name=str(data.get("name") or ""),
        is_active=data.get("isActive", True) is not False,
        start_date=parse_timestamp(data.get("startDate")),
        end_date=parse_timestamp(data.get("endDate"), end_of_day=True),
        max_uses=to_int(data.get("maxUses")),
        uses_count=to_int(data.get("usesCount")) or 0,
        max_uses_per_customer=to_int(data.get("maxUsesPerCustomer")),
        min_quantity=to_int(data.get("minQuantity")),
        max_quantity=to_int(data.get("maxQuantity")),
        description=str(data.get("description") or ""),
        terms_and_conditions=str(data.get("termsAndConditions") or ""),
        created_at=parse_timestamp(data.get("createdAt")),
        updated_at=parse_timestamp(data.get("updatedAt")),
    )


def _percentage(data: Mapping[str, Any], offer_type: OfferType) -> AnyOffer:
    return PercentageDiscountOffer(
        **_common(data, offer_type),
        discount_percentage=_first(data, "value", "discountPercentage") or ZERO,
    )


def _fixed_discount(data: Mapping[str, Any], offer_type: OfferType) -> AnyOffer:
    return FixedDiscountOffer(
        **_common(data, offer_type),
        discount_amount=_first(data, "value", "discountAmount") or ZERO,
    )


def _fixed_price(data: Mapping[str, Any], offer_type: OfferType) -> AnyOffer:
    return FixedPriceOffer(**_common(data, offer_type), fixed_price=to_decimal(data.get("fixedPrice")))


def _buy_x_get_y(data: Mapping[str, Any], offer_type: OfferType) -> AnyOffer:
    return BuyXGetYOffer(
        **_common(data, offer_type),
        buy_quantity=to_int(data.get("buyQuantity")) or 0,
        get_quantity=to_int(data.get("getQuantity")) or 0,
    )


def _multi_buy(data: Mapping[str, Any], offer_type: OfferType) -> AnyOffer:
    common = _common(data, offer_type)
    threshold = to_int(data.get("quantity"))
    if threshold is None:
        threshold = common["min_quantity"]
    return MultiBuyOffer(
        **common,
        threshold_quantity=threshold,
        discount_type=_discount_kind(data.get("discountType")),
        discount_value=to_decimal(data.get("discountValue")) or ZERO,
    )


def _bulk(data: Mapping[str, Any], offer_type: OfferType) -> AnyOffer:
    raw_tiers = data.get("bulkTiers") or []
    tiers = [parse_tier(t) for t in raw_tiers if isinstance(t, Mapping)]
    if not tiers and offer_type is OfferType.BULK_TIER:
        # legacy single-tier records carry the breakpoint on the offer itself
        min_qty = to_int(data.get("quantity"))
        if min_qty is None:
            min_qty = to_int(data.get("minQuantity")) or 0
        tiers = [BulkTier(min_quantity=min_qty, price_per_unit=to_decimal(data.get("pricePerUnit")))]
    return BulkTierOffer(**_common(data, offer_type), bulk_tiers=tiers)


def _bundle(data: Mapping[str, Any], offer_type: OfferType) -> AnyOffer:
    return BundleDealOffer(
        **_common(data, offer_type),
        bundle_products=[str(p) for p in (data.get("bundleProducts") or [])],
        bundle_price=to_decimal(data.get("bundlePrice")),
        discount_type=_discount_kind(data.get("discountType")),
        discount_value=to_decimal(data.get("discountValue")) or ZERO,
    )


def _free_shipping(data: Mapping[str, Any], offer_type: OfferType) -> AnyOffer:
    return FreeShippingOffer(
        **_common(data, offer_type),
        minimum_order_value=to_decimal(data.get("minimumOrderValue")),
    )


_PARSERS: Dict[OfferType, Callable[[Mapping[str, Any], OfferType], AnyOffer]] = {
    OfferType.PERCENTAGE_DISCOUNT: _percentage,
    OfferType.FIXED_DISCOUNT: _fixed_discount,
    OfferType.FIXED_AMOUNT_DISCOUNT: _fixed_discount,
    OfferType.FIXED_PRICE: _fixed_price,
    OfferType.BOGO: _buy_x_get_y,
    OfferType.BUY_X_GET_Y_FREE: _buy_x_get_y,
    OfferType.MULTI_BUY: _multi_buy,
    OfferType.BULK_TIER: _bulk,
    OfferType.BULK_DISCOUNT: _bulk,
    OfferType.BUNDLE_DEAL: _bundle,
    OfferType.FREE_SHIPPING: _free_shipping,
}


def parse_offer(data: Mapping[str, Any]) -> AnyOffer:
    raw_type = str(data.get("type") or "")
    try:
        offer_type = OfferType(raw_type)
    except ValueError:
        offer_type = OfferType.UNKNOWN
    parser = _PARSERS.get(offer_type)
    if parser is None:
        return UnknownOffer(**_common(data, OfferType.UNKNOWN), raw_type=raw_type)
    return parser(data, offer_type)


def parse_offers(records: Iterable[Any]) -> List[AnyOffer]:
    """Accepts parsed offers and raw mappings mixed; anything else is dropped."""
    offers: List[AnyOffer] = []
    for record in records or []:
        if isinstance(record, Offer):
            offers.append(record)
        elif isinstance(record, Mapping):
            offers.append(parse_offer(record))
    return offers


def ineligibility_reason(
    offer: Offer,
    now: datetime,
    customer_usage: Optional[Mapping[str, int]] = None,
) -> Optional[str]:
    """None when the offer may be evaluated at `now`, otherwise why not."""
    now = as_utc(now)
    if not offer.is_active:
        return "inactive"
    if offer.start_date is not None and now < as_utc(offer.start_date):
        return "not started"
    if offer.end_date is not None and now > as_utc(offer.end_date):
        return "expired"
    if offer.max_uses is not None and offer.uses_count >= offer.max_uses:
        return "usage limit reached"
    if offer.max_uses_per_customer is not None and customer_usage:
        if customer_usage.get(offer.id, 0) >= offer.max_uses_per_customer:
            return "customer usage limit reached"
    return None


def is_eligible(
    offer: Offer,
    now: datetime,
    customer_usage: Optional[Mapping[str, int]] = None,
) -> bool:
    return ineligibility_reason(offer, now, customer_usage) is None
