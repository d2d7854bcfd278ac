from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence

from promo_pricing.errors import InvalidPriceError, InvalidQuantityError
from promo_pricing.models import (
    AnyOffer,
    BundleDealOffer,
    BundleLine,
    BundleResult,
    FreeShippingOffer,
    PricingInput,
    PricingResult,
    Quote,
)
from promo_pricing.offers import ineligibility_reason, parse_offers
from promo_pricing.pricing_log import PricingLog
from promo_pricing.resolvers import resolve_bundle, resolve_offer
from promo_pricing.totals import free_shipping_offer_for, free_units, money, quote_total

HUNDRED = Decimal("100")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_price(value: Any, label: str) -> Decimal:
    if isinstance(value, bool):
        raise InvalidPriceError(f"{label} must be a number, got {value!r}")
    try:
        price = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidPriceError(f"{label} must be a number, got {value!r}") from None
    if not price.is_finite():
        raise InvalidPriceError(f"{label} must be finite, got {value!r}")
    if price < 0:
        raise InvalidPriceError(f"{label} must be >= 0, got {price}")
    return price


def to_quantity(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidQuantityError(f"quantity must be an integer, got {value!r}")
    if value < 1:
        raise InvalidQuantityError(f"quantity must be >= 1, got {value}")
    return value


@dataclass(slots=True)
class Candidate:
    offer: Optional[AnyOffer]
    quote: Quote
    total: Decimal

    @property
    def label(self) -> str:
        return "promo_price" if self.offer is None else f"offer={self.offer.id}"


class PricingEngine:
    """
    Picks the single best price for one product line.

    Offers are never combined: every eligible offer is priced on its own,
    the merchant's promo price joins as one more candidate, and the cheapest
    line total wins. On equal totals the earlier candidate is kept, with the
    promo price after all offers.
    """

    def __init__(self, hook: Optional[Any] = None, clock: Optional[Callable[[], datetime]] = None):
        self.hook = hook if hook is not None else PricingLog()
        self.clock = clock or _utcnow

    def log(self, message: str) -> None:
        self.hook.log(f"[pricing] {message}")

    def eligible_offers(
        self,
        offers: Iterable[AnyOffer],
        now: datetime,
        customer_usage: Optional[Mapping[str, int]] = None,
    ) -> List[AnyOffer]:
        eligible: List[AnyOffer] = []
        for offer in offers:
            try:
                reason = ineligibility_reason(offer, now, customer_usage)
            except (AttributeError, TypeError, ValueError) as e:
                reason = f"unreadable offer data {e!r}"
            if reason is not None:
                self.log(f"offer={offer.id} excluded: {reason}")
                continue
            eligible.append(offer)
        return eligible

    def _candidates(
        self,
        offers: Iterable[AnyOffer],
        base_price: Decimal,
        quantity: int,
        promo_price: Optional[Decimal],
        promo_active: bool,
    ) -> List[Candidate]:
        candidates: List[Candidate] = []
        for offer in offers:
            try:
                quote = resolve_offer(offer, base_price, quantity)
                if quote is None:
                    self.log(f"offer={offer.id} not applicable ({offer.type.value})")
                    continue
                total = quote_total(quote, base_price, quantity)
            except (ArithmeticError, AttributeError, TypeError, ValueError) as e:
                self.log(f"offer={offer.id} skipped after error: {e!r}")
                continue
            candidates.append(Candidate(offer=offer, quote=quote, total=total))
            self.log(f"offer={offer.id} candidate unit={money(total / quantity)} total={money(total)}")

        if promo_active and promo_price:
            if promo_price < base_price:
                quote = Quote(promo_price)
                total = quote_total(quote, base_price, quantity)
                candidates.append(Candidate(offer=None, quote=quote, total=total))
                self.log(f"promo_price candidate unit={money(promo_price)} total={money(total)}")
            else:
                self.log(f"promo_price {promo_price} ignored: not below base price {base_price}")
        return candidates

    def calculate(
        self,
        request: PricingInput,
        now: Optional[datetime] = None,
        customer_usage: Optional[Mapping[str, int]] = None,
    ) -> PricingResult:
        base_price = to_price(request.base_price, "base_price")
        quantity = to_quantity(request.quantity)
        promo_price = None if request.promo_price is None else to_price(request.promo_price, "promo_price")
        now = now or self.clock()

        offers = self.eligible_offers(parse_offers(request.offers), now, customer_usage)
        full_total = base_price * quantity

        best: Optional[Candidate] = None
        for candidate in self._candidates(offers, base_price, quantity, promo_price, request.promo_active):
            if candidate.total >= full_total:
                continue
            if best is None or candidate.total < best.total:
                best = candidate

        total = best.total if best is not None else full_total
        total_cost = money(total)
        shipping_offer: Optional[FreeShippingOffer] = free_shipping_offer_for(offers, total_cost)

        original_total = money(full_total)
        discount = original_total - total_cost
        percentage = Decimal("0.00")
        if original_total > 0:
            percentage = money(discount / original_total * HUNDRED)

        result = PricingResult(
            original_price=money(base_price),
            effective_price=money(total / quantity),
            discount_amount=discount,
            total_cost=total_cost,
            quantity=quantity,
            applied_offer=best.offer if best is not None else None,
            applied_promo_price=best is not None and best.offer is None,
            discount_percentage=percentage,
            free_items=free_units(best.quote, quantity) if best is not None else 0,
            free_shipping=shipping_offer is not None,
            free_shipping_offer=shipping_offer,
        )
        if best is None:
            self.log(f"no offer applied effective={result.effective_price}")
        else:
            self.log(f"selected {best.label} effective={result.effective_price} total={result.total_cost}")
        if shipping_offer is not None:
            self.log(f"offer={shipping_offer.id} free shipping (minimum {shipping_offer.minimum_order_value})")
        return result

    def price_bundle(
        self,
        offer: BundleDealOffer,
        lines: Sequence[BundleLine],
        now: Optional[datetime] = None,
        customer_usage: Optional[Mapping[str, int]] = None,
    ) -> Optional[BundleResult]:
        """Bundle deal over several lines; same eligibility rules as single lines."""
        now = now or self.clock()
        if not self.eligible_offers([offer], now, customer_usage):
            return None
        try:
            result = resolve_bundle(offer, lines)
        except (ArithmeticError, AttributeError, TypeError, ValueError) as e:
            self.log(f"offer={offer.id} skipped after error: {e!r}")
            return None
        if result is None:
            self.log(f"offer={offer.id} not applicable (bundle_deal)")
        else:
            self.log(f"offer={offer.id} bundles={result.bundles} total={result.total_cost}")
        return result

    def calculate_promotional_pricing(
        self,
        base_price: Any,
        quantity: int,
        offers: Iterable[Any] = (),
        promo_price: Optional[Any] = None,
        promo_active: bool = False,
        now: Optional[datetime] = None,
        customer_usage: Optional[Mapping[str, int]] = None,
    ) -> PricingResult:
        request = PricingInput(
            base_price=base_price,
            quantity=quantity,
            offers=list(offers or []),
            promo_price=promo_price,
            promo_active=bool(promo_active),
        )
        return self.calculate(request, now=now, customer_usage=customer_usage)


def calculate_promotional_pricing(
    base_price: Any,
    quantity: int,
    offers: Iterable[Any] = (),
    promo_price: Optional[Any] = None,
    promo_active: bool = False,
    *,
    now: Optional[datetime] = None,
    customer_usage: Optional[Mapping[str, int]] = None,
    hook: Optional[Any] = None,
) -> PricingResult:
    engine = PricingEngine(hook=hook)
    return engine.calculate_promotional_pricing(
        base_price,
        quantity,
        offers,
        promo_price=promo_price,
        promo_active=promo_active,
        now=now,
        customer_usage=customer_usage,
    )
