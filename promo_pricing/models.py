from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Tuple, Union


class OfferType(str, Enum):
    PERCENTAGE_DISCOUNT = "percentage_discount"
    FIXED_DISCOUNT = "fixed_discount"
    FIXED_AMOUNT_DISCOUNT = "fixed_amount_discount"
    FIXED_PRICE = "fixed_price"
    BOGO = "bogo"
    BUY_X_GET_Y_FREE = "buy_x_get_y_free"
    MULTI_BUY = "multi_buy"
    BULK_TIER = "bulk_tier"
    BULK_DISCOUNT = "bulk_discount"
    BUNDLE_DEAL = "bundle_deal"
    FREE_SHIPPING = "free_shipping"
    UNKNOWN = "unknown"


class DiscountKind(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


@dataclass(slots=True)
class BulkTier:
    min_quantity: int
    discount_percentage: Optional[Decimal] = None
    discount_amount: Optional[Decimal] = None
    price_per_unit: Optional[Decimal] = None


@dataclass(slots=True)
class Offer:
    """
    Fields shared by every offer shape.

    Offers are owned by the catalogue; the engine only reads them.
    `uses_count` is whatever the catalogue last recorded.
    """

    id: str
    type: OfferType
    name: str = ""
    is_active: bool = True
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    max_uses: Optional[int] = None
    uses_count: int = 0
    max_uses_per_customer: Optional[int] = None
    min_quantity: Optional[int] = None
    max_quantity: Optional[int] = None
    description: str = ""
    terms_and_conditions: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(slots=True)
class PercentageDiscountOffer(Offer):
    discount_percentage: Decimal = Decimal("0")


@dataclass(slots=True)
class FixedDiscountOffer(Offer):
    discount_amount: Decimal = Decimal("0")


@dataclass(slots=True)
class FixedPriceOffer(Offer):
    fixed_price: Optional[Decimal] = None


@dataclass(slots=True)
class BuyXGetYOffer(Offer):
    buy_quantity: int = 0
    get_quantity: int = 0


@dataclass(slots=True)
class MultiBuyOffer(Offer):
    threshold_quantity: Optional[int] = None
    discount_type: Optional[DiscountKind] = None
    discount_value: Decimal = Decimal("0")


@dataclass(slots=True)
class BulkTierOffer(Offer):
    bulk_tiers: List[BulkTier] = field(default_factory=list)


@dataclass(slots=True)
class BundleDealOffer(Offer):
    bundle_products: List[str] = field(default_factory=list)
    bundle_price: Optional[Decimal] = None
    discount_type: Optional[DiscountKind] = None
    discount_value: Decimal = Decimal("0")


@dataclass(slots=True)
class FreeShippingOffer(Offer):
    minimum_order_value: Optional[Decimal] = None


@dataclass(slots=True)
class UnknownOffer(Offer):
    raw_type: str = ""


AnyOffer = Union[
    PercentageDiscountOffer,
    FixedDiscountOffer,
    FixedPriceOffer,
    BuyXGetYOffer,
    MultiBuyOffer,
    BulkTierOffer,
    BundleDealOffer,
    FreeShippingOffer,
    UnknownOffer,
]


@dataclass(slots=True)
class Quote:
    """
    Candidate price from one offer.

    Units are sold in bundles of `bundle_size` for `bundle_price`. Only the
    first `discounted_limit` units (all units when None) take part; whatever
    does not fill a whole bundle is charged at the base price.
    """

    bundle_price: Decimal
    bundle_size: int = 1
    discounted_limit: Optional[int] = None
    free_per_bundle: int = 0

    @property
    def unit_price(self) -> Decimal:
        return self.bundle_price / Decimal(self.bundle_size)


@dataclass(slots=True)
class PricingInput:
    base_price: Decimal
    quantity: int
    offers: List[AnyOffer] = field(default_factory=list)
    promo_price: Optional[Decimal] = None
    promo_active: bool = False


@dataclass(slots=True)
class PricingResult:
    original_price: Decimal
    effective_price: Decimal
    discount_amount: Decimal
    total_cost: Decimal
    quantity: int
    applied_offer: Optional[AnyOffer] = None
    applied_promo_price: bool = False
    discount_percentage: Decimal = Decimal("0.00")
    free_items: int = 0
    free_shipping: bool = False
    free_shipping_offer: Optional[FreeShippingOffer] = None


@dataclass(slots=True)
class BundleLine:
    product_id: str
    base_price: Decimal
    quantity: int


@dataclass(slots=True)
class BundleResult:
    bundles: int
    line_totals: List[Tuple[str, Decimal]]
    original_total: Decimal
    total_cost: Decimal

    @property
    def discount_amount(self) -> Decimal:
        return self.original_total - self.total_cost


@dataclass(slots=True)
class FeeSchedule:
    rate: Decimal
    fixed_fee: Decimal = Decimal("0.00")


@dataclass(slots=True)
class OrderTotals:
    subtotal: Decimal
    transaction_fee: Decimal
    delivery_cost: Decimal
    total: Decimal
    platform_fee: Decimal
    merchant_receives: Decimal
    free_shipping: bool = False
