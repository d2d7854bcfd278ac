"""Tests for offer selection and the pricing entry point."""
import logging
from datetime import datetime
from decimal import Decimal

import pytest

from promo_pricing.engine import calculate_promotional_pricing
from promo_pricing.errors import InvalidPriceError, InvalidQuantityError, PricingError
from promo_pricing.models import BundleLine, Offer, OfferType, PercentageDiscountOffer
from promo_pricing.offers import parse_offer

# Configure logging for tests
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


def test_no_offers_keeps_base_price(engine):
    """Without offers the line is charged at base price."""
    result = engine.calculate_promotional_pricing(Decimal("10.00"), 5, [])

    assert result.original_price == Decimal("10.00")
    assert result.effective_price == Decimal("10.00")
    assert result.total_cost == Decimal("50.00")
    assert result.discount_amount == Decimal("0.00")
    assert result.applied_offer is None
    assert result.applied_promo_price is False


def test_percentage_discount(engine, catalogue):
    result = engine.calculate_promotional_pricing(Decimal("10.00"), 5, [catalogue["pct20"]])

    assert result.effective_price == Decimal("8.00")
    assert result.total_cost == Decimal("40.00")
    assert result.discount_amount == Decimal("10.00")
    assert result.discount_percentage == Decimal("20.00")
    assert result.applied_offer.id == "pct20"
    assert result.applied_offer.type is OfferType.PERCENTAGE_DISCOUNT


def test_legacy_value_field_and_half_up_rounding(engine):
    """10% off 0.55 is 0.495 per unit, charged as 0.50."""
    result = engine.calculate_promotional_pricing(0.55, 1, [{"id": "ten", "type": "percentage_discount", "value": 10}])

    assert result.original_price == Decimal("0.55")
    assert result.effective_price == Decimal("0.50")
    assert result.applied_offer.id == "ten"


def test_bulk_tier_with_largest_breakpoint_wins(engine, catalogue):
    result = engine.calculate_promotional_pricing(Decimal("10.00"), 60, [catalogue["bulk"]])

    assert result.effective_price == Decimal("6.00")
    assert result.total_cost == Decimal("360.00")
    assert result.applied_offer.id == "bulk"


def test_bogo_charges_whole_bundles_only(engine, catalogue):
    """Buy 2 get 1: three units cost two."""
    result = engine.calculate_promotional_pricing(Decimal("9.00"), 3, [catalogue["b2g1"]])

    assert result.total_cost == Decimal("18.00")
    assert result.effective_price == Decimal("6.00")
    assert result.free_items == 1
    assert result.applied_offer.id == "b2g1"


def test_bogo_leftover_units_pay_base_price(engine, catalogue):
    result = engine.calculate_promotional_pricing(Decimal("9.00"), 4, [catalogue["b2g1"]])

    # one bundle (18.00) plus one unit at 9.00
    assert result.total_cost == Decimal("27.00")
    assert result.effective_price == Decimal("6.75")
    assert result.free_items == 1


def test_bogo_without_full_bundle_is_not_applied(engine, catalogue, pricing_log):
    result = engine.calculate_promotional_pricing(Decimal("9.00"), 2, [catalogue["b2g1"]])

    assert result.applied_offer is None
    assert result.total_cost == Decimal("18.00")
    assert result.free_items == 0
    assert pricing_log.matching("no offer applied")


def test_expired_offer_is_never_applied(engine, catalogue, pricing_log):
    result = engine.calculate_promotional_pricing(Decimal("10.00"), 1, [catalogue["expired"]])

    assert result.applied_offer is None
    assert result.effective_price == Decimal("10.00")
    assert pricing_log.matching("offer=expired excluded: expired")


def test_exhausted_offer_is_never_applied(engine, catalogue, pricing_log):
    """usesCount == maxUses excludes the offer however cheap it is."""
    result = engine.calculate_promotional_pricing(Decimal("10.00"), 1, [catalogue["capped"], catalogue["pct20"]])

    assert result.applied_offer.id == "pct20"
    assert pricing_log.matching("offer=capped excluded: usage limit reached")


def test_inactive_offer_is_excluded(engine, catalogue, pricing_log):
    offer = dict(catalogue["fixed7"], isActive=False)

    result = engine.calculate_promotional_pricing(Decimal("10.00"), 1, [offer])

    assert result.applied_offer is None
    assert pricing_log.matching("offer=fixed7 excluded: inactive")


def test_customer_usage_limit(engine):
    offer = {"id": "once", "type": "percentage_discount", "discountPercentage": 20, "maxUsesPerCustomer": 1}

    used = engine.calculate_promotional_pricing(Decimal("10.00"), 1, [offer], customer_usage={"once": 1})
    fresh = engine.calculate_promotional_pricing(Decimal("10.00"), 1, [offer], customer_usage={"once": 0})

    assert used.applied_offer is None
    assert fresh.applied_offer.id == "once"


def test_date_only_end_date_covers_whole_day(engine):
    offer = {"id": "today", "type": "fixed_price", "fixedPrice": 5, "endDate": "2026-06-01"}

    result = engine.calculate_promotional_pricing(Decimal("10.00"), 1, [offer])

    assert result.applied_offer.id == "today"


def test_best_single_offer_wins_without_stacking(engine, catalogue, pricing_log):
    offers = [catalogue["off1"], catalogue["pct20"], catalogue["fixed7"]]

    result = engine.calculate_promotional_pricing(Decimal("10.00"), 1, offers)

    # 7.00 beats 8.00 and 9.00; nothing is combined
    assert result.effective_price == Decimal("7.00")
    assert result.applied_offer.id == "fixed7"
    assert len(pricing_log.matching("candidate")) == 3
    assert pricing_log.matching("selected offer=fixed7")


def test_promo_price_competes_with_offers(engine, catalogue):
    result = engine.calculate_promotional_pricing(
        Decimal("10.00"), 2, [catalogue["pct20"]], promo_price=Decimal("7.50"), promo_active=True
    )

    assert result.effective_price == Decimal("7.50")
    assert result.total_cost == Decimal("15.00")
    assert result.applied_offer is None
    assert result.applied_promo_price is True


def test_inactive_promo_price_is_ignored(engine, catalogue):
    result = engine.calculate_promotional_pricing(
        Decimal("10.00"), 2, [catalogue["pct20"]], promo_price=Decimal("7.50"), promo_active=False
    )

    assert result.effective_price == Decimal("8.00")
    assert result.applied_offer.id == "pct20"


def test_promo_price_alone(engine):
    result = engine.calculate_promotional_pricing(Decimal("10.00"), 3, [], promo_price=Decimal("9.00"), promo_active=True)

    assert result.effective_price == Decimal("9.00")
    assert result.applied_promo_price is True


def test_tie_keeps_offer_before_promo_price(engine, catalogue):
    result = engine.calculate_promotional_pricing(
        Decimal("10.00"), 1, [catalogue["pct20"]], promo_price=Decimal("8.00"), promo_active=True
    )

    assert result.applied_offer.id == "pct20"
    assert result.applied_promo_price is False


def test_price_increases_are_never_applied(engine, pricing_log):
    offers = [{"id": "dear", "type": "fixed_price", "fixedPrice": 12.00}]

    result = engine.calculate_promotional_pricing(
        Decimal("10.00"), 1, offers, promo_price=Decimal("11.00"), promo_active=True
    )

    assert result.effective_price == Decimal("10.00")
    assert result.applied_offer is None
    assert result.applied_promo_price is False
    assert pricing_log.matching("promo_price 11.00 ignored")


def test_max_quantity_caps_discounted_units(engine):
    offer = {"id": "first3", "type": "percentage_discount", "discountPercentage": 20, "maxQuantity": 3}

    result = engine.calculate_promotional_pricing(Decimal("10.00"), 5, [offer])

    # 3 x 8.00 + 2 x 10.00
    assert result.total_cost == Decimal("44.00")
    assert result.effective_price == Decimal("8.80")


def test_min_quantity_unmet_is_not_applicable(engine, pricing_log):
    offer = {"id": "min5", "type": "fixed_discount", "discountAmount": 2, "minQuantity": 5}

    result = engine.calculate_promotional_pricing(Decimal("10.00"), 4, [offer])

    assert result.applied_offer is None
    assert pricing_log.matching("offer=min5 not applicable")


def test_multi_buy_threshold(engine, catalogue):
    below = engine.calculate_promotional_pricing(Decimal("4.00"), 5, [catalogue["multi"]])
    at = engine.calculate_promotional_pricing(Decimal("4.00"), 6, [catalogue["multi"]])

    assert below.applied_offer is None
    assert at.effective_price == Decimal("3.00")
    assert at.total_cost == Decimal("18.00")


def test_free_shipping_flag_follows_line_total(engine, catalogue):
    offers = [catalogue["pct20"], catalogue["ship50"]]

    over = engine.calculate_promotional_pricing(Decimal("10.00"), 7, offers)
    under = engine.calculate_promotional_pricing(Decimal("10.00"), 6, offers)

    # 7 x 8.00 = 56.00 clears the 50.00 minimum, 6 x 8.00 = 48.00 does not
    assert over.free_shipping is True
    assert over.free_shipping_offer.id == "ship50"
    assert over.applied_offer.id == "pct20"
    assert under.free_shipping is False


def test_malformed_offers_fall_back_to_base_price(engine):
    offers = [
        {"id": "a", "type": "percentage_discount"},
        {"id": "b", "type": "bogo", "buyQuantity": "lots", "getQuantity": 1},
        {"id": "c", "type": "fixed_price", "fixedPrice": None},
        {"id": "d", "type": "loyalty_points", "name": "Vendor special"},
        {"id": "e", "type": "bulk_discount", "bulkTiers": "not-a-list"},
        "not an offer",
    ]

    result = engine.calculate_promotional_pricing(Decimal("10.00"), 3, offers)

    assert result.effective_price == Decimal("10.00")
    assert result.applied_offer is None


def test_offer_that_raises_is_skipped_and_logged(engine, catalogue, pricing_log):
    broken = PercentageDiscountOffer(id="broken", type=OfferType.PERCENTAGE_DISCOUNT, discount_percentage="abc")

    result = engine.calculate_promotional_pricing(Decimal("10.00"), 1, [broken, catalogue["off1"]])

    assert result.applied_offer.id == "off1"
    assert pricing_log.matching("offer=broken skipped after error")


def test_identical_inputs_give_identical_results(engine, catalogue):
    offers = list(catalogue.values())

    first = engine.calculate_promotional_pricing(Decimal("10.00"), 12, offers, Decimal("9.50"), True)
    second = engine.calculate_promotional_pricing(Decimal("10.00"), 12, offers, Decimal("9.50"), True)

    assert first == second


def test_effective_price_stays_between_zero_and_original(engine, catalogue):
    offers = list(catalogue.values()) + [{"id": "huge", "type": "fixed_discount", "discountAmount": 500}]

    for offer in offers:
        for qty in (1, 2, 3, 7, 10, 49, 50, 60):
            result = engine.calculate_promotional_pricing(Decimal("10.00"), qty, [offer])
            assert Decimal("0") <= result.effective_price <= result.original_price


def test_bulk_tiers_never_raise_price_as_quantity_grows(engine, catalogue):
    previous = None
    for qty in range(1, 81):
        result = engine.calculate_promotional_pricing(Decimal("10.00"), qty, [catalogue["bulk"]])
        if previous is not None:
            assert result.effective_price <= previous
        previous = result.effective_price


@pytest.mark.parametrize("quantity", [0, -3, 2.5, "4", True])
def test_invalid_quantity_is_rejected(engine, quantity):
    with pytest.raises(InvalidQuantityError):
        engine.calculate_promotional_pricing(Decimal("10.00"), quantity, [])


@pytest.mark.parametrize("price", [Decimal("-0.01"), "abc", "NaN"])
def test_invalid_base_price_is_rejected(engine, price):
    with pytest.raises(InvalidPriceError):
        engine.calculate_promotional_pricing(price, 1, [])


def test_validation_errors_are_value_errors(engine):
    with pytest.raises(ValueError):
        engine.calculate_promotional_pricing(Decimal("10.00"), 0, [])
    with pytest.raises(PricingError):
        engine.calculate_promotional_pricing(Decimal("-1"), 1, [])


def test_module_level_entry_point(pricing_log, now, catalogue):
    result = calculate_promotional_pricing(
        Decimal("10.00"), 5, [catalogue["pct20"]], now=now, hook=pricing_log
    )

    assert result.effective_price == Decimal("8.00")
    assert pricing_log.matching("[pricing] selected offer=pct20")


def test_naive_dates_are_read_as_utc(engine, catalogue, pricing_log):
    """Offers built in code with naive datetimes are compared as UTC, not rejected."""
    stale = PercentageDiscountOffer(
        id="stale", type=OfferType.PERCENTAGE_DISCOUNT, discount_percentage=Decimal("50"), end_date=datetime(2020, 1, 1)
    )

    result = engine.calculate_promotional_pricing(Decimal("10.00"), 1, [stale, catalogue["pct20"]])
    naive_now = engine.calculate_promotional_pricing(
        Decimal("10.00"), 1, [catalogue["pct20"]], now=datetime(2026, 6, 1, 12, 0)
    )

    assert result.applied_offer.id == "pct20"
    assert pricing_log.matching("offer=stale excluded: expired")
    assert naive_now.effective_price == Decimal("8.00")


def test_offer_with_unreadable_dates_is_excluded(engine, catalogue, pricing_log):
    odd = PercentageDiscountOffer(
        id="odd", type=OfferType.PERCENTAGE_DISCOUNT, discount_percentage=Decimal("50"), end_date="2020-01-01"
    )

    result = engine.calculate_promotional_pricing(Decimal("10.00"), 1, [odd, catalogue["off1"]])

    assert result.applied_offer.id == "off1"
    assert pricing_log.matching("offer=odd excluded: unreadable offer data")


def test_offer_missing_its_fields_is_skipped(engine, catalogue, pricing_log):
    """A bare base offer tagged as a percentage discount has nothing to price with."""
    bare = Offer(id="bare", type=OfferType.PERCENTAGE_DISCOUNT)

    result = engine.calculate_promotional_pricing(Decimal("10.00"), 1, [bare, catalogue["off1"]])

    assert result.applied_offer.id == "off1"
    assert pricing_log.matching("offer=bare skipped after error")


def test_multi_buy_without_threshold_does_not_apply(engine, pricing_log):
    offer = {"id": "loose", "type": "multi_buy", "discountType": "percentage", "discountValue": 50}

    result = engine.calculate_promotional_pricing(Decimal("10.00"), 1, [offer])

    assert result.applied_offer is None
    assert result.effective_price == Decimal("10.00")
    assert pricing_log.matching("offer=loose not applicable")


def test_free_shipping_without_minimum_does_not_apply(engine):
    result = engine.calculate_promotional_pricing(Decimal("1.00"), 1, [{"id": "ship", "type": "free_shipping"}])

    assert result.free_shipping is False
    assert result.free_shipping_offer is None


def _basket():
    return [
        BundleLine(product_id="p1", base_price=Decimal("10.00"), quantity=1),
        BundleLine(product_id="p2", base_price=Decimal("10.00"), quantity=1),
    ]


def test_bundle_deal_is_priced_when_eligible(engine, pricing_log):
    offer = parse_offer({"id": "kit", "type": "bundle_deal", "bundleProducts": ["p1", "p2"], "bundlePrice": 15})

    result = engine.price_bundle(offer, _basket())

    assert result.total_cost == Decimal("15.00")
    assert pricing_log.matching("offer=kit bundles=1")


@pytest.mark.parametrize(
    "extra,reason",
    [
        ({"isActive": False}, "inactive"),
        ({"endDate": "2020-01-01"}, "expired"),
        ({"maxUses": 5, "usesCount": 5}, "usage limit reached"),
    ],
)
def test_ineligible_bundle_deal_is_not_priced(engine, pricing_log, extra, reason):
    record = {"id": "kit", "type": "bundle_deal", "bundleProducts": ["p1", "p2"], "bundlePrice": 5}
    record.update(extra)

    assert engine.price_bundle(parse_offer(record), _basket()) is None
    assert pricing_log.matching(f"offer=kit excluded: {reason}")


def test_bundle_deal_respects_customer_usage(engine):
    offer = parse_offer(
        {"id": "kit", "type": "bundle_deal", "bundleProducts": ["p1", "p2"], "bundlePrice": 5, "maxUsesPerCustomer": 1}
    )

    assert engine.price_bundle(offer, _basket(), customer_usage={"kit": 1}) is None
    assert engine.price_bundle(offer, _basket(), customer_usage={"kit": 0}) is not None
