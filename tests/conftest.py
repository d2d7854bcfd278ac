"""Pytest fixtures for the promotional pricing engine."""

from datetime import datetime, timezone

import pytest

from promo_pricing.engine import PricingEngine
from promo_pricing.pricing_log import PricingLog

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def pricing_log() -> PricingLog:
    return PricingLog()


@pytest.fixture
def engine(pricing_log: PricingLog) -> PricingEngine:
    return PricingEngine(hook=pricing_log, clock=lambda: NOW)


@pytest.fixture
def catalogue() -> dict:
    """Offer records as the merchant dashboard stores them."""
    return {
        "pct20": {"id": "pct20", "name": "Spring sale", "type": "percentage_discount", "discountPercentage": 20, "isActive": True},
        "off1": {"id": "off1", "type": "fixed_amount_discount", "discountAmount": 1.00},
        "fixed7": {"id": "fixed7", "type": "fixed_price", "fixedPrice": 7.00},
        "b2g1": {"id": "b2g1", "type": "bogo", "buyQuantity": 2, "getQuantity": 1},
        "multi": {"id": "multi", "type": "multi_buy", "quantity": 6, "discountType": "percentage", "discountValue": 25},
        "bulk": {
            "id": "bulk",
            "type": "bulk_discount",
            "bulkTiers": [
                {"minQuantity": 10, "pricePerUnit": 8.00},
                {"minQuantity": 50, "pricePerUnit": 6.00},
            ],
        },
        "ship50": {"id": "ship50", "type": "free_shipping", "minimumOrderValue": 50.00},
        "expired": {
            "id": "expired",
            "type": "percentage_discount",
            "discountPercentage": 90,
            "startDate": "2026-01-01T00:00:00Z",
            "endDate": "2026-02-01T00:00:00Z",
        },
        "capped": {"id": "capped", "type": "fixed_price", "fixedPrice": 0.50, "maxUses": 10, "usesCount": 10},
    }
