from __future__ import annotations

import argparse
import json
import logging
from decimal import Decimal
from typing import Any, Dict, List

from promo_pricing import config
from promo_pricing.currency import format_currency, format_percentage
from promo_pricing.engine import PricingEngine
from promo_pricing.labels import offer_label, price_badge
from promo_pricing.pricing_log import PricingLog
from promo_pricing.totals import OrderAggregator


def sample_offers() -> List[Dict[str, Any]]:
    return [
        {"id": "SPRING20", "name": "Spring sale", "type": "percentage_discount", "discountPercentage": 20},
        {"id": "B2G1", "name": "Buy 2 get 1", "type": "bogo", "buyQuantity": 2, "getQuantity": 1},
        {
            "id": "BULK",
            "type": "bulk_discount",
            "bulkTiers": [
                {"minQuantity": 10, "pricePerUnit": 8.00},
                {"minQuantity": 50, "pricePerUnit": 6.00},
            ],
        },
        {"id": "SHIP50", "type": "free_shipping", "minimumOrderValue": 50},
    ]


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    p = argparse.ArgumentParser(description="Price one product line against its offers and print the breakdown.")
    p.add_argument("--base-price", type=Decimal, default=Decimal("10.00"))
    p.add_argument("--qty", type=int, default=1)
    p.add_argument("--offers", type=str, default=None, help="JSON file with a list of offer records (default: sample offers)")
    p.add_argument("--promo-price", type=Decimal, default=None)
    p.add_argument("--promo-active", action="store_true")
    p.add_argument("--delivery", type=Decimal, default=config.DEFAULT_DELIVERY_COST)
    p.add_argument("--currency", type=str, default=config.DEFAULT_CURRENCY)
    args = p.parse_args()

    if args.offers:
        with open(args.offers, encoding="utf-8") as fh:
            offers = json.load(fh)
    else:
        offers = sample_offers()

    engine = PricingEngine(hook=PricingLog())
    result = engine.calculate_promotional_pricing(
        args.base_price,
        args.qty,
        offers,
        promo_price=args.promo_price,
        promo_active=args.promo_active,
    )
    aggregator = OrderAggregator(config.customer_fee_schedule(), config.platform_fee_schedule())
    totals = aggregator.totals([result], delivery_cost=args.delivery)

    cur = args.currency
    print("\n=== PRICE ===")
    print("badge:", price_badge(result, cur))
    print("applied:", offer_label(result.applied_offer, cur) if result.applied_offer else ("promo price" if result.applied_promo_price else "-"))
    print("effective:", format_currency(result.effective_price, cur))
    print("discount:", format_currency(result.discount_amount, cur), f"({format_percentage(result.discount_percentage)})")
    print("free items:", result.free_items)

    print("\n=== ORDER ===")
    print("subtotal:", format_currency(totals.subtotal, cur))
    print("transaction fee:", format_currency(totals.transaction_fee, cur))
    print("delivery:", format_currency(totals.delivery_cost, cur), "(free)" if totals.free_shipping else "")
    print("total:", format_currency(totals.total, cur))
    print("merchant receives:", format_currency(totals.merchant_receives, cur))


if __name__ == "__main__":
    main()
