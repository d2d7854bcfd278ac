import os
from decimal import Decimal

from dotenv import load_dotenv

from promo_pricing.models import FeeSchedule

load_dotenv()

# Customer transaction fee: rate x subtotal + fixed amount per order
CUSTOMER_FEE_RATE = Decimal(os.getenv("CUSTOMER_FEE_RATE", "0.055"))
CUSTOMER_FEE_FIXED = Decimal(os.getenv("CUSTOMER_FEE_FIXED", "0.50"))

# Merchant platform fee, deducted from the merchant's payout
PLATFORM_FEE_RATE = Decimal(os.getenv("PLATFORM_FEE_RATE", "0.033"))
PLATFORM_FEE_FIXED = Decimal(os.getenv("PLATFORM_FEE_FIXED", "0"))

DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "GBP").upper()
DEFAULT_DELIVERY_COST = Decimal(os.getenv("DEFAULT_DELIVERY_COST", "0"))


def customer_fee_schedule() -> FeeSchedule:
    return FeeSchedule(rate=CUSTOMER_FEE_RATE, fixed_fee=CUSTOMER_FEE_FIXED)


def platform_fee_schedule() -> FeeSchedule:
    return FeeSchedule(rate=PLATFORM_FEE_RATE, fixed_fee=PLATFORM_FEE_FIXED)
