from __future__ import annotations

from typing import Optional, Sequence

from promo_pricing.models import BulkTier


def select_tier(tiers: Sequence[BulkTier], quantity: int) -> Optional[BulkTier]:
    """
    Pick the tier with the largest `min_quantity` not above `quantity`.

    Input order is not trusted. When two tiers share a `min_quantity` the one
    that comes later in `tiers` wins. Returns None when `quantity` is below
    every breakpoint.
    """
    selected: Optional[BulkTier] = None
    # sorted() is stable, so equal breakpoints keep their supplied order
    for tier in sorted(tiers, key=lambda t: t.min_quantity):
        if tier.min_quantity > quantity:
            break
        selected = tier
    return selected
