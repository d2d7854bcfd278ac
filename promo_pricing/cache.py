from __future__ import annotations

import logging
from typing import Callable, Dict, Optional, Tuple

from promo_pricing.models import PricingResult

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, int, str]


class PricingCache:
    """
    Memo of priced lines keyed by (product_id, quantity, offer_set_version).

    The engine never consults this; callers that want to skip repeat work
    wrap their engine calls with `get_or_compute` and call `invalidate`
    whenever a product's offers change.
    """

    def __init__(self) -> None:
        self._results: Dict[CacheKey, PricingResult] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._results)

    def get(self, product_id: str, quantity: int, offer_set_version: str) -> Optional[PricingResult]:
        return self._results.get((product_id, quantity, offer_set_version))

    def get_or_compute(
        self,
        product_id: str,
        quantity: int,
        offer_set_version: str,
        compute: Callable[[], PricingResult],
    ) -> PricingResult:
        key = (product_id, quantity, offer_set_version)
        cached = self._results.get(key)
        if cached is not None:
            self.hits += 1
            return cached
        self.misses += 1
        result = compute()
        self._results[key] = result
        return result

    def invalidate(self, product_id: Optional[str] = None) -> int:
        """Drop one product's entries, or everything when no id is given."""
        if product_id is None:
            dropped = len(self._results)
            self._results.clear()
        else:
            stale = [key for key in self._results if key[0] == product_id]
            for key in stale:
                del self._results[key]
            dropped = len(stale)
        logger.info(f"pricing cache invalidated product={product_id} dropped={dropped}")
        return dropped
