from __future__ import annotations

import logging
from typing import List

logger = logging.getLogger(__name__)


class PricingLog:
    """
    Default observability hook for the pricing engine.

    Keeps every message in `entries` (tests read the decision trail from
    there) and forwards it to `logging`. Any object with a `log(message)`
    method can stand in for it.
    """

    def __init__(self) -> None:
        self.entries: List[str] = []

    def log(self, message: str) -> None:
        self.entries.append(message)
        logger.info(message)

    def matching(self, fragment: str) -> List[str]:
        return [line for line in self.entries if fragment in line]
