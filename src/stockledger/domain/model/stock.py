"""StockEntry: current quantity of one product at one location.

Invariant: ``quantity >= 0``. An absent entry means quantity 0.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from stockledger.domain.exceptions import InsufficientStock


@dataclass(frozen=True)
class StockKey:
    """Identity of a stock entry: a (product, location) pair."""

    product_id: str
    location_id: str

    @property
    def lock_order(self) -> tuple[str, str]:
        """Position in the global lock order: location first, then product."""
        return (self.location_id, self.product_id)


def ordered_keys(keys: Iterable[StockKey]) -> list[StockKey]:
    """Deduplicate and sort keys into the global lock acquisition order.

    Every transaction locks in this order regardless of which side of a
    transfer a key is on, so two opposite transfers cannot deadlock.
    """
    return sorted(set(keys), key=lambda k: k.lock_order)


@dataclass
class StockEntry:

    product_id: str
    location_id: str
    quantity: int = 0

    @property
    def key(self) -> StockKey:
        return StockKey(self.product_id, self.location_id)

    def apply_delta(self, delta: int) -> int:
        """Add ``delta`` (which may be negative) and return the new quantity.

        Raises InsufficientStock, leaving the entry unchanged, if the result
        would be negative.
        """
        new_quantity = self.quantity + delta
        if new_quantity < 0:
            raise InsufficientStock(
                product_id=self.product_id,
                location_id=self.location_id,
                requested=-delta,
                available=self.quantity,
            )
        self.quantity = new_quantity
        return new_quantity


class StockStatus(Enum):
    IN_STOCK = "IN_STOCK"
    LOW_STOCK = "LOW_STOCK"
    OUT_OF_STOCK = "OUT_OF_STOCK"
