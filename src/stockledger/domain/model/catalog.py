"""Catalog references consumed by the ledger.

Products and locations are owned by catalog management. The ledger only
reads the fields it needs: ids, the reorder threshold and the unit cost.
"""

from __future__ import annotations

from dataclasses import dataclass

from stockledger.domain.exceptions import ValidationError
from stockledger.domain.model.value_objects import Money


@dataclass
class Product:
    """A product in the catalog.

    ``min_quantity`` is the reorder point used to derive low-stock status.
    """

    id: str
    sku: str
    name: str
    cost: Money
    price: Money
    min_quantity: int = 0

    def __post_init__(self) -> None:
        if self.min_quantity < 0:
            raise ValidationError(
                f"Minimum quantity cannot be negative, got {self.min_quantity}"
            )


@dataclass
class Location:
    """A physical stock point (warehouse, store)."""

    id: str
    name: str
    address: str | None = None
    is_active: bool = True
