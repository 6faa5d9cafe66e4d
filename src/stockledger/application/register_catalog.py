"""Application service: register and retire products and locations.

Catalog management proper lives outside the ledger; these handlers only
cover what is needed to create the ids the ledger references.
"""

from __future__ import annotations

import logging

from stockledger.domain.exceptions import UnknownReference, ValidationError
from stockledger.domain.model.catalog import Location, Product
from stockledger.domain.model.value_objects import Money
from stockledger.domain.repository.catalog_repository import (
    LocationRepository,
    ProductRepository,
)
from stockledger.domain.service.projections import StockProjections

logger = logging.getLogger(__name__)


class AddProductHandler:

    def __init__(self, product_repo: ProductRepository) -> None:
        self._product_repo = product_repo

    def handle(
        self,
        product_id: str,
        sku: str,
        name: str,
        cost: str,
        price: str,
        min_quantity: int = 0,
    ) -> Product:
        """Add a new product to the catalog."""
        product_id = (product_id or "").strip()
        sku = (sku or "").strip()
        name = (name or "").strip()
        if not product_id:
            raise ValidationError("Product ID is required")
        if not name:
            raise ValidationError("Product name is required")
        if self._product_repo.get_by_id(product_id) is not None:
            raise ValidationError(f"Product '{product_id}' already exists")
        if any(p.sku == sku for p in self._product_repo.list_all()):
            raise ValidationError(f"SKU '{sku}' already exists")

        product = Product(
            id=product_id,
            sku=sku,
            name=name,
            cost=Money.of(cost),
            price=Money.of(price),
            min_quantity=min_quantity,
        )
        self._product_repo.save(product)
        return product


class AddLocationHandler:

    def __init__(self, location_repo: LocationRepository) -> None:
        self._location_repo = location_repo

    def handle(self, location_id: str, name: str, address: str | None = None) -> Location:
        location_id = (location_id or "").strip()
        name = (name or "").strip()
        if not location_id:
            raise ValidationError("Location ID is required")
        if not name:
            raise ValidationError("Location name is required")
        if self._location_repo.get_by_id(location_id) is not None:
            raise ValidationError(f"Location '{location_id}' already exists")

        location = Location(id=location_id, name=name, address=address)
        self._location_repo.save(location)
        return location


class DeactivateLocationHandler:
    """Retire a location that no longer holds any stock.

    Inactive locations stay referenced by their movement history but can
    no longer send or receive transfers.
    """

    def __init__(
        self,
        location_repo: LocationRepository,
        projections: StockProjections,
    ) -> None:
        self._location_repo = location_repo
        self._projections = projections

    def handle(self, location_id: str) -> Location:
        location = self._location_repo.get_by_id(location_id)
        if location is None:
            raise UnknownReference("location", location_id)

        held = [line for line in self._projections.location_stock(location_id) if line.quantity > 0]
        if held:
            raise ValidationError(
                f"Location '{location_id}' still holds stock of {len(held)} product(s)"
            )

        location.is_active = False
        self._location_repo.save(location)
        logger.info("Location %s deactivated", location_id)
        return location
