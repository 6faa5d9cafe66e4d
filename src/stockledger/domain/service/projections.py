"""Read projections over the stock ledger.

Pure derivations from committed stock entries for the dashboard and the
reporting jobs. Nothing here writes to the ledger or caches results.
"""

from __future__ import annotations

from dataclasses import dataclass

from stockledger.domain.exceptions import UnknownReference
from stockledger.domain.model.catalog import Product
from stockledger.domain.model.stock import StockEntry, StockStatus
from stockledger.domain.model.value_objects import Money
from stockledger.domain.repository.catalog_repository import ProductRepository
from stockledger.domain.repository.ledger_store import LedgerStore
from stockledger.domain.service.stock_status import evaluate_stock_status


@dataclass(frozen=True)
class LocationQuantity:
    location_id: str
    quantity: int


@dataclass(frozen=True)
class ProductQuantity:
    product_id: str
    quantity: int


@dataclass(frozen=True)
class StockAlert:
    product_id: str
    sku: str
    name: str
    total_quantity: int
    min_quantity: int
    status: StockStatus


@dataclass(frozen=True)
class StockSummary:
    """One product's stock, with every figure taken from the same read."""

    product: Product
    locations: list[LocationQuantity]
    total_quantity: int
    status: StockStatus
    value: Money


class StockProjections:

    def __init__(self, store: LedgerStore, product_repo: ProductRepository) -> None:
        self._store = store
        self._product_repo = product_repo

    def list_stock_by_location(self, product_id: str) -> list[LocationQuantity]:
        """Per-location breakdown of a product, ordered by location id."""
        entries = self._store.list_entries(product_id)
        return [
            LocationQuantity(location_id=e.location_id, quantity=e.quantity)
            for e in sorted(entries, key=lambda e: e.location_id)
        ]

    def location_stock(self, location_id: str) -> list[ProductQuantity]:
        """Every product held at a location, ordered by product id."""
        entries = self._store.list_location_entries(location_id)
        return [
            ProductQuantity(product_id=e.product_id, quantity=e.quantity)
            for e in sorted(entries, key=lambda e: e.product_id)
        ]

    def total_quantity(self, product_id: str) -> int:
        return self._store.get_total_quantity(product_id)

    def aggregate_value(self, product_id: str) -> Money:
        """Inventory value of a product at cost, folded over all locations."""
        product = self._require_product(product_id)
        return self._value_of(product, self._store.list_entries(product.id))

    def stock_summary(self, product_id: str) -> StockSummary:
        """Breakdown, total, status and value of a product from one read."""
        product = self._require_product(product_id)
        entries = sorted(self._store.list_entries(product.id), key=lambda e: e.location_id)
        total = sum(e.quantity for e in entries)
        return StockSummary(
            product=product,
            locations=[
                LocationQuantity(location_id=e.location_id, quantity=e.quantity)
                for e in entries
            ],
            total_quantity=total,
            status=evaluate_stock_status(total, product.min_quantity),
            value=self._value_of(product, entries),
        )

    def stock_status(self, product_id: str) -> StockStatus:
        product = self._require_product(product_id)
        return evaluate_stock_status(
            self._store.get_total_quantity(product.id), product.min_quantity
        )

    def low_stock_alerts(self) -> list[StockAlert]:
        """Every catalog product that is low or out of stock, by product id."""
        alerts: list[StockAlert] = []
        for product in sorted(self._product_repo.list_all(), key=lambda p: p.id):
            total = self._store.get_total_quantity(product.id)
            status = evaluate_stock_status(total, product.min_quantity)
            if status is StockStatus.IN_STOCK:
                continue
            alerts.append(
                StockAlert(
                    product_id=product.id,
                    sku=product.sku,
                    name=product.name,
                    total_quantity=total,
                    min_quantity=product.min_quantity,
                    status=status,
                )
            )
        return alerts

    def inventory_value(self) -> list[Money]:
        """Value at cost of all stock in the catalog, one total per currency.

        Totals are ordered by currency code; an empty catalog has none.
        """
        totals: dict[str, Money] = {}
        for product in self._product_repo.list_all():
            value = self._value_of(product, self._store.list_entries(product.id))
            currency = value.currency
            totals[currency] = totals.get(currency, Money.zero(currency)) + value
        return [totals[c] for c in sorted(totals)]

    # --- Internal helpers -----------------------------------------------------

    @staticmethod
    def _value_of(product: Product, entries: list[StockEntry]) -> Money:
        value = Money.zero(product.cost.currency)
        for entry in entries:
            value = value + product.cost * entry.quantity
        return value

    def _require_product(self, product_id: str) -> Product:
        product = self._product_repo.get_by_id(product_id)
        if product is None:
            raise UnknownReference("product", product_id)
        return product
