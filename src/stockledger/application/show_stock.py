"""Application service: stock queries (dashboard and reporting reads)."""

from __future__ import annotations

from stockledger.application.dto import (
    LocationStockDTO,
    LowStockReportDTO,
    ProductStockDTO,
    StockAlertDTO,
    StockSummaryDTO,
)
from stockledger.domain.exceptions import UnknownReference
from stockledger.domain.model.value_objects import Money
from stockledger.domain.repository.catalog_repository import LocationRepository
from stockledger.domain.service.projections import StockProjections


class ShowStockHandler:

    def __init__(self, projections: StockProjections) -> None:
        self._projections = projections

    def handle(self, product_id: str) -> StockSummaryDTO:
        summary = self._projections.stock_summary(product_id)
        return StockSummaryDTO(
            product_id=summary.product.id,
            total=summary.total_quantity,
            min_quantity=summary.product.min_quantity,
            status=summary.status.value,
            value=str(summary.value),
            locations=[
                LocationStockDTO(location_id=loc.location_id, quantity=loc.quantity)
                for loc in summary.locations
            ],
        )


class LocationStockHandler:

    def __init__(
        self,
        projections: StockProjections,
        location_repo: LocationRepository,
    ) -> None:
        self._projections = projections
        self._location_repo = location_repo

    def handle(self, location_id: str) -> list[ProductStockDTO]:
        """Every product held at a location, ordered by product id."""
        if self._location_repo.get_by_id(location_id) is None:
            raise UnknownReference("location", location_id)
        return [
            ProductStockDTO(product_id=line.product_id, quantity=line.quantity)
            for line in self._projections.location_stock(location_id)
        ]


class LowStockReportHandler:

    def __init__(self, projections: StockProjections) -> None:
        self._projections = projections

    def handle(self) -> LowStockReportDTO:
        alerts = [
            StockAlertDTO(
                product_id=a.product_id,
                sku=a.sku,
                name=a.name,
                total=a.total_quantity,
                min_quantity=a.min_quantity,
                status=a.status.value,
            )
            for a in self._projections.low_stock_alerts()
        ]
        totals = self._projections.inventory_value() or [Money.zero()]
        return LowStockReportDTO(
            alerts=alerts,
            inventory_value=", ".join(str(m) for m in totals),
        )
