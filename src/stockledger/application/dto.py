"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass

from stockledger.domain.model.movement import Movement


@dataclass(frozen=True)
class MovementDTO:
    """Output: one movement as displayed to the user."""

    id: str
    type: str
    product_id: str
    quantity: int
    from_location_id: str | None
    to_location_id: str | None
    adjustment: str | None
    reason: str
    actor_id: str
    created_at: str  # ISO 8601, UTC

    @staticmethod
    def from_movement(movement: Movement) -> MovementDTO:
        return MovementDTO(
            id=movement.id,
            type=movement.type.value,
            product_id=movement.product_id,
            quantity=movement.quantity,
            from_location_id=movement.from_location_id,
            to_location_id=movement.to_location_id,
            adjustment=movement.adjustment.value if movement.adjustment else None,
            reason=movement.reason,
            actor_id=movement.actor_id,
            created_at=movement.created_at.isoformat(),
        )


@dataclass(frozen=True)
class TransferDTO:
    movement: MovementDTO
    source_quantity: int
    destination_quantity: int


@dataclass(frozen=True)
class MovementPageDTO:
    movements: list[MovementDTO]
    total: int
    limit: int
    offset: int


@dataclass(frozen=True)
class LocationStockDTO:
    location_id: str
    quantity: int


@dataclass(frozen=True)
class StockSummaryDTO:
    """Output: one product's stock across all locations."""

    product_id: str
    total: int
    min_quantity: int
    status: str
    value: str  # formatted at cost, e.g. "$150.00"
    locations: list[LocationStockDTO]


@dataclass(frozen=True)
class ProductStockDTO:
    product_id: str
    quantity: int


@dataclass(frozen=True)
class StockAlertDTO:
    product_id: str
    sku: str
    name: str
    total: int
    min_quantity: int
    status: str


@dataclass(frozen=True)
class LowStockReportDTO:
    alerts: list[StockAlertDTO]
    inventory_value: str  # one total per currency, e.g. "$150.00, 20.00 EUR"


@dataclass(frozen=True)
class DiscrepancyDTO:
    product_id: str
    location_id: str
    recorded: int
    replayed: int


@dataclass(frozen=True)
class LedgerCheckDTO:
    movements_checked: int
    entries_checked: int
    discrepancies: list[DiscrepancyDTO]

    @property
    def is_consistent(self) -> bool:
        return not self.discrepancies
