"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions. The container is built
once by the entry point and passed down explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from stockledger.application.movement_history import (
    MovementHistoryHandler,
    ShowMovementHandler,
)
from stockledger.application.record_movement import RecordMovementHandler
from stockledger.application.register_catalog import (
    AddLocationHandler,
    AddProductHandler,
    DeactivateLocationHandler,
)
from stockledger.application.show_stock import (
    LocationStockHandler,
    LowStockReportHandler,
    ShowStockHandler,
)
from stockledger.application.transfer_stock import TransferStockHandler
from stockledger.application.verify_ledger import VerifyLedgerHandler
from stockledger.domain.repository.catalog_repository import (
    LocationRepository,
    ProductRepository,
)
from stockledger.domain.repository.ledger_store import LedgerStore
from stockledger.domain.service.movement_engine import MovementEngine
from stockledger.domain.service.projections import StockProjections
from stockledger.domain.service.transfer_coordinator import TransferCoordinator
from stockledger.infrastructure.config import Settings
from stockledger.infrastructure.persistence.database import (
    create_ledger_engine,
    create_session_factory,
    init_schema,
)
from stockledger.infrastructure.persistence.sql_catalog_repository import (
    SqlLocationRepository,
    SqlProductRepository,
)
from stockledger.infrastructure.persistence.sql_ledger_store import SqlLedgerStore


@dataclass
class Container:
    store: LedgerStore
    products: ProductRepository
    locations: LocationRepository
    max_retries: int = 3

    def __post_init__(self) -> None:
        self.transfers = TransferCoordinator(self.store, self.locations)
        self.engine = MovementEngine(self.store, self.transfers)
        self.projections = StockProjections(self.store, self.products)

    # --- Handlers -------------------------------------------------------------

    def record_movement(self) -> RecordMovementHandler:
        return RecordMovementHandler(self.engine, self.max_retries)

    def transfer_stock(self) -> TransferStockHandler:
        return TransferStockHandler(self.transfers, self.max_retries)

    def show_stock(self) -> ShowStockHandler:
        return ShowStockHandler(self.projections)

    def location_stock(self) -> LocationStockHandler:
        return LocationStockHandler(self.projections, self.locations)

    def low_stock_report(self) -> LowStockReportHandler:
        return LowStockReportHandler(self.projections)

    def movement_history(self) -> MovementHistoryHandler:
        return MovementHistoryHandler(self.store)

    def show_movement(self) -> ShowMovementHandler:
        return ShowMovementHandler(self.store)

    def verify_ledger(self) -> VerifyLedgerHandler:
        return VerifyLedgerHandler(self.store)

    def add_product(self) -> AddProductHandler:
        return AddProductHandler(self.products)

    def add_location(self) -> AddLocationHandler:
        return AddLocationHandler(self.locations)

    def deactivate_location(self) -> DeactivateLocationHandler:
        return DeactivateLocationHandler(self.locations, self.projections)


def build_container(settings: Settings) -> Container:
    """Create the database engine, schema and repositories for ``settings``."""
    if settings.database_url.startswith("sqlite:///"):
        # make sure the directory of a file-backed database exists
        db_path = settings.database_url[len("sqlite:///"):]
        if db_path and db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    engine = create_ledger_engine(settings.database_url, echo=settings.database_echo)
    init_schema(engine)
    session_factory = create_session_factory(engine)

    return Container(
        store=SqlLedgerStore(session_factory),
        products=SqlProductRepository(session_factory),
        locations=SqlLocationRepository(session_factory),
        max_retries=settings.max_retries,
    )
