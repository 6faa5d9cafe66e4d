"""Integration tests for the stock query use cases."""

import pytest

from stockledger.application.show_stock import (
    LocationStockHandler,
    LowStockReportHandler,
    ShowStockHandler,
)
from stockledger.domain.exceptions import UnknownReference
from stockledger.domain.model.movement import MovementType
from stockledger.domain.service.movement_engine import MovementEngine
from stockledger.domain.service.projections import StockProjections
from stockledger.infrastructure.persistence.memory_ledger_store import InMemoryLedgerStore
from tests.fakes import FakeProductRepository, make_locations, make_product


class _CommitAfterFirstRead(InMemoryLedgerStore):
    """Commits a receipt of 50 x P right after the next entry read."""

    armed = False

    def list_entries(self, product_id):
        entries = super().list_entries(product_id)
        if self.armed:
            self.armed = False
            MovementEngine(self).record_movement(
                MovementType.RECEIPT, "P", 50, to_location_id="store_a"
            )
        return entries


def _setup():
    store = InMemoryLedgerStore()
    products = FakeProductRepository(
        [make_product("P", min_quantity=10, cost="2.00"), make_product("Q", min_quantity=3)]
    )
    locations = make_locations("warehouse", "store_a")
    engine = MovementEngine(store)
    projections = StockProjections(store, products)
    return engine, products, locations, projections


class TestShowStock:

    def test_summary_of_a_product(self):
        engine, products, _, projections = _setup()
        engine.record_movement(MovementType.RECEIPT, "P", 100, to_location_id="warehouse")
        engine.record_movement(
            MovementType.TRANSFER, "P", 30, from_location_id="warehouse", to_location_id="store_a"
        )

        dto = ShowStockHandler(projections).handle("P")

        assert dto.total == 100
        assert dto.status == "IN_STOCK"
        assert dto.min_quantity == 10
        assert dto.value == "$200.00"
        assert [(l.location_id, l.quantity) for l in dto.locations] == [
            ("store_a", 30),
            ("warehouse", 70),
        ]

    def test_figures_agree_when_a_commit_lands_mid_query(self):
        store = _CommitAfterFirstRead()
        products = FakeProductRepository([make_product("P", min_quantity=10, cost="2.00")])
        engine = MovementEngine(store)
        engine.record_movement(MovementType.RECEIPT, "P", 8, to_location_id="warehouse")
        store.armed = True

        dto = ShowStockHandler(StockProjections(store, products)).handle("P")

        assert dto.total == 8
        assert dto.status == "LOW_STOCK"
        assert dto.value == "$16.00"
        assert store.get_total_quantity("P") == 58

    def test_unknown_product(self):
        _, products, _, projections = _setup()
        with pytest.raises(UnknownReference, match="Unknown product: 'NOPE'"):
            ShowStockHandler(projections).handle("NOPE")


class TestLocationStock:

    def test_products_at_location(self):
        engine, _, locations, projections = _setup()
        engine.record_movement(MovementType.RECEIPT, "Q", 4, to_location_id="store_a")
        engine.record_movement(MovementType.RECEIPT, "P", 9, to_location_id="store_a")

        lines = LocationStockHandler(projections, locations).handle("store_a")

        assert [(l.product_id, l.quantity) for l in lines] == [("P", 9), ("Q", 4)]

    def test_unknown_location(self):
        _, _, locations, projections = _setup()
        with pytest.raises(UnknownReference, match="location"):
            LocationStockHandler(projections, locations).handle("mars")


class TestLowStockReport:

    def test_alerts_and_value(self):
        engine, _, _, projections = _setup()
        engine.record_movement(MovementType.RECEIPT, "P", 8, to_location_id="warehouse")
        engine.record_movement(MovementType.RECEIPT, "Q", 4, to_location_id="warehouse")

        report = LowStockReportHandler(projections).handle()

        assert [(a.product_id, a.status) for a in report.alerts] == [("P", "LOW_STOCK")]
        assert report.inventory_value == "$36.00"
