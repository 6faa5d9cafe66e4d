"""Integration tests for product and location registration."""

import pytest

from stockledger.application.register_catalog import (
    AddLocationHandler,
    AddProductHandler,
    DeactivateLocationHandler,
)
from stockledger.domain.exceptions import UnknownReference, ValidationError
from stockledger.domain.model.movement import MovementType
from stockledger.domain.model.value_objects import Money
from stockledger.domain.service.movement_engine import MovementEngine
from stockledger.domain.service.projections import StockProjections
from stockledger.infrastructure.persistence.memory_ledger_store import InMemoryLedgerStore
from tests.fakes import (
    FakeLocationRepository,
    FakeProductRepository,
    make_locations,
    make_product,
)


class TestAddProduct:

    def test_product_saved(self):
        repo = FakeProductRepository()
        product = AddProductHandler(repo).handle("P", "SKU-1", " Bolt ", "0.10", "0.25", 100)

        assert product.name == "Bolt"
        assert product.cost == Money.of("0.10")
        assert repo.get_by_id("P") == product

    def test_duplicate_id_rejected(self):
        repo = FakeProductRepository([make_product("P")])
        with pytest.raises(ValidationError, match="already exists"):
            AddProductHandler(repo).handle("P", "OTHER", "Bolt", "1.00", "2.00")

    def test_duplicate_sku_rejected(self):
        repo = FakeProductRepository([make_product("P")])
        with pytest.raises(ValidationError, match="SKU 'SKU-P'"):
            AddProductHandler(repo).handle("Q", "SKU-P", "Bolt", "1.00", "2.00")

    def test_padded_id_is_still_a_duplicate(self):
        repo = FakeProductRepository([make_product("P")])
        with pytest.raises(ValidationError, match="Product 'P' already exists"):
            AddProductHandler(repo).handle(" P ", "OTHER", "Bolt", "1.00", "2.00")
        assert repo.get_by_id("P").sku == "SKU-P"

    def test_padded_sku_is_still_a_duplicate(self):
        repo = FakeProductRepository([make_product("P")])
        with pytest.raises(ValidationError, match="SKU 'SKU-P'"):
            AddProductHandler(repo).handle("Q", " SKU-P", "Bolt", "1.00", "2.00")
        assert repo.get_by_id("Q") is None

    def test_negative_threshold_rejected(self):
        with pytest.raises(ValidationError):
            AddProductHandler(FakeProductRepository()).handle("P", "S", "Bolt", "1.00", "2.00", -1)


class TestAddLocation:

    def test_location_saved(self):
        repo = FakeLocationRepository()
        AddLocationHandler(repo).handle("wh", "Warehouse", "1 Dock Rd")
        assert repo.get_by_id("wh").address == "1 Dock Rd"

    def test_name_required(self):
        with pytest.raises(ValidationError, match="name is required"):
            AddLocationHandler(FakeLocationRepository()).handle("wh", "  ")

    def test_padded_id_is_still_a_duplicate(self):
        repo = FakeLocationRepository()
        AddLocationHandler(repo).handle("wh", "Warehouse")

        with pytest.raises(ValidationError, match="Location 'wh' already exists"):
            AddLocationHandler(repo).handle(" wh", "Second warehouse")

        assert repo.get_by_id("wh").name == "Warehouse"
        assert [l.id for l in repo.list_all()] == ["wh"]


class TestDeactivateLocation:

    def _setup(self):
        store = InMemoryLedgerStore()
        locations = make_locations("wh", "store")
        projections = StockProjections(store, FakeProductRepository([make_product("P")]))
        handler = DeactivateLocationHandler(locations, projections)
        return MovementEngine(store), locations, handler

    def test_empty_location_deactivated(self):
        _, locations, handler = self._setup()

        location = handler.handle("store")

        assert location.is_active is False
        assert locations.get_by_id("store").is_active is False
        assert locations.get_by_id("wh").is_active is True

    def test_emptied_location_deactivated(self):
        engine, locations, handler = self._setup()
        engine.record_movement(MovementType.RECEIPT, "P", 4, to_location_id="store")
        engine.record_movement(MovementType.SHIPMENT, "P", 4, from_location_id="store")

        handler.handle("store")

        assert locations.get_by_id("store").is_active is False

    def test_location_holding_stock_kept_active(self):
        engine, locations, handler = self._setup()
        engine.record_movement(MovementType.RECEIPT, "P", 1, to_location_id="store")

        with pytest.raises(ValidationError, match="still holds stock of 1 product"):
            handler.handle("store")

        assert locations.get_by_id("store").is_active is True

    def test_unknown_location(self):
        _, _, handler = self._setup()
        with pytest.raises(UnknownReference, match="location"):
            handler.handle("mars")
