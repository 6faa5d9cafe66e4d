"""Unit tests for the TransferCoordinator domain service."""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from stockledger.domain.exceptions import (
    IdempotencyKeyReused,
    InsufficientStock,
    InvalidQuantity,
    InvalidTransfer,
)
from stockledger.domain.model.catalog import Location
from stockledger.domain.model.movement import MovementQuery, MovementType
from stockledger.domain.service.movement_engine import MovementEngine
from stockledger.domain.service.transfer_coordinator import TransferCoordinator
from stockledger.infrastructure.persistence.memory_ledger_store import InMemoryLedgerStore
from tests.fakes import FakeLocationRepository, make_locations


def _stocked_store(**initial: int) -> InMemoryLedgerStore:
    store = InMemoryLedgerStore()
    engine = MovementEngine(store)
    for location_id, qty in initial.items():
        engine.record_movement(MovementType.RECEIPT, "P", qty, to_location_id=location_id)
    return store


def _transfers(store: InMemoryLedgerStore) -> list:
    return store.list_movements(MovementQuery(type=MovementType.TRANSFER))


class TestTransfer:

    def test_debits_source_and_credits_destination(self):
        store = _stocked_store(WAREHOUSE=100)
        coordinator = TransferCoordinator(store)

        result = coordinator.transfer("P", 30, "WAREHOUSE", "STORE_A", actor_id="u1")

        assert result.source_quantity == 70
        assert result.destination_quantity == 30
        assert store.get_quantity("P", "WAREHOUSE") == 70
        assert store.get_quantity("P", "STORE_A") == 30

    def test_exactly_one_movement_referencing_both_locations(self):
        store = _stocked_store(WAREHOUSE=100)
        result = TransferCoordinator(store).transfer("P", 30, "WAREHOUSE", "STORE_A")

        assert _transfers(store) == [result.movement]
        assert result.movement.from_location_id == "WAREHOUSE"
        assert result.movement.to_location_id == "STORE_A"
        assert result.movement.quantity == 30

    def test_whole_source_can_be_moved(self):
        store = _stocked_store(A=10)
        TransferCoordinator(store).transfer("P", 10, "A", "B")
        assert store.get_quantity("P", "A") == 0
        assert store.get_quantity("P", "B") == 10


class TestTransferFailures:

    def test_insufficient_source_leaves_both_sides_unchanged(self):
        store = _stocked_store(A=10, B=4)

        with pytest.raises(InsufficientStock) as exc_info:
            TransferCoordinator(store).transfer("P", 11, "A", "B")

        assert exc_info.value.location_id == "A"
        assert exc_info.value.requested == 11
        assert exc_info.value.available == 10
        assert store.get_quantity("P", "A") == 10
        assert store.get_quantity("P", "B") == 4
        assert _transfers(store) == []

    def test_destination_not_created_on_failure(self):
        store = _stocked_store(A=1)
        with pytest.raises(InsufficientStock):
            TransferCoordinator(store).transfer("P", 2, "A", "NEW")
        assert [e.location_id for e in store.list_entries("P")] == ["A"]

    def test_self_transfer_rejected_without_movement(self):
        store = _stocked_store(A=10)
        with pytest.raises(InvalidTransfer):
            TransferCoordinator(store).transfer("P", 1, "A", "A")
        assert store.get_quantity("P", "A") == 10
        assert _transfers(store) == []

    def test_zero_quantity_rejected(self):
        store = _stocked_store(A=10)
        with pytest.raises(InvalidQuantity):
            TransferCoordinator(store).transfer("P", 0, "A", "B")
        assert _transfers(store) == []


class TestTransferReason:

    def test_default_reason_uses_location_names(self):
        store = _stocked_store(warehouse=10)
        coordinator = TransferCoordinator(store, make_locations("warehouse", "store"))

        result = coordinator.transfer("P", 1, "warehouse", "store")

        assert result.movement.reason == "Transfer from Warehouse to Store"

    def test_default_reason_falls_back_to_ids(self):
        store = _stocked_store(A=10)
        result = TransferCoordinator(store).transfer("P", 1, "A", "B")
        assert result.movement.reason == "Transfer from A to B"

    def test_explicit_reason_kept(self):
        store = _stocked_store(A=10)
        result = TransferCoordinator(store).transfer("P", 1, "A", "B", reason="restock")
        assert result.movement.reason == "restock"


class TestTransferIdempotency:

    def test_same_key_different_route_rejected(self):
        store = _stocked_store(A=10)
        coordinator = TransferCoordinator(store)
        first = coordinator.transfer("P", 4, "A", "B", idempotency_key="t")

        with pytest.raises(IdempotencyKeyReused) as exc_info:
            coordinator.transfer("P", 4, "A", "C", idempotency_key="t")

        assert exc_info.value.movement_id == first.movement.id
        assert store.get_quantity("P", "C") == 0
        assert store.get_quantity("P", "A") == 6

    def test_same_key_same_transfer_reports_current_quantities(self):
        store = _stocked_store(A=10)
        coordinator = TransferCoordinator(store)
        first = coordinator.transfer("P", 4, "A", "B", idempotency_key="t")

        again = coordinator.transfer("P", 4, "A", "B", idempotency_key="t")

        assert again.movement == first.movement
        assert (again.source_quantity, again.destination_quantity) == (6, 4)


class TestInactiveLocations:

    def _coordinator(self, store, inactive):
        return TransferCoordinator(
            store,
            FakeLocationRepository(
                [
                    Location(id="A", name="A", is_active=inactive != "A"),
                    Location(id="B", name="B", is_active=inactive != "B"),
                ]
            ),
        )

    @pytest.mark.parametrize("inactive", ["A", "B"])
    def test_transfer_touching_inactive_location_rejected(self, inactive):
        store = _stocked_store(A=10)

        with pytest.raises(InvalidTransfer, match=f"Location '{inactive}' is inactive"):
            self._coordinator(store, inactive).transfer("P", 1, "A", "B")

        assert store.get_quantity("P", "A") == 10
        assert _transfers(store) == []

    def test_unregistered_location_is_left_to_the_store(self):
        store = _stocked_store(A=10)
        self._coordinator(store, inactive=None).transfer("P", 1, "A", "ELSEWHERE")
        assert store.get_quantity("P", "ELSEWHERE") == 1


class TestConcurrentTransfers:

    def test_opposite_transfers_do_not_deadlock_and_cancel_out(self):
        store = _stocked_store(A=100, B=100)
        coordinator = TransferCoordinator(store)
        start = threading.Barrier(2)

        def shuttle(src: str, dst: str) -> None:
            start.wait()
            for _ in range(200):
                coordinator.transfer("P", 1, src, dst)

        with ThreadPoolExecutor(max_workers=2) as pool:
            futures = [pool.submit(shuttle, "A", "B"), pool.submit(shuttle, "B", "A")]
            for f in futures:
                f.result(timeout=30)

        assert store.get_quantity("P", "A") == 100
        assert store.get_quantity("P", "B") == 100
        assert len(_transfers(store)) == 400

    def test_concurrent_debits_never_overdraw(self):
        store = _stocked_store(A=50)
        coordinator = TransferCoordinator(store)
        outcomes: list[bool] = []
        lock = threading.Lock()

        def attempt(dst: str) -> None:
            try:
                coordinator.transfer("P", 1, "A", dst)
                ok = True
            except InsufficientStock:
                ok = False
            with lock:
                outcomes.append(ok)

        with ThreadPoolExecutor(max_workers=8) as pool:
            for i in range(80):
                pool.submit(attempt, f"S{i % 4}")

        assert outcomes.count(True) == 50
        assert outcomes.count(False) == 30
        assert store.get_quantity("P", "A") == 0
        assert store.get_total_quantity("P") == 50
