"""Tests for the in-process ledger store."""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from stockledger.application.record_movement import RecordMovementHandler
from stockledger.domain.exceptions import ConcurrencyConflict, IdempotencyKeyReused
from stockledger.domain.model.movement import MovementDraft, MovementQuery, MovementType
from stockledger.domain.model.stock import StockKey
from stockledger.domain.service.movement_engine import MovementEngine
from stockledger.infrastructure.persistence.memory_ledger_store import InMemoryLedgerStore


def _receipt(location_id: str, key: str) -> MovementDraft:
    return MovementDraft.create(
        MovementType.RECEIPT, "P", 5, to_location_id=location_id, idempotency_key=key
    )


class TestCommit:

    def test_staged_writes_hidden_until_commit(self):
        store = InMemoryLedgerStore()
        with store.transaction([StockKey("P", "A")]) as tx:
            tx.apply_delta("P", "A", 5)
            tx.append_movement(_receipt("A", "k"))
            assert store.get_quantity("P", "A") == 0
            assert store.find_by_idempotency_key("k") is None

        assert store.get_quantity("P", "A") == 5
        assert store.find_by_idempotency_key("k") is not None

    def test_failed_block_commits_nothing(self):
        store = InMemoryLedgerStore()
        with pytest.raises(RuntimeError):
            with store.transaction([StockKey("P", "A")]) as tx:
                tx.apply_delta("P", "A", 5)
                raise RuntimeError("boom")
        assert store.list_all_entries() == []


class TestIdempotencyKeyAcrossStockKeys:

    def test_second_commit_with_same_key_rejected(self):
        store = InMemoryLedgerStore()

        with pytest.raises(ConcurrencyConflict, match="'same'"):
            with store.transaction([StockKey("P", "A")]) as outer:
                outer.apply_delta("P", "A", 5)
                outer.append_movement(_receipt("A", "same"))
                # another writer holding a different stock key commits first
                with store.transaction([StockKey("P", "B")]) as inner:
                    inner.apply_delta("P", "B", 5)
                    inner.append_movement(_receipt("B", "same"))

        assert store.get_quantity("P", "A") == 0
        assert store.get_total_quantity("P") == 5
        assert store.count_movements(MovementQuery()) == 1

    def test_racing_requests_with_same_key_apply_once(self):
        store = InMemoryLedgerStore()
        handler = RecordMovementHandler(MovementEngine(store))
        barrier = threading.Barrier(2)

        def receive(location_id):
            barrier.wait()
            try:
                return handler.handle(
                    MovementType.RECEIPT, "P", 5,
                    to_location_id=location_id, idempotency_key="same",
                )
            except IdempotencyKeyReused as exc:
                return exc

        with ThreadPoolExecutor(max_workers=2) as pool:
            outcomes = list(pool.map(receive, ["A", "B"]))

        rejected = [o for o in outcomes if isinstance(o, IdempotencyKeyReused)]
        assert len(rejected) == 1
        assert store.get_total_quantity("P") == 5
        assert store.count_movements(MovementQuery()) == 1
        assert rejected[0].movement_id == store.find_by_idempotency_key("same").id
