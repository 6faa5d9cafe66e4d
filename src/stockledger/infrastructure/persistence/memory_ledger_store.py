"""In-process implementation of LedgerStore.

Each stock key has its own lock; a transaction acquires the locks of its
keys in the global order before reading or writing, so movements on the
same pair are serialized while disjoint pairs run in parallel. Writes are
staged inside the transaction and published under a single commit lock,
so readers only ever see committed state.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from stockledger.domain.exceptions import ConcurrencyConflict
from stockledger.domain.model.movement import Movement, MovementDraft, MovementQuery
from stockledger.domain.model.stock import StockEntry, StockKey, ordered_keys
from stockledger.domain.repository.ledger_store import LedgerStore, LedgerTransaction

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _InMemoryTransaction(LedgerTransaction):

    def __init__(self, store: InMemoryLedgerStore, keys: list[StockKey]) -> None:
        self._store = store
        self._keys = set(keys)
        self.staged: dict[StockKey, int] = {}
        self.pending: list[Movement] = []

    def get_quantity(self, product_id: str, location_id: str) -> int:
        key = StockKey(product_id, location_id)
        if key in self.staged:
            return self.staged[key]
        return self._store.get_quantity(product_id, location_id)

    def apply_delta(self, product_id: str, location_id: str, delta: int) -> int:
        key = StockKey(product_id, location_id)
        if key not in self._keys:
            raise ValueError(f"{key} is not locked by this transaction")
        entry = StockEntry(product_id, location_id, self.get_quantity(product_id, location_id))
        self.staged[key] = entry.apply_delta(delta)
        return self.staged[key]

    def append_movement(self, draft: MovementDraft) -> Movement:
        movement = Movement.from_draft(draft, uuid.uuid4().hex, self._store.clock())
        self.pending.append(movement)
        return movement

    def find_by_idempotency_key(self, key: str) -> Movement | None:
        for movement in self.pending:
            if movement.idempotency_key == key:
                return movement
        return self._store.find_by_idempotency_key(key)


class InMemoryLedgerStore(LedgerStore):

    def __init__(
        self,
        lock_timeout: float | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.clock = clock
        self._lock_timeout = lock_timeout
        self._entries: dict[StockKey, int] = {}
        self._movements: list[Movement] = []
        self._by_idempotency_key: dict[str, Movement] = {}
        self._key_locks: dict[StockKey, threading.Lock] = {}
        self._registry_lock = threading.Lock()
        self._commit_lock = threading.Lock()

    # --- Reads ----------------------------------------------------------------

    def get_quantity(self, product_id: str, location_id: str) -> int:
        with self._commit_lock:
            return self._entries.get(StockKey(product_id, location_id), 0)

    def get_total_quantity(self, product_id: str) -> int:
        with self._commit_lock:
            return sum(q for k, q in self._entries.items() if k.product_id == product_id)

    def list_entries(self, product_id: str) -> list[StockEntry]:
        return [e for e in self.list_all_entries() if e.product_id == product_id]

    def list_location_entries(self, location_id: str) -> list[StockEntry]:
        return [e for e in self.list_all_entries() if e.location_id == location_id]

    def list_all_entries(self) -> list[StockEntry]:
        with self._commit_lock:
            return [
                StockEntry(k.product_id, k.location_id, q)
                for k, q in self._entries.items()
            ]

    def get_movement(self, movement_id: str) -> Movement | None:
        with self._commit_lock:
            for movement in self._movements:
                if movement.id == movement_id:
                    return movement
        return None

    def list_movements(self, query: MovementQuery) -> list[Movement]:
        matching = self._matching(query)
        end = None if query.limit is None else query.offset + query.limit
        return matching[query.offset:end]

    def count_movements(self, query: MovementQuery) -> int:
        return len(self._matching(query))

    def find_by_idempotency_key(self, key: str) -> Movement | None:
        with self._commit_lock:
            return self._by_idempotency_key.get(key)

    # --- Writes ---------------------------------------------------------------

    @contextmanager
    def transaction(self, keys: Iterable[StockKey]) -> Iterator[LedgerTransaction]:
        ordered = ordered_keys(keys)
        held: list[threading.Lock] = []
        try:
            for key in ordered:
                lock = self._lock_for(key)
                if not self._acquire(lock):
                    logger.warning("Timed out waiting for lock on %s", key)
                    raise ConcurrencyConflict(f"Timed out waiting for lock on {key}")
                held.append(lock)

            tx = _InMemoryTransaction(self, ordered)
            yield tx
            self._commit(tx)
        finally:
            for lock in reversed(held):
                lock.release()

    # --- Internal helpers -----------------------------------------------------

    def _acquire(self, lock: threading.Lock) -> bool:
        if self._lock_timeout is None:
            return lock.acquire()
        return lock.acquire(timeout=self._lock_timeout)

    def _lock_for(self, key: StockKey) -> threading.Lock:
        with self._registry_lock:
            return self._key_locks.setdefault(key, threading.Lock())

    def _commit(self, tx: _InMemoryTransaction) -> None:
        with self._commit_lock:
            # the stock-key locks do not cover other keys reusing the same
            # idempotency key
            for movement in tx.pending:
                key = movement.idempotency_key
                if key is not None and key in self._by_idempotency_key:
                    logger.warning("Idempotency key %s committed concurrently", key)
                    raise ConcurrencyConflict(
                        f"Movement with idempotency key '{key}' recorded concurrently"
                    )
            self._entries.update(tx.staged)
            for movement in tx.pending:
                self._movements.append(movement)
                if movement.idempotency_key is not None:
                    self._by_idempotency_key[movement.idempotency_key] = movement

    def _matching(self, query: MovementQuery) -> list[Movement]:
        with self._commit_lock:
            movements = list(self._movements)
        # stable sort keeps append order among equal timestamps
        movements.reverse()
        movements.sort(key=lambda m: m.created_at, reverse=True)
        return [m for m in movements if query.matches(m)]
