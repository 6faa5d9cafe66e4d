"""Abstract stock ledger store.

The store owns the two ledger tables: current stock entries and the
append-only movement history. All writes go through a ``LedgerTransaction``
obtained from ``LedgerStore.transaction()``, which holds exclusive access to
the stock keys it was opened with and commits all of its effects or none.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from contextlib import AbstractContextManager

from stockledger.domain.model.movement import Movement, MovementDraft, MovementQuery
from stockledger.domain.model.stock import StockEntry, StockKey


class LedgerTransaction(ABC):
    """Unit of work over a locked set of stock keys.

    Only keys passed to ``LedgerStore.transaction()`` may be written.
    """

    @abstractmethod
    def get_quantity(self, product_id: str, location_id: str) -> int:
        """Return the quantity as seen inside this transaction."""

    @abstractmethod
    def apply_delta(self, product_id: str, location_id: str, delta: int) -> int:
        """Change a stock entry by ``delta`` and return the new quantity.

        Creates the entry on first receipt. Raises InsufficientStock if the
        result would be negative.
        """

    @abstractmethod
    def append_movement(self, draft: MovementDraft) -> Movement:
        """Append a movement record, assigning its id and timestamp."""

    @abstractmethod
    def find_by_idempotency_key(self, key: str) -> Movement | None:
        """Return the movement already recorded under ``key``, or None."""


class LedgerStore(ABC):

    # --- Reads (committed state only) -----------------------------------------

    @abstractmethod
    def get_quantity(self, product_id: str, location_id: str) -> int:
        """Return the quantity of a product at a location (0 if absent)."""

    @abstractmethod
    def get_total_quantity(self, product_id: str) -> int:
        """Return the quantity of a product summed over all locations."""

    @abstractmethod
    def list_entries(self, product_id: str) -> list[StockEntry]:
        """Return every stock entry of a product."""

    @abstractmethod
    def list_location_entries(self, location_id: str) -> list[StockEntry]:
        """Return every stock entry held at a location."""

    @abstractmethod
    def list_all_entries(self) -> list[StockEntry]:
        """Return every stock entry in the ledger."""

    @abstractmethod
    def get_movement(self, movement_id: str) -> Movement | None:
        """Return a movement by id, or None."""

    @abstractmethod
    def list_movements(self, query: MovementQuery) -> list[Movement]:
        """Return movements matching ``query``, newest first."""

    @abstractmethod
    def count_movements(self, query: MovementQuery) -> int:
        """Count movements matching ``query``, ignoring limit and offset."""

    # --- Writes ---------------------------------------------------------------

    @abstractmethod
    def transaction(
        self, keys: Iterable[StockKey]
    ) -> AbstractContextManager[LedgerTransaction]:
        """Open a transaction holding exclusive access to ``keys``.

        Keys are acquired in the global lock order (see ``ordered_keys``).
        The transaction commits when the ``with`` block exits normally and
        rolls back completely if it raises.
        """
