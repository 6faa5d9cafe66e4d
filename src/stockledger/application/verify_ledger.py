"""Application service: Verify Ledger use case.

Replays the full movement history from zero and compares the result with
the current stock entries.
"""

from __future__ import annotations

import logging

from stockledger.application.dto import DiscrepancyDTO, LedgerCheckDTO
from stockledger.domain.model.movement import MovementQuery
from stockledger.domain.repository.ledger_store import LedgerStore
from stockledger.domain.service.ledger_replay import find_discrepancies, replay_movements

logger = logging.getLogger(__name__)


class VerifyLedgerHandler:

    def __init__(self, store: LedgerStore) -> None:
        self._store = store

    def handle(self) -> LedgerCheckDTO:
        # two separate reads, not one snapshot: run while no movements are recorded
        entries = self._store.list_all_entries()
        movements = self._store.list_movements(MovementQuery())

        discrepancies = find_discrepancies(entries, replay_movements(movements))
        for d in discrepancies:
            logger.error(
                "Ledger mismatch for %s at %s: recorded %d, replayed %d",
                d.key.product_id, d.key.location_id, d.recorded, d.replayed,
            )

        return LedgerCheckDTO(
            movements_checked=len(movements),
            entries_checked=len(entries),
            discrepancies=[
                DiscrepancyDTO(
                    product_id=d.key.product_id,
                    location_id=d.key.location_id,
                    recorded=d.recorded,
                    replayed=d.replayed,
                )
                for d in discrepancies
            ],
        )
