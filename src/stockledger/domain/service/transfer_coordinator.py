"""Domain service: Transfer Coordinator.

A transfer moves stock of one product between two locations as a single
unit of work: debit the source, credit the destination, append one
TRANSFER movement. The three effects commit together or not at all.

The debit is validated before anything is written, so an insufficient
source aborts before the destination is touched or a movement appended.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from stockledger.domain.exceptions import InsufficientStock, InvalidTransfer
from stockledger.domain.model.catalog import Location
from stockledger.domain.model.movement import Movement, MovementDraft, MovementType
from stockledger.domain.repository.catalog_repository import LocationRepository
from stockledger.domain.repository.ledger_store import LedgerStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransferResult:
    movement: Movement
    source_quantity: int
    destination_quantity: int


class TransferCoordinator:

    def __init__(
        self,
        store: LedgerStore,
        location_repo: LocationRepository | None = None,
    ) -> None:
        self._store = store
        self._location_repo = location_repo

    def transfer(
        self,
        product_id: str,
        quantity: int,
        from_location_id: str,
        to_location_id: str,
        reason: str = "",
        actor_id: str = "",
        idempotency_key: str | None = None,
    ) -> TransferResult:
        """Move ``quantity`` of a product from one location to another.

        Raises InvalidQuantity, InvalidTransfer (source == destination, or
        either location inactive) or InsufficientStock; in every failure
        case the ledger is unchanged and no movement is recorded.
        """
        source = self._find_location(from_location_id)
        destination = self._find_location(to_location_id)
        draft = MovementDraft.create(
            MovementType.TRANSFER,
            product_id=product_id,
            quantity=quantity,
            from_location_id=from_location_id,
            to_location_id=to_location_id,
            reason=reason or (
                f"Transfer from {source.name if source else from_location_id} "
                f"to {destination.name if destination else to_location_id}"
            ),
            actor_id=actor_id,
            idempotency_key=idempotency_key,
        )
        for location in (source, destination):
            if location is not None and not location.is_active:
                raise InvalidTransfer(f"Location '{location.id}' is inactive")
        return self.apply(draft)

    def apply(self, draft: MovementDraft) -> TransferResult:
        """Execute an already validated TRANSFER draft."""
        source = draft.from_location_id
        destination = draft.to_location_id

        with self._store.transaction(draft.keys()) as tx:
            if draft.idempotency_key is not None:
                existing = tx.find_by_idempotency_key(draft.idempotency_key)
                if existing is not None:
                    draft.ensure_replay_of(existing)
                    logger.info(
                        "Transfer %s already recorded under key %s",
                        existing.id, draft.idempotency_key,
                    )
                    return TransferResult(
                        movement=existing,
                        source_quantity=tx.get_quantity(draft.product_id, source),
                        destination_quantity=tx.get_quantity(draft.product_id, destination),
                    )

            available = tx.get_quantity(draft.product_id, source)
            if available < draft.quantity:
                logger.warning(
                    "Transfer of %d x %s from %s to %s rejected: %d available",
                    draft.quantity, draft.product_id, source, destination, available,
                )
                raise InsufficientStock(
                    product_id=draft.product_id,
                    location_id=source,
                    requested=draft.quantity,
                    available=available,
                )

            source_after = tx.apply_delta(draft.product_id, source, -draft.quantity)
            destination_after = tx.apply_delta(draft.product_id, destination, draft.quantity)
            movement = tx.append_movement(draft)

        logger.info(
            "Transferred %d x %s from %s (now %d) to %s (now %d) as movement %s",
            draft.quantity, draft.product_id, source, source_after,
            destination, destination_after, movement.id,
        )
        return TransferResult(
            movement=movement,
            source_quantity=source_after,
            destination_quantity=destination_after,
        )

    def _find_location(self, location_id: str) -> Location | None:
        if self._location_repo is None:
            return None
        return self._location_repo.get_by_id(location_id)
