"""Domain service: Movement Engine.

The single write path into the stock ledger. Every receipt, shipment,
adjustment and transfer is validated here before anything is mutated,
then applied inside one ledger transaction together with its movement
record.

Validate-then-mutate: the shape of the request is checked when the draft
is built, and stock sufficiency is checked under lock before the first
write, so a rejected movement never leaves a partial debit behind.
"""

from __future__ import annotations

import logging

from stockledger.domain.exceptions import InsufficientStock
from stockledger.domain.model.movement import (
    Adjustment,
    Movement,
    MovementDraft,
    MovementType,
)
from stockledger.domain.repository.ledger_store import LedgerStore
from stockledger.domain.service.transfer_coordinator import TransferCoordinator

logger = logging.getLogger(__name__)


class MovementEngine:

    def __init__(
        self,
        store: LedgerStore,
        transfers: TransferCoordinator | None = None,
    ) -> None:
        self._store = store
        self._transfers = transfers or TransferCoordinator(store)

    def record_movement(
        self,
        type: MovementType,
        product_id: str,
        quantity: int,
        from_location_id: str | None = None,
        to_location_id: str | None = None,
        reason: str = "",
        actor_id: str = "",
        adjustment: Adjustment | None = None,
        idempotency_key: str | None = None,
    ) -> Movement:
        """Validate and apply one movement, returning the recorded Movement.

        Raises InvalidQuantity, InvalidMovement, InvalidTransfer or
        InsufficientStock before any mutation. A repeated
        ``idempotency_key`` returns the movement recorded the first time
        without applying it again; reusing the key for a different request
        raises IdempotencyKeyReused.
        """
        draft = MovementDraft.create(
            type,
            product_id=product_id,
            quantity=quantity,
            from_location_id=from_location_id,
            to_location_id=to_location_id,
            reason=reason,
            actor_id=actor_id,
            adjustment=adjustment,
            idempotency_key=idempotency_key,
        )

        if draft.type is MovementType.TRANSFER:
            return self._transfers.transfer(
                draft.product_id, draft.quantity,
                draft.from_location_id, draft.to_location_id,
                reason=reason, actor_id=actor_id,
                idempotency_key=idempotency_key,
            ).movement

        return self._apply_single(draft)

    def _apply_single(self, draft: MovementDraft) -> Movement:
        (key, delta), = draft.effects()

        with self._store.transaction([key]) as tx:
            if draft.idempotency_key is not None:
                existing = tx.find_by_idempotency_key(draft.idempotency_key)
                if existing is not None:
                    draft.ensure_replay_of(existing)
                    logger.info(
                        "Movement %s already recorded under key %s",
                        existing.id, draft.idempotency_key,
                    )
                    return existing

            if delta < 0:
                available = tx.get_quantity(key.product_id, key.location_id)
                if available < draft.quantity:
                    logger.warning(
                        "%s of %d x %s at %s rejected: %d available",
                        draft.type.value, draft.quantity, key.product_id,
                        key.location_id, available,
                    )
                    raise InsufficientStock(
                        product_id=key.product_id,
                        location_id=key.location_id,
                        requested=draft.quantity,
                        available=available,
                    )

            new_quantity = tx.apply_delta(key.product_id, key.location_id, delta)
            movement = tx.append_movement(draft)

        logger.info(
            "Recorded %s %s: %+d x %s at %s (now %d)",
            draft.type.value, movement.id, delta, key.product_id,
            key.location_id, new_quantity,
        )
        return movement
