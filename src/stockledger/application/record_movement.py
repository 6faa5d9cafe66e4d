"""Application service: Record Movement use case.

Entry point for receiving, shipping and adjustment flows. Delegates all
rule checking to the MovementEngine and retries writes that lost a
serialization race.
"""

from __future__ import annotations

from stockledger.application.dto import MovementDTO
from stockledger.application.retry import retry_on_conflict
from stockledger.domain.model.movement import Adjustment, MovementType
from stockledger.domain.service.movement_engine import MovementEngine


class RecordMovementHandler:

    def __init__(self, engine: MovementEngine, max_retries: int = 3) -> None:
        self._engine = engine
        self._max_retries = max_retries

    def handle(
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
    ) -> MovementDTO:
        movement = retry_on_conflict(
            lambda: self._engine.record_movement(
                type,
                product_id=product_id,
                quantity=quantity,
                from_location_id=from_location_id,
                to_location_id=to_location_id,
                reason=reason,
                actor_id=actor_id,
                adjustment=adjustment,
                idempotency_key=idempotency_key,
            ),
            self._max_retries,
        )
        return MovementDTO.from_movement(movement)
