"""Application service: Transfer Stock use case."""

from __future__ import annotations

from stockledger.application.dto import MovementDTO, TransferDTO
from stockledger.application.retry import retry_on_conflict
from stockledger.domain.service.transfer_coordinator import TransferCoordinator


class TransferStockHandler:

    def __init__(self, coordinator: TransferCoordinator, max_retries: int = 3) -> None:
        self._coordinator = coordinator
        self._max_retries = max_retries

    def handle(
        self,
        product_id: str,
        quantity: int,
        from_location_id: str,
        to_location_id: str,
        reason: str = "",
        actor_id: str = "",
        idempotency_key: str | None = None,
    ) -> TransferDTO:
        """Move stock between two locations and report both new quantities."""
        result = retry_on_conflict(
            lambda: self._coordinator.transfer(
                product_id,
                quantity,
                from_location_id,
                to_location_id,
                reason=reason,
                actor_id=actor_id,
                idempotency_key=idempotency_key,
            ),
            self._max_retries,
        )
        return TransferDTO(
            movement=MovementDTO.from_movement(result.movement),
            source_quantity=result.source_quantity,
            destination_quantity=result.destination_quantity,
        )
