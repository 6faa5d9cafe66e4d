"""Application service: Movement History use case (query).

Read-only access to the audit trail for reporting collaborators.
"""

from __future__ import annotations

from datetime import datetime, timezone

from stockledger.application.dto import MovementDTO, MovementPageDTO
from stockledger.domain.exceptions import EntityNotFoundError, ValidationError
from stockledger.domain.model.movement import MovementQuery, MovementType
from stockledger.domain.repository.ledger_store import LedgerStore

DEFAULT_PAGE_SIZE = 50


def _as_utc(value: datetime | None) -> datetime | None:
    """Naive bounds are taken as UTC, the zone movements are stamped in."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class MovementHistoryHandler:

    def __init__(self, store: LedgerStore) -> None:
        self._store = store

    def handle(
        self,
        product_id: str | None = None,
        location_id: str | None = None,
        type: MovementType | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> MovementPageDTO:
        """Return one page of matching movements, newest first.

        ``location_id`` matches movements on either side, so a transfer
        shows up in the history of both its locations.
        """
        if limit <= 0:
            raise ValidationError("Page size must be positive")
        if offset < 0:
            raise ValidationError("Page offset cannot be negative")
        since, until = _as_utc(since), _as_utc(until)
        if since is not None and until is not None and since >= until:
            raise ValidationError("Date range start must be before its end")

        query = MovementQuery(
            product_id=product_id,
            location_id=location_id,
            type=type,
            since=since,
            until=until,
            limit=limit,
            offset=offset,
        )
        movements = self._store.list_movements(query)
        return MovementPageDTO(
            movements=[MovementDTO.from_movement(m) for m in movements],
            total=self._store.count_movements(query),
            limit=limit,
            offset=offset,
        )


class ShowMovementHandler:

    def __init__(self, store: LedgerStore) -> None:
        self._store = store

    def handle(self, movement_id: str) -> MovementDTO:
        movement = self._store.get_movement(movement_id)
        if movement is None:
            raise EntityNotFoundError(f"Movement '{movement_id}' not found")
        return MovementDTO.from_movement(movement)
