"""Movement: the immutable audit record of one stock-affecting operation.

A movement is first expressed as a ``MovementDraft`` (validated intent),
and becomes a ``Movement`` once the ledger store has appended it and
assigned an id and timestamp. Movements are never mutated or deleted;
replaying them from zero reconstructs every stock entry.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from stockledger.domain.exceptions import (
    IdempotencyKeyReused,
    InvalidMovement,
    InvalidTransfer,
)
from stockledger.domain.model.stock import StockKey
from stockledger.domain.model.value_objects import Quantity


class MovementType(Enum):
    RECEIPT = "RECEIPT"
    SHIPMENT = "SHIPMENT"
    ADJUSTMENT = "ADJUSTMENT"
    TRANSFER = "TRANSFER"


class Adjustment(Enum):
    """Sign of an ADJUSTMENT, kept apart from the always-positive quantity."""

    INCREASE = "INCREASE"
    DECREASE = "DECREASE"


def _effects(
    product_id: str,
    quantity: int,
    from_location_id: str | None,
    to_location_id: str | None,
) -> list[tuple[StockKey, int]]:
    effects: list[tuple[StockKey, int]] = []
    if from_location_id is not None:
        effects.append((StockKey(product_id, from_location_id), -quantity))
    if to_location_id is not None:
        effects.append((StockKey(product_id, to_location_id), quantity))
    return effects


@dataclass(frozen=True)
class MovementDraft:
    """A requested movement whose shape has been validated.

    Use ``MovementDraft.create()`` for new requests; it enforces the
    location rules for each movement type.
    """

    type: MovementType
    product_id: str
    quantity: int
    from_location_id: str | None
    to_location_id: str | None
    reason: str
    actor_id: str
    adjustment: Adjustment | None = None
    idempotency_key: str | None = None

    @staticmethod
    def create(
        type: MovementType,
        product_id: str,
        quantity: int,
        from_location_id: str | None = None,
        to_location_id: str | None = None,
        reason: str = "",
        actor_id: str = "",
        adjustment: Adjustment | None = None,
        idempotency_key: str | None = None,
    ) -> MovementDraft:
        qty = Quantity(quantity)

        if adjustment is not None and type is not MovementType.ADJUSTMENT:
            raise InvalidMovement(
                f"Adjustment direction given for a {type.value} movement"
            )

        if type is MovementType.RECEIPT:
            _require_destination_only(type.value, from_location_id, to_location_id)
        elif type is MovementType.SHIPMENT:
            _require_source_only(type.value, from_location_id, to_location_id)
        elif type is MovementType.ADJUSTMENT:
            if adjustment is None:
                raise InvalidMovement(
                    "ADJUSTMENT requires an explicit INCREASE or DECREASE direction"
                )
            label = f"ADJUSTMENT({adjustment.value})"
            if adjustment is Adjustment.INCREASE:
                _require_destination_only(label, from_location_id, to_location_id)
            else:
                _require_source_only(label, from_location_id, to_location_id)
        elif type is MovementType.TRANSFER:
            if from_location_id is None or to_location_id is None:
                raise InvalidMovement(
                    "TRANSFER requires both a source and a destination location"
                )
            if from_location_id == to_location_id:
                raise InvalidTransfer(
                    f"Cannot transfer stock to the same location "
                    f"('{from_location_id}')"
                )

        return MovementDraft(
            type=type,
            product_id=product_id,
            quantity=qty.value,
            from_location_id=from_location_id,
            to_location_id=to_location_id,
            reason=reason,
            actor_id=actor_id,
            adjustment=adjustment,
            idempotency_key=idempotency_key,
        )

    def effects(self) -> list[tuple[StockKey, int]]:
        """Signed quantity change per stock entry, source first."""
        return _effects(
            self.product_id, self.quantity,
            self.from_location_id, self.to_location_id,
        )

    def keys(self) -> list[StockKey]:
        return [key for key, _ in self.effects()]

    def ensure_replay_of(self, movement: Movement) -> None:
        """Raise IdempotencyKeyReused unless ``movement`` records this request.

        Reason and actor are free text and are not compared.
        """
        if self._fingerprint() != (
            movement.type,
            movement.product_id,
            movement.quantity,
            movement.from_location_id,
            movement.to_location_id,
            movement.adjustment,
        ):
            raise IdempotencyKeyReused(self.idempotency_key, movement.id)

    def _fingerprint(self) -> tuple:
        return (
            self.type,
            self.product_id,
            self.quantity,
            self.from_location_id,
            self.to_location_id,
            self.adjustment,
        )


@dataclass(frozen=True)
class Movement:
    """A committed, append-only movement record."""

    id: str
    type: MovementType
    product_id: str
    quantity: int
    from_location_id: str | None
    to_location_id: str | None
    reason: str
    actor_id: str
    created_at: datetime
    adjustment: Adjustment | None = None
    idempotency_key: str | None = None

    @staticmethod
    def from_draft(draft: MovementDraft, movement_id: str, created_at: datetime) -> Movement:
        return Movement(
            id=movement_id,
            type=draft.type,
            product_id=draft.product_id,
            quantity=draft.quantity,
            from_location_id=draft.from_location_id,
            to_location_id=draft.to_location_id,
            reason=draft.reason,
            actor_id=draft.actor_id,
            created_at=created_at,
            adjustment=draft.adjustment,
            idempotency_key=draft.idempotency_key,
        )

    def effects(self) -> list[tuple[StockKey, int]]:
        return _effects(
            self.product_id, self.quantity,
            self.from_location_id, self.to_location_id,
        )

    def touches(self, location_id: str) -> bool:
        return location_id in (self.from_location_id, self.to_location_id)


@dataclass(frozen=True)
class MovementQuery:
    """Filter for movement history. ``None`` fields are not filtered on.

    ``location_id`` matches either side of a movement. The date range is
    half-open: ``since <= created_at < until``.
    """

    product_id: str | None = None
    location_id: str | None = None
    type: MovementType | None = None
    since: datetime | None = None
    until: datetime | None = None
    limit: int | None = None
    offset: int = 0

    def matches(self, movement: Movement) -> bool:
        if self.product_id is not None and movement.product_id != self.product_id:
            return False
        if self.location_id is not None and not movement.touches(self.location_id):
            return False
        if self.type is not None and movement.type is not self.type:
            return False
        if self.since is not None and movement.created_at < self.since:
            return False
        if self.until is not None and movement.created_at >= self.until:
            return False
        return True


# ---------------------------------------------------------------------------
# Shape helpers
# ---------------------------------------------------------------------------


def _require_destination_only(
    label: str, from_location_id: str | None, to_location_id: str | None
) -> None:
    if to_location_id is None:
        raise InvalidMovement(f"{label} requires a destination location")
    if from_location_id is not None:
        raise InvalidMovement(f"{label} must not name a source location")


def _require_source_only(
    label: str, from_location_id: str | None, to_location_id: str | None
) -> None:
    if from_location_id is None:
        raise InvalidMovement(f"{label} requires a source location")
    if to_location_id is not None:
        raise InvalidMovement(f"{label} must not name a destination location")
