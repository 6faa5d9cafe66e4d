"""Domain-level exceptions.

All ledger rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.
"""

from __future__ import annotations


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class InvalidQuantity(ValidationError):
    """A movement quantity is zero, negative or not an integer."""


class InvalidMovement(ValidationError):
    """The locations or adjustment flag do not match the movement type."""


class InvalidTransfer(ValidationError):
    """A transfer names the same location as source and destination."""


class IdempotencyKeyReused(ValidationError):
    """An idempotency key was sent again with a different movement."""

    def __init__(self, key: str, movement_id: str) -> None:
        self.key = key
        self.movement_id = movement_id
        super().__init__(
            f"Idempotency key '{key}' was already used for a different "
            f"movement ({movement_id})"
        )


class InsufficientStock(DomainException):
    """A debit would drive a stock entry below zero.

    Carries enough detail for a caller to render a precise message.
    """

    def __init__(
        self,
        product_id: str,
        location_id: str,
        requested: int,
        available: int,
    ) -> None:
        self.product_id = product_id
        self.location_id = location_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for product '{product_id}' at location "
            f"'{location_id}' (requested {requested}, available {available})"
        )


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class UnknownReference(EntityNotFoundError):
    """A product or location id does not exist."""

    def __init__(self, kind: str, ref_id: str) -> None:
        self.kind = kind
        self.ref_id = ref_id
        super().__init__(f"Unknown {kind}: '{ref_id}'")


class ConcurrencyConflict(DomainException):
    """The datastore could not serialize the transaction.

    Retryable: the failed attempt left no trace in the ledger.
    """
