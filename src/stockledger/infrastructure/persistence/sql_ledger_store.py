"""SQLAlchemy-backed implementation of LedgerStore.

Row-level locking: a transaction first makes sure a row exists for every
key it was opened with, then locks the rows with ``SELECT ... FOR UPDATE``
in the global key order. On SQLite, where ``FOR UPDATE`` is not
supported, the ``BEGIN IMMEDIATE`` issued by the engine serializes writers
instead (see ``create_ledger_engine``).

Database failures are translated into the domain taxonomy at this
boundary: foreign-key violations become UnknownReference, serialization
failures and lock timeouts become ConcurrencyConflict.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import func, or_, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.orm import Session, sessionmaker

from stockledger.domain.exceptions import ConcurrencyConflict, UnknownReference
from stockledger.domain.model.movement import (
    Adjustment,
    Movement,
    MovementDraft,
    MovementQuery,
    MovementType,
)
from stockledger.domain.model.stock import StockEntry, StockKey, ordered_keys
from stockledger.domain.repository.ledger_store import LedgerStore, LedgerTransaction
from stockledger.infrastructure.persistence.sql_models import (
    LocationRow,
    MovementRow,
    ProductRow,
    StockEntryRow,
)

logger = logging.getLogger(__name__)

# SQLSTATE serialization_failure / deadlock_detected
_RETRYABLE_SQLSTATES = {"40001", "40P01"}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_db_time(value: datetime) -> datetime:
    """Stored timestamps are naive UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _from_db_time(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class _SqlTransaction(LedgerTransaction):

    def __init__(
        self,
        session: Session,
        keys: list[StockKey],
        clock: Callable[[], datetime],
    ) -> None:
        self._session = session
        self._keys = keys
        self._clock = clock
        self._rows: dict[StockKey, StockEntryRow] = {}

    def lock(self) -> None:
        for key in self._keys:
            self._ensure_row(key)
            self._rows[key] = self._session.execute(
                select(StockEntryRow)
                .where(
                    StockEntryRow.product_id == key.product_id,
                    StockEntryRow.location_id == key.location_id,
                )
                .with_for_update()
            ).scalar_one()

    def get_quantity(self, product_id: str, location_id: str) -> int:
        key = StockKey(product_id, location_id)
        if key in self._rows:
            return self._rows[key].quantity
        quantity = self._session.execute(
            select(StockEntryRow.quantity).where(
                StockEntryRow.product_id == product_id,
                StockEntryRow.location_id == location_id,
            )
        ).scalar_one_or_none()
        return quantity or 0

    def apply_delta(self, product_id: str, location_id: str, delta: int) -> int:
        key = StockKey(product_id, location_id)
        row = self._rows.get(key)
        if row is None:
            raise ValueError(f"{key} is not locked by this transaction")
        entry = StockEntry(product_id, location_id, row.quantity)
        row.quantity = entry.apply_delta(delta)
        row.updated_at = _to_db_time(self._clock())
        return row.quantity

    def append_movement(self, draft: MovementDraft) -> Movement:
        movement = Movement.from_draft(draft, uuid.uuid4().hex, self._clock())
        self._session.add(
            MovementRow(
                id=movement.id,
                type=movement.type.value,
                product_id=movement.product_id,
                quantity=movement.quantity,
                from_location_id=movement.from_location_id,
                to_location_id=movement.to_location_id,
                adjustment=movement.adjustment.value if movement.adjustment else None,
                reason=movement.reason,
                actor_id=movement.actor_id,
                idempotency_key=movement.idempotency_key,
                created_at=_to_db_time(movement.created_at),
            )
        )
        self._session.flush()
        return movement

    def find_by_idempotency_key(self, key: str) -> Movement | None:
        row = self._session.execute(
            select(MovementRow).where(MovementRow.idempotency_key == key)
        ).scalar_one_or_none()
        return SqlLedgerStore.to_domain(row) if row is not None else None

    # --- Internal helpers -----------------------------------------------------

    def _ensure_row(self, key: StockKey) -> None:
        """Insert a zero row for ``key`` unless one exists.

        Inserted rows only survive if the transaction commits, so a
        rejected debit never leaves an empty entry behind.
        """
        values = {
            "product_id": key.product_id,
            "location_id": key.location_id,
            "quantity": 0,
        }
        dialect = self._session.get_bind().dialect.name
        if dialect == "postgresql":
            stmt = pg_insert(StockEntryRow).values(**values).on_conflict_do_nothing()
        elif dialect == "sqlite":
            stmt = sqlite_insert(StockEntryRow).values(**values).on_conflict_do_nothing()
        else:
            if self._session.get(StockEntryRow, (key.product_id, key.location_id)) is not None:
                return
            stmt = StockEntryRow.__table__.insert().values(**values)

        try:
            with self._session.begin_nested():
                self._session.execute(stmt)
        except IntegrityError as exc:
            raise self._missing_reference(key) from exc

    def _missing_reference(self, key: StockKey) -> Exception:
        if self._session.get(ProductRow, key.product_id) is None:
            return UnknownReference("product", key.product_id)
        if self._session.get(LocationRow, key.location_id) is None:
            return UnknownReference("location", key.location_id)
        return ConcurrencyConflict(f"Concurrent insert of stock entry {key}")


class SqlLedgerStore(LedgerStore):

    def __init__(
        self,
        session_factory: sessionmaker,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock

    # --- Reads ----------------------------------------------------------------

    def get_quantity(self, product_id: str, location_id: str) -> int:
        with self._session_factory() as session:
            quantity = session.execute(
                select(StockEntryRow.quantity).where(
                    StockEntryRow.product_id == product_id,
                    StockEntryRow.location_id == location_id,
                )
            ).scalar_one_or_none()
        return quantity or 0

    def get_total_quantity(self, product_id: str) -> int:
        with self._session_factory() as session:
            total = session.execute(
                select(func.coalesce(func.sum(StockEntryRow.quantity), 0)).where(
                    StockEntryRow.product_id == product_id
                )
            ).scalar_one()
        return int(total)

    def list_entries(self, product_id: str) -> list[StockEntry]:
        return self._entries(StockEntryRow.product_id == product_id)

    def list_location_entries(self, location_id: str) -> list[StockEntry]:
        return self._entries(StockEntryRow.location_id == location_id)

    def list_all_entries(self) -> list[StockEntry]:
        return self._entries()

    def get_movement(self, movement_id: str) -> Movement | None:
        with self._session_factory() as session:
            row = session.execute(
                select(MovementRow).where(MovementRow.id == movement_id)
            ).scalar_one_or_none()
        return self.to_domain(row) if row is not None else None

    def list_movements(self, query: MovementQuery) -> list[Movement]:
        stmt = (
            select(MovementRow)
            .where(*self._filters(query))
            .order_by(MovementRow.created_at.desc(), MovementRow.seq.desc())
            .offset(query.offset)
        )
        if query.limit is not None:
            stmt = stmt.limit(query.limit)
        with self._session_factory() as session:
            rows = session.execute(stmt).scalars().all()
        return [self.to_domain(row) for row in rows]

    def count_movements(self, query: MovementQuery) -> int:
        with self._session_factory() as session:
            return session.execute(
                select(func.count(MovementRow.seq)).where(*self._filters(query))
            ).scalar_one()

    # --- Writes ---------------------------------------------------------------

    @contextmanager
    def transaction(self, keys: Iterable[StockKey]) -> Iterator[LedgerTransaction]:
        ordered = ordered_keys(keys)
        try:
            with self._session_factory() as session, session.begin():
                tx = _SqlTransaction(session, ordered, self._clock)
                tx.lock()
                yield tx
        except DBAPIError as exc:
            conflict = self._as_conflict(exc)
            if conflict is None:
                raise
            logger.warning("Ledger transaction on %s aborted: %s", ordered, conflict)
            raise conflict from exc

    # --- Mapping --------------------------------------------------------------

    @staticmethod
    def to_domain(row: MovementRow) -> Movement:
        return Movement(
            id=row.id,
            type=MovementType(row.type),
            product_id=row.product_id,
            quantity=row.quantity,
            from_location_id=row.from_location_id,
            to_location_id=row.to_location_id,
            reason=row.reason or "",
            actor_id=row.actor_id,
            created_at=_from_db_time(row.created_at),
            adjustment=Adjustment(row.adjustment) if row.adjustment else None,
            idempotency_key=row.idempotency_key,
        )

    # --- Internal helpers -----------------------------------------------------

    def _entries(self, *criteria) -> list[StockEntry]:
        with self._session_factory() as session:
            rows = session.execute(select(StockEntryRow).where(*criteria)).scalars().all()
        return [StockEntry(r.product_id, r.location_id, r.quantity) for r in rows]

    @staticmethod
    def _filters(query: MovementQuery) -> list:
        filters = []
        if query.product_id is not None:
            filters.append(MovementRow.product_id == query.product_id)
        if query.location_id is not None:
            filters.append(
                or_(
                    MovementRow.from_location_id == query.location_id,
                    MovementRow.to_location_id == query.location_id,
                )
            )
        if query.type is not None:
            filters.append(MovementRow.type == query.type.value)
        if query.since is not None:
            filters.append(MovementRow.created_at >= _to_db_time(query.since))
        if query.until is not None:
            filters.append(MovementRow.created_at < _to_db_time(query.until))
        return filters

    @staticmethod
    def _as_conflict(exc: DBAPIError) -> ConcurrencyConflict | None:
        sqlstate = getattr(exc.orig, "pgcode", None) or getattr(exc.orig, "sqlstate", None)
        if sqlstate in _RETRYABLE_SQLSTATES:
            return ConcurrencyConflict(f"Serialization failure ({sqlstate})")
        if isinstance(exc, OperationalError) and "locked" in str(exc.orig).lower():
            return ConcurrencyConflict("Ledger database is locked")
        if isinstance(exc, IntegrityError) and "idempotency_key" in str(exc.orig):
            return ConcurrencyConflict("Movement with this idempotency key recorded concurrently")
        return None
