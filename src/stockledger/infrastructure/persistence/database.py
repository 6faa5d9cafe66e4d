"""SQLAlchemy engine and schema setup."""

from __future__ import annotations

import logging

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def create_ledger_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine configured for serialized ledger writes.

    On SQLite every transaction starts with ``BEGIN IMMEDIATE`` so the
    writer lock is taken up front instead of on the first write, and
    foreign keys are enforced on every connection. Other backends lock
    rows with ``SELECT ... FOR UPDATE`` (see SqlLedgerStore).
    """
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, echo=echo, pool_pre_ping=True)

    kwargs: dict = {"connect_args": {"check_same_thread": False, "timeout": 30}}
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        # one shared connection, otherwise every session sees an empty database
        kwargs["poolclass"] = StaticPool
    engine = create_engine(database_url, echo=echo, **kwargs)

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_conn, _):
        # hand transaction control to SQLAlchemy's "begin" event below
        dbapi_conn.isolation_level = None
        cur = dbapi_conn.cursor()
        try:
            cur.execute("PRAGMA foreign_keys=ON;")
            cur.execute("PRAGMA busy_timeout=30000;")
        finally:
            cur.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_schema(engine: Engine) -> None:
    """Create all ledger and catalog tables that do not exist yet."""
    # imported for its side effect of registering the tables on Base
    from stockledger.infrastructure.persistence import sql_models  # noqa: F401

    Base.metadata.create_all(engine)
    logger.debug("Schema ready on %s", engine.url)
