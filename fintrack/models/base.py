"""
Database engine, session management, and base model.

This module is the foundation for all database operations.
Every model inherits from Base. Every request gets a session
from get_db(). Multi-statement writes that must succeed or
fail together run inside atomic().
"""

from contextlib import contextmanager
from typing import Iterator

import structlog
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase, Session

from fintrack.config import get_settings

logger = structlog.get_logger(__name__)

settings = get_settings()


def configure_sqlite(engine: Engine) -> Engine:
    """
    Let SQLAlchemy own BEGIN on SQLite connections.

    The pysqlite driver otherwise issues its own BEGIN lazily,
    which breaks SAVEPOINT based atomic scopes.
    """
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, _record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


def _create_engine() -> Engine:
    connect_args: dict[str, object] = {}
    if settings.DATABASE_URL.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    eng = create_engine(
        settings.DATABASE_URL,
        connect_args=connect_args,
        pool_pre_ping=True,
    )
    if settings.DATABASE_URL.startswith("sqlite"):
        configure_sqlite(eng)
    return eng


# --- Engine ---
# One engine per process; every session borrows connections from it.
engine = _create_engine()

# --- Session Factory ---
# autocommit=False: the caller decides when work is committed.
# autoflush=False: SQL is only sent on explicit flush or commit.
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    pass


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """
    Run a group of writes as one unit.

    Opens a SAVEPOINT on the given session. If anything inside
    the block raises, every write made in the block is rolled
    back and the original exception is re-raised unchanged.
    The enclosing transaction is still committed by the caller.
    """
    scope = db.begin_nested()
    try:
        yield db
        scope.commit()
    except Exception as exc:
        scope.rollback()
        logger.warning("atomic_scope_rolled_back", error=str(exc))
        raise


# --- Dependency for FastAPI ---
def get_db():
    """
    Provide a database session for a single request.

    The session is always closed when the request finishes,
    even if an error occurs.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
