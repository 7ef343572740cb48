"""
Module: ledger_kernel.db.engine
Responsibility: SQLAlchemy engine initialization, session factory management
    and transactional scope for the SQL reference store.
Architecture position: Kernel > DB. May import from db/base.py and
    db/immutability.py; create_tables/drop_tables import models lazily.

Invariants enforced:
    - session_scope() commits on success and rolls back on any exception, so
      a batch append is all-or-nothing.
    - PostgreSQL runs at READ COMMITTED with a pre-pinged QueuePool; SQLite
      (tests, local tooling) uses a StaticPool for in-memory databases so
      every session sees the same connection.

Failure modes:
    - RuntimeError if get_engine/get_session_factory is called before
      init_engine_from_url().
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from ledger_kernel.db.immutability import register_immutability_listeners
from ledger_kernel.logging_config import get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 20,
    max_overflow: int = 10,
    pool_pre_ping: bool = True,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
) -> Engine:
    """
    Initialize the module-level engine and session factory.

    A second call replaces the first.

    Args:
        database_url: SQLAlchemy URL (postgresql://... or sqlite://...).
        echo: If True, log all SQL statements.
        pool_size, max_overflow, pool_pre_ping, pool_timeout, pool_recycle:
            QueuePool settings; ignored for SQLite.

    Returns:
        SQLAlchemy Engine instance.
    """
    global _engine, _SessionFactory

    if database_url.startswith("sqlite"):
        _engine = _create_sqlite_engine(database_url, echo)
    else:
        _engine = create_engine(
            database_url,
            echo=echo,
            poolclass=QueuePool,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=pool_pre_ping,
            pool_timeout=pool_timeout,
            pool_recycle=pool_recycle,
            isolation_level="READ COMMITTED",
        )

    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)
    register_immutability_listeners()

    logger.info(
        "engine_initialized",
        extra={
            "dialect": _engine.dialect.name,
            "pool_size": pool_size,
            "echo": echo,
        },
    )
    return _engine


def _create_sqlite_engine(database_url: str, echo: bool) -> Engine:
    in_memory = database_url in ("sqlite://", "sqlite:///:memory:")
    engine = create_engine(
        database_url,
        echo=echo,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool if in_memory else None,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def get_engine() -> Engine:
    """
    Raises:
        RuntimeError: If engine has not been initialized.
    """
    if _engine is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    """
    Get the session factory consumed by the SQL stores.

    Raises:
        RuntimeError: If engine has not been initialized.
    """
    if _SessionFactory is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _SessionFactory


@contextmanager
def session_scope(
    factory: sessionmaker[Session] | None = None,
) -> Generator[Session, None, None]:
    """
    Provide a transactional scope around a series of operations.

    Commits on normal exit; rolls back and re-raises on exception; always
    closes the session.

    Usage:
        with session_scope() as session:
            session.add(entity)
    """
    session = (factory or get_session_factory())()
    logger.debug("transaction_started")
    try:
        yield session
        session.commit()
        logger.debug("transaction_committed")
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables() -> None:
    """Create all ledger tables on the current engine."""
    from ledger_kernel.db.base import Base
    import ledger_kernel.models  # noqa: F401  registers tables on Base.metadata

    Base.metadata.create_all(get_engine())


def drop_tables() -> None:
    """Drop all tables. Use with caution - primarily for testing."""
    from ledger_kernel.db.base import Base
    import ledger_kernel.models  # noqa: F401

    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine and forget the session factory. Useful for test cleanup."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
        _engine = None
    _SessionFactory = None
