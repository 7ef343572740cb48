"""
Wiring -- assembles a TransactionRepository over the SQL reference store.

This is the one place that reads LedgerSettings: it configures logging,
initializes the engine, optionally creates the tables and hands the
session factory to SqlTransactionStore and SqlAccountService.
"""

from __future__ import annotations

from ledger_kernel.config import LedgerSettings, load_settings
from ledger_kernel.db.engine import create_tables, get_session_factory, init_engine_from_url
from ledger_kernel.domain.clock import Clock
from ledger_kernel.logging_config import configure_logging, get_logger
from ledger_kernel.services.transaction_repository import TransactionRepository
from ledger_kernel.stores.sql import SqlAccountService, SqlTransactionStore

logger = get_logger("wiring")


def create_sql_repository(
    settings: LedgerSettings | None = None,
    clock: Clock | None = None,
) -> TransactionRepository:
    """Build a repository backed by the database named in ``settings``."""
    settings = settings or load_settings()

    configure_logging(level=settings.log_level)
    init_engine_from_url(
        settings.database_url,
        echo=settings.echo,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
    )
    if settings.create_tables:
        create_tables()

    factory = get_session_factory()
    logger.info("repository_wired", extra={"create_tables": settings.create_tables})
    return TransactionRepository(
        store=SqlTransactionStore(factory),
        accounts=SqlAccountService(factory),
        clock=clock,
    )
