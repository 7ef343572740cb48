"""
Pytest fixtures for the ledger kernel test suite.

Provides:
- Structured logging setup and JSON log capture
- Deterministic clock
- In-memory store and account registry, and a repository over them
- SQLite-backed session factory and SQL stores (in-memory database per test)
- Transaction builders
"""

import json
import logging
from datetime import datetime, timezone
from io import StringIO

import pytest

from ledger_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from ledger_kernel.domain.clock import DeterministicClock
from ledger_kernel.domain.transaction import Transaction
from ledger_kernel.domain.values import Posting
from ledger_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from ledger_kernel.models.account import AccountRecord
from ledger_kernel.services.transaction_repository import TransactionRepository
from ledger_kernel.stores.memory import InMemoryAccountRegistry, InMemoryTransactionStore
from ledger_kernel.stores.sql import SqlAccountService, SqlTransactionStore

STANDARD_ACCOUNTS = ("1", "2", "cash", "revenue", "expense", "payable")

BUSINESS_DATE = datetime(2024, 3, 15, 9, 30, tzinfo=timezone.utc)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow_locks: mark test as racing threads on store locks"
    )


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture ledger_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, repository):
            repository.save(...)
            logs = captured_logs()
            assert any(r["message"] == "save_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("ledger_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Clock and builders
# =============================================================================


@pytest.fixture
def deterministic_clock():
    """Provide a deterministic clock for testing."""
    return DeterministicClock()


def make_transaction(
    debits=(("1", 1),),
    credits=(("2", 1),),
    memo="m",
    date=BUSINESS_DATE,
    tags=(),
    user="alice",
) -> Transaction:
    """Build an unsaved transaction from (account, value) pairs."""
    return Transaction(
        debits=[Posting(account, value) for account, value in debits],
        credits=[Posting(account, value) for account, value in credits],
        date=date,
        memo=memo,
        tags=set(tags),
        user=user,
    )


@pytest.fixture
def tx_factory():
    """Provide the make_transaction builder as a fixture."""
    return make_transaction


# =============================================================================
# In-memory collaborators
# =============================================================================


@pytest.fixture
def memory_store():
    return InMemoryTransactionStore()


@pytest.fixture
def accounts():
    return InMemoryAccountRegistry(STANDARD_ACCOUNTS)


@pytest.fixture
def repository(memory_store, accounts, deterministic_clock):
    """Repository over the in-memory store and account registry."""
    return TransactionRepository(memory_store, accounts, clock=deterministic_clock)


# =============================================================================
# SQL collaborators (SQLite, fresh in-memory database per test)
# =============================================================================


@pytest.fixture
def session_factory():
    init_engine_from_url("sqlite://")
    create_tables()
    factory = get_session_factory()
    with session_scope(factory) as session:
        session.add_all(
            [AccountRecord(code=code, name=code.title()) for code in STANDARD_ACCOUNTS]
        )
        session.add_all(
            [
                AccountRecord(code="closed", name="Closed", is_active=False),
                AccountRecord(code="assets", name="Assets", is_analytic=False),
            ]
        )
    yield factory
    drop_tables()
    reset_engine()


@pytest.fixture
def sql_store(session_factory):
    return SqlTransactionStore(session_factory)


@pytest.fixture
def sql_accounts(session_factory):
    return SqlAccountService(session_factory)


@pytest.fixture
def sql_repository(sql_store, sql_accounts, deterministic_clock):
    """Repository over the SQLite-backed store and account service."""
    return TransactionRepository(sql_store, sql_accounts, clock=deterministic_clock)
