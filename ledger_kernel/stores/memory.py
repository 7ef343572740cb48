"""
In-memory reference implementations of the kernel's collaborators.

InMemoryTransactionStore is an append-only list guarded by a lock. It
assigns sequential string identities ("0", "1", ...) and copies every
transaction on the way in and on the way out, so neither the caller nor the
repository can reach a stored record by reference.

InMemoryAccountRegistry answers eligibility from a fixed set of account ids.

Both are suitable for tests and single-process use; they hold no durable
state.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Sequence

from ledger_kernel.domain.transaction import Transaction
from ledger_kernel.exceptions import TransactionAlreadyReversedError, TransactionNotFoundError
from ledger_kernel.logging_config import get_logger

logger = get_logger("stores.memory")


class InMemoryTransactionStore:
    """Append-only, thread-safe transaction log held in memory."""

    def __init__(self) -> None:
        self._records: list[Transaction] = []
        self._index: dict[str, int] = {}
        self._reversed_by: dict[str, str] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def get(self, transaction_id: str) -> Transaction | None:
        with self._lock:
            position = self._index.get(transaction_id)
            if position is None:
                return None
            return self._records[position].copy()

    def find_reversal(self, transaction_id: str) -> str | None:
        with self._lock:
            return self._reversed_by.get(transaction_id)

    def append(self, transactions: Sequence[Transaction]) -> list[str]:
        with self._lock:
            # All checks run before the first write; a rejected batch leaves
            # no trace.
            claimed: dict[str, int] = {}
            for position, tx in enumerate(transactions):
                if not tx.removes:
                    continue
                if tx.removes not in self._index:
                    raise TransactionNotFoundError(tx.removes)
                if tx.removes in self._reversed_by:
                    raise TransactionAlreadyReversedError(
                        tx.removes, self._reversed_by[tx.removes]
                    )
                if tx.removes in claimed:
                    raise TransactionAlreadyReversedError(tx.removes)
                claimed[tx.removes] = position

            ids: list[str] = []
            for tx in transactions:
                record = tx.with_identity(str(len(self._records)))
                self._index[record.id] = len(self._records)
                self._records.append(record)
                if record.removes:
                    self._reversed_by[record.removes] = record.id
                ids.append(record.id)

        logger.debug("batch_appended", extra={"ids": ids})
        return ids

    def snapshot(self) -> list[Transaction]:
        """Copies of every record in append order."""
        with self._lock:
            return [record.copy() for record in self._records]


class InMemoryAccountRegistry:
    """Account existence service backed by a set of eligible account ids."""

    def __init__(self, eligible: Iterable[str] = ()):
        self._eligible = frozenset(eligible)
        self.calls: list[tuple[str, ...]] = []

    def exists(self, account_ids: Sequence[str]) -> list[bool]:
        self.calls.append(tuple(account_ids))
        return [account_id in self._eligible for account_id in account_ids]
