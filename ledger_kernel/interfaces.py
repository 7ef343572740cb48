"""
Collaborator protocols consumed by the kernel.

The kernel owns no storage and no chart of accounts. It talks to both
through these two narrow contracts; any object with matching methods
qualifies (no inheritance required). Reference implementations live in
``ledger_kernel.stores``.
"""

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from ledger_kernel.domain.transaction import Transaction


@runtime_checkable
class TransactionStore(Protocol):
    """
    Append-only log of transactions.

    Contract:
        - ``append`` is atomic across the batch: either every transaction is
          durably recorded and its identity returned, or none is and an
          error is raised.
        - Identities are unique, store-assigned and stable once returned.
        - ``append`` refuses a batch containing a reversal (``removes`` set)
          of an identity that already has one, raising
          TransactionAlreadyReversedError (or ConcurrentReversalError when
          the conflict is only detected at commit). The check happens
          atomically with the write.
        - ``append`` refuses a ``removes`` that names no stored transaction,
          raising TransactionNotFoundError.
        - ``get`` on an unknown identity returns None, not an error.
        - Records are never updated or removed.
    """

    def get(self, transaction_id: str) -> Transaction | None:
        """Return a copy of the stored transaction, or None."""
        ...

    def append(self, transactions: Sequence[Transaction]) -> list[str]:
        """Append the batch and return the assigned identities in input order."""
        ...

    def find_reversal(self, transaction_id: str) -> str | None:
        """Return the identity of the record reversing ``transaction_id``, if any."""
        ...


@runtime_checkable
class AccountExistenceService(Protocol):
    """
    Account existence and eligibility lookup.

    Contract:
        One call answers for a whole set of accounts.
        Returns one boolean per input identifier, in input order.
    """

    def exists(self, account_ids: Sequence[str]) -> list[bool]:
        ...
