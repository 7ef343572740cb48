"""
Kernel Invariants Contract.

These invariants are structural law for every transaction the repository
accepts. No setting or collaborator may switch them off.

This module only declares them. Enforcement is distributed across
domain.values, domain.validation, services.transaction_repository, the
store implementations and db.immutability.
"""

from enum import Enum, unique


@unique
class KernelInvariant(str, Enum):
    """Non-configurable invariants enforced by the kernel."""

    DOUBLE_ENTRY_BALANCE = "double_entry_balance"
    """Debit total equals credit total in every saved transaction.
    Enforced by TransactionValidator."""

    EXACT_AMOUNTS = "exact_amounts"
    """Amounts are integers in minor units; sums never wrap. Enforced by
    Posting and checked_sum."""

    APPEND_ONLY = "append_only"
    """Appended records are never updated or removed; amendment and
    deletion append reversals. Enforced by TransactionRepository and
    db.immutability."""

    SINGLE_REVERSAL = "single_reversal"
    """A transaction is reversed at most once. Enforced by
    TransactionRepository and atomically by the store (lock in memory,
    UNIQUE constraint on removes in SQL)."""

    BATCHED_ACCOUNT_LOOKUP = "batched_account_lookup"
    """At most one account-service call per validated side. Enforced by
    EntrySetValidator."""

    ATOMIC_SAVE = "atomic_save"
    """A save appends all of its records, reversals included, in one
    atomic batch or nothing at all. Enforced by TransactionRepository."""


ALL_KERNEL_INVARIANTS: frozenset[KernelInvariant] = frozenset(KernelInvariant)

# The domain layer may not import from these kernel packages.
# This is enforced by tests/architecture/test_kernel_boundary.py.
FORBIDDEN_DOMAIN_IMPORTS: tuple[str, ...] = (
    "ledger_kernel.services",
    "ledger_kernel.stores",
    "ledger_kernel.db",
    "ledger_kernel.models",
    "sqlalchemy",
)
