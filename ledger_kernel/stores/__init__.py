"""Reference implementations of the store and account-service protocols."""

from ledger_kernel.stores.memory import InMemoryAccountRegistry, InMemoryTransactionStore

__all__ = ["InMemoryAccountRegistry", "InMemoryTransactionStore"]
