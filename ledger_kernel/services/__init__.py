"""Services for the ledger kernel (write side)."""

from ledger_kernel.services.transaction_repository import TransactionRepository

__all__ = ["TransactionRepository"]
