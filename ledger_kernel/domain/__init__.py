"""Pure domain layer: value objects, the transaction model and validators."""

from ledger_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from ledger_kernel.domain.transaction import Transaction
from ledger_kernel.domain.validation import EntrySetValidator, TransactionValidator
from ledger_kernel.domain.values import MAX_AMOUNT, MIN_AMOUNT, Posting, checked_sum

__all__ = [
    "Clock",
    "DeterministicClock",
    "EntrySetValidator",
    "MAX_AMOUNT",
    "MIN_AMOUNT",
    "Posting",
    "SystemClock",
    "Transaction",
    "TransactionValidator",
    "checked_sum",
]
