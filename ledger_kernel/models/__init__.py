"""ORM models for the SQLAlchemy reference store."""

from ledger_kernel.models.account import AccountRecord
from ledger_kernel.models.transaction import LineSide, PostingRecord, TransactionRecord

__all__ = [
    "AccountRecord",
    "LineSide",
    "PostingRecord",
    "TransactionRecord",
]
