"""
Module: ledger_kernel.models.transaction
Responsibility: ORM persistence for appended transactions and their postings.
Architecture position: Kernel > Models. May import from db/base.py only.

Invariants enforced:
    - Append-only: rows are inserted once and never updated or deleted
      (ORM listeners in db/immutability.py).
    - Single reversal: UNIQUE constraint on ``removes`` -- at most one record
      may compensate a given transaction. Under concurrency the database
      decides the winner.
    - Exact amounts: posting values are BigInteger minor units.

Failure modes:
    - IntegrityError on a second reversal of the same transaction.
    - ImmutabilityViolationError on UPDATE/DELETE of any row.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import Base, UTCDateTime


class LineSide(str, Enum):
    """Which side of the transaction a posting belongs to."""

    DEBIT = "debit"
    CREDIT = "credit"


class TransactionRecord(Base):
    """One appended transaction (original, amendment or reversal)."""

    __tablename__ = "ledger_transactions"

    __table_args__ = (
        UniqueConstraint("removes", name="uq_transaction_removes"),
        Index("idx_transaction_as_of", "as_of"),
    )

    date: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    memo: Mapped[str] = mapped_column(Text, nullable=False)

    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    user: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    # Persistence timestamp stamped by the repository
    as_of: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    # Identity of the transaction this record reverses
    removes: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("ledger_transactions.id"),
        nullable=True,
    )

    postings: Mapped[list["PostingRecord"]] = relationship(
        back_populates="transaction",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<TransactionRecord {self.id} removes={self.removes}>"


class PostingRecord(Base):
    """One posting line of an appended transaction."""

    __tablename__ = "ledger_postings"

    __table_args__ = (
        UniqueConstraint(
            "transaction_id", "side", "position", name="uq_posting_position"
        ),
        Index("idx_posting_account", "account"),
    )

    transaction_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("ledger_transactions.id"),
        nullable=False,
    )

    # LineSide value
    side: Mapped[str] = mapped_column(String(10), nullable=False)

    # Order within the side, starting at 0
    position: Mapped[int] = mapped_column(Integer, nullable=False)

    account: Mapped[str] = mapped_column(String(100), nullable=False)

    value: Mapped[int] = mapped_column(nullable=False)

    transaction: Mapped[TransactionRecord] = relationship(back_populates="postings")
