"""
SQLAlchemy reference implementations of the kernel's collaborators.

SqlTransactionStore persists transactions as TransactionRecord and
PostingRecord rows. Each ``append`` runs in its own database transaction,
so a batch is committed entirely or not at all. The single-reversal rule is
checked inside that transaction and backed by the UNIQUE constraint on
``removes``: when two writers race, the database keeps one and the loser
gets ConcurrentReversalError with nothing written. A ``removes`` that names
no stored transaction is rejected with TransactionNotFoundError.
SqlAccountService answers eligibility with one ``SELECT ... IN`` per call.

Database failures are translated to StoreError / AccountServiceError so
callers can tell infrastructure faults from input faults.
"""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ledger_kernel.db.engine import session_scope
from ledger_kernel.domain.transaction import Transaction
from ledger_kernel.domain.values import Posting
from ledger_kernel.exceptions import (
    AccountServiceError,
    ConcurrentReversalError,
    StoreError,
    TransactionAlreadyReversedError,
    TransactionNotFoundError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import AccountRecord
from ledger_kernel.models.transaction import LineSide, PostingRecord, TransactionRecord

logger = get_logger("stores.sql")


class SqlTransactionStore:
    """Append-only transaction store on top of a SQLAlchemy session factory."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def get(self, transaction_id: str) -> Transaction | None:
        try:
            with session_scope(self._session_factory) as session:
                record = session.get(TransactionRecord, transaction_id)
                return _to_domain(record) if record is not None else None
        except SQLAlchemyError as exc:
            raise StoreError("get", str(exc)) from exc

    def find_reversal(self, transaction_id: str) -> str | None:
        try:
            with session_scope(self._session_factory) as session:
                return session.execute(
                    select(TransactionRecord.id).where(
                        TransactionRecord.removes == transaction_id
                    )
                ).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StoreError("find_reversal", str(exc)) from exc

    def append(self, transactions: Sequence[Transaction]) -> list[str]:
        removes = [tx.removes for tx in transactions if tx.removes]
        try:
            with session_scope(self._session_factory) as session:
                self._check_single_reversal(session, removes)
                records = [_to_record(tx) for tx in transactions]
                session.add_all(records)
                session.flush()
                ids = [record.id for record in records]
        except IntegrityError as exc:
            if removes and self._any_reversed(removes):
                logger.warning(
                    "concurrent_reversal_rejected",
                    extra={"removes": removes},
                )
                raise ConcurrentReversalError(tuple(removes)) from exc
            raise StoreError("append", str(exc.orig)) from exc
        except SQLAlchemyError as exc:
            raise StoreError("append", str(exc)) from exc

        logger.debug("batch_appended", extra={"ids": ids})
        return ids

    # =========================================================================
    # Internal Implementation
    # =========================================================================

    @staticmethod
    def _check_single_reversal(session: Session, removes: list[str]) -> None:
        seen: set[str] = set()
        for transaction_id in removes:
            if transaction_id in seen:
                raise TransactionAlreadyReversedError(transaction_id)
            seen.add(transaction_id)
        if not removes:
            return
        stored = set(
            session.execute(
                select(TransactionRecord.id).where(TransactionRecord.id.in_(removes))
            ).scalars()
        )
        for transaction_id in removes:
            if transaction_id not in stored:
                raise TransactionNotFoundError(transaction_id)
        existing = session.execute(
            select(TransactionRecord.removes, TransactionRecord.id).where(
                TransactionRecord.removes.in_(removes)
            )
        ).first()
        if existing is not None:
            raise TransactionAlreadyReversedError(existing.removes, existing.id)

    def _any_reversed(self, removes: list[str]) -> bool:
        with session_scope(self._session_factory) as session:
            return (
                session.execute(
                    select(TransactionRecord.id).where(
                        TransactionRecord.removes.in_(removes)
                    )
                ).first()
                is not None
            )


class SqlAccountService:
    """Account existence service reading the ledger_accounts table."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def exists(self, account_ids: Sequence[str]) -> list[bool]:
        try:
            with session_scope(self._session_factory) as session:
                eligible = set(
                    session.execute(
                        select(AccountRecord.code).where(
                            AccountRecord.code.in_(list(account_ids)),
                            AccountRecord.is_active.is_(True),
                            AccountRecord.is_analytic.is_(True),
                        )
                    ).scalars()
                )
        except SQLAlchemyError as exc:
            raise AccountServiceError(str(exc)) from exc
        return [account_id in eligible for account_id in account_ids]


# =============================================================================
# Mapping
# =============================================================================


def _to_record(tx: Transaction) -> TransactionRecord:
    postings = [
        PostingRecord(side=side.value, position=position, account=p.account, value=p.value)
        for side, lines in ((LineSide.DEBIT, tx.debits), (LineSide.CREDIT, tx.credits))
        for position, p in enumerate(lines)
    ]
    return TransactionRecord(
        date=tx.date,
        memo=tx.memo,
        tags=sorted(tx.tags),
        user=tx.user,
        as_of=tx.as_of,
        removes=tx.removes,
        postings=postings,
    )


def _to_domain(record: TransactionRecord) -> Transaction:
    ordered = sorted(record.postings, key=lambda p: p.position)
    return Transaction(
        id=record.id,
        debits=[
            Posting(account=p.account, value=p.value)
            for p in ordered
            if p.side == LineSide.DEBIT.value
        ],
        credits=[
            Posting(account=p.account, value=p.value)
            for p in ordered
            if p.side == LineSide.CREDIT.value
        ],
        date=record.date,
        memo=record.memo,
        tags=set(record.tags or ()),
        user=record.user,
        as_of=record.as_of,
        removes=record.removes,
    )
