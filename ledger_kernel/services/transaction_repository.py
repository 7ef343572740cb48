"""
TransactionRepository -- validation, amendment-as-reversal and persistence.

Responsibility:
    The only kernel component with side effects. Validates candidate
    transactions against the current account state, turns amendments and
    deletions into compensating reversal records, and appends everything
    to the append-only store.

Architecture position:
    Kernel > Services -- imperative shell. Consumes a TransactionStore and an
    AccountExistenceService through their protocols; holds no mutable state
    of its own between calls.

Invariants enforced:
    - Double-entry balance on every saved transaction (TransactionValidator).
    - Append-only: records are never updated; "edit" is reversal + new
      record, "delete" is reversal.
    - At most one reversal per identity: checked here before writing and
      enforced atomically by the store at append time.
    - save() is all-or-nothing: every candidate is validated and every
      reversal built before the single atomic append, so a failure anywhere
      in the batch leaves the store untouched.
    - Values crossing the boundary are copies; caller objects are never
      mutated and never aliased by stored records.

Failure modes:
    - ValidationError subclasses: candidate rejected, nothing appended.
    - TransactionNotFoundError: amended or deleted identity does not exist.
    - TransactionAlreadyReversedError: identity already compensated.
    - DuplicateAmendmentError: one save() amends the same identity twice.
    - ConcurrentReversalError: a racing writer won the reversal slot.
    - StoreError / AccountServiceError and any other collaborator failure
      propagate unchanged; nothing here retries.
"""

from __future__ import annotations

from datetime import datetime, timezone

from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.transaction import Transaction
from ledger_kernel.domain.validation import TransactionValidator
from ledger_kernel.exceptions import (
    DuplicateAmendmentError,
    StoreError,
    TransactionAlreadyReversedError,
    TransactionNotFoundError,
    ValidationError,
)
from ledger_kernel.interfaces import AccountExistenceService, TransactionStore
from ledger_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.transaction_repository")


class TransactionRepository:
    """
    Validates and appends transactions; amends and deletes by reversal.

    Contract:
        save()   -> persisted copies of the candidates, in input order.
        get()    -> copy of the stored transaction, or None.
        delete() -> the persisted reversal record.

    Non-goals:
        - Does NOT compute balances or query history.
        - Does NOT retry collaborator failures.
        - Does NOT serialize concurrent callers; the store's atomic
          single-reversal check decides races.
    """

    def __init__(
        self,
        store: TransactionStore,
        accounts: AccountExistenceService,
        clock: Clock | None = None,
    ):
        self._store = store
        self._validator = TransactionValidator(accounts)
        self._clock = clock or SystemClock()

    def save(self, *transactions: Transaction) -> list[Transaction]:
        """
        Validate and persist one or more transactions atomically.

        A candidate that carries an id is an amendment of that record: a
        reversal of the currently stored version is written immediately
        before the candidate's new version. The batch appended to the store
        is therefore ``[reversal?, candidate, reversal?, candidate, ...]``.

        New versions are written with ``removes`` cleared and ``date`` in
        aware UTC (a naive date is taken to be UTC), so every store returns
        the same value that save() returned.

        Returns:
            Copies of the candidates carrying their new ids and ``as_of``,
            in input order.

        Raises:
            ValueError: If no transaction is given.
            See module docstring for the domain errors.
        """
        if not transactions:
            raise ValueError("save() requires at least one transaction")

        now = self._clock.now()
        batch: list[Transaction] = []
        candidate_slots: list[int] = []
        amended: set[str] = set()

        for position, candidate in enumerate(transactions):
            try:
                self._validator.validate(candidate)
            except ValidationError as exc:
                logger.warning(
                    "validation_failed",
                    extra={
                        "position": position,
                        "error_code": exc.code,
                        "error": str(exc),
                    },
                )
                raise

            if candidate.is_persisted:
                if candidate.id in amended:
                    raise DuplicateAmendmentError(candidate.id)
                amended.add(candidate.id)
                original = self._load_reversible(candidate.id)
                batch.append(
                    original.reversal(at=now, user=candidate.user or None)
                )

            # Only the repository writes reversals; a caller's removes is dropped
            fresh = candidate.copy()
            fresh.id = None
            fresh.removes = None
            fresh.date = _as_utc(fresh.date)
            fresh.as_of = now
            candidate_slots.append(len(batch))
            batch.append(fresh)

        ids = self._append(batch)
        results = [batch[slot].with_identity(ids[slot]) for slot in candidate_slots]

        for slot, record_id in enumerate(ids):
            record = batch[slot]
            logger.info(
                "reversal_appended" if record.is_reversal else "transaction_saved",
                extra={
                    "transaction_id": record_id,
                    "removes": record.removes,
                    "debit_lines": len(record.debits),
                    "credit_lines": len(record.credits),
                },
            )
        logger.info(
            "save_completed",
            extra={
                "candidates": len(results),
                "reversals": len(amended),
                "records_appended": len(ids),
            },
        )
        return results

    def get(self, transaction_id: str) -> Transaction | None:
        """Return a copy of the stored transaction, or None if absent."""
        found = self._store.get(transaction_id)
        return found.copy() if found is not None else None

    def delete(self, transaction_id: str, user: str | None = None) -> Transaction:
        """
        Delete a transaction by appending its reversal.

        Args:
            transaction_id: Identity of the record to compensate.
            user: Author of the reversal; defaults to the original author.

        Returns:
            The persisted reversal, carrying its new id.

        Raises:
            TransactionNotFoundError: Unknown identity.
            TransactionAlreadyReversedError: A reversal already exists.
        """
        with LogContext.bind(transaction_id=transaction_id, actor_id=user):
            original = self._load_reversible(transaction_id)
            reversal = original.reversal(at=self._clock.now(), user=user)
            [reversal_id] = self._append([reversal])
            logger.info(
                "reversal_appended",
                extra={"reversal_id": reversal_id, "removes": transaction_id},
            )
            return reversal.with_identity(reversal_id)

    # =========================================================================
    # Internal Implementation
    # =========================================================================

    def _load_reversible(self, transaction_id: str) -> Transaction:
        """Load a stored transaction that has not been reversed yet."""
        original = self._store.get(transaction_id)
        if original is None:
            logger.warning(
                "transaction_not_found",
                extra={"transaction_id": transaction_id},
            )
            raise TransactionNotFoundError(transaction_id)

        existing = self._store.find_reversal(transaction_id)
        if existing is not None:
            logger.warning(
                "transaction_already_reversed",
                extra={"transaction_id": transaction_id, "reversal_id": existing},
            )
            raise TransactionAlreadyReversedError(transaction_id, existing)
        return original

    def _append(self, batch: list[Transaction]) -> list[str]:
        ids = self._store.append(batch)
        if len(ids) != len(batch):
            raise StoreError(
                "append",
                f"store returned {len(ids)} identities for {len(batch)} records",
            )
        return ids


def _as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC; aware ones are converted."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
