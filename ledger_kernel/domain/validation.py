"""
Validation -- entry set and transaction validators.

Responsibility:
    EntrySetValidator checks one side (debits or credits) of a transaction:
    every posting names an account, and all accounts are eligible according
    to the account service. TransactionValidator orchestrates both sides and
    the transaction-level rules, finishing with the double-entry balance
    check.

Architecture position:
    Kernel > Domain. The only outward call is the batched
    AccountExistenceService lookup.

Invariants enforced:
    - Exactly one account-service call per validated side, never one per
      posting.
    - sum(debits) == sum(credits) with integer equality, no tolerance.
    - Errors short-circuit; the first failure is raised, never aggregated.

Failure modes:
    - MissingDebitsError, MissingCreditsError, MissingDateError,
      MissingMemoError, MissingAccountError, AccountNotEligibleError,
      UnbalancedTransactionError, AmountOverflowError.
    - AccountServiceError if the service answers with the wrong cardinality.
    - Any exception raised by the account service propagates unchanged.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from ledger_kernel.domain.transaction import Transaction
from ledger_kernel.domain.values import Posting, checked_sum
from ledger_kernel.exceptions import (
    AccountNotEligibleError,
    AccountServiceError,
    MissingAccountError,
    MissingCreditsError,
    MissingDateError,
    MissingDebitsError,
    MissingMemoError,
    UnbalancedTransactionError,
)
from ledger_kernel.logging_config import get_logger

if TYPE_CHECKING:
    from ledger_kernel.interfaces import AccountExistenceService

logger = get_logger("domain.validation")


class EntrySetValidator:
    """Validates one ordered sequence of postings."""

    def __init__(self, accounts: AccountExistenceService):
        self._accounts = accounts

    def validate(self, postings: Sequence[Posting], side: str = "debit") -> None:
        """
        Check that every posting names an eligible account.

        Raises:
            MissingAccountError: First posting with an empty account.
            AccountNotEligibleError: Lists every rejected account.
            AccountServiceError: Service answered with the wrong cardinality.
        """
        for index, posting in enumerate(postings):
            if not posting.account:
                raise MissingAccountError(side=side, index=index)

        # Distinct ids, first-seen order
        account_ids = list(dict.fromkeys(p.account for p in postings))
        if not account_ids:
            return

        results = self._accounts.exists(account_ids)
        if len(results) != len(account_ids):
            raise AccountServiceError(
                f"expected {len(account_ids)} results, got {len(results)}"
            )

        rejected = tuple(
            account_id
            for account_id, ok in zip(account_ids, results)
            if not ok
        )
        if rejected:
            raise AccountNotEligibleError(rejected)

    @staticmethod
    def total(postings: Sequence[Posting]) -> int:
        """Exact sum of posting values (AmountOverflowError, never wraps)."""
        return checked_sum(p.value for p in postings)


class TransactionValidator:
    """Validates a whole transaction against the double-entry rules."""

    def __init__(self, accounts: AccountExistenceService):
        self._entries = EntrySetValidator(accounts)

    def validate(self, transaction: Transaction) -> None:
        """
        Validate in a fixed order, raising the first failure.

        Order: debits present, credits present, date set, memo non-blank,
        debit accounts, credit accounts, balance.
        """
        if not transaction.debits:
            raise MissingDebitsError()
        if not transaction.credits:
            raise MissingCreditsError()
        if transaction.date is None:
            raise MissingDateError()
        if not transaction.memo or not transaction.memo.strip():
            raise MissingMemoError()

        self._entries.validate(transaction.debits, side="debit")
        self._entries.validate(transaction.credits, side="credit")

        debits = self._entries.total(transaction.debits)
        credits = self._entries.total(transaction.credits)
        if debits != credits:
            raise UnbalancedTransactionError(debits=debits, credits=credits)

        logger.debug(
            "transaction_validated",
            extra={
                "debit_lines": len(transaction.debits),
                "credit_lines": len(transaction.credits),
                "total": debits,
            },
        )
