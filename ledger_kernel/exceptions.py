"""
Typed Exception Hierarchy for the Ledger Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers must be able to tell "fix your input" apart from "storage
unavailable" without parsing message strings. Every error therefore:
  1. Has its own class (catch by type, not message)
  2. Carries a CODE class attribute (machine-readable, API-safe)
  3. Stores its context as attributes (not just a message string)

Example:
    try:
        repository.save(tx)
    except UnbalancedTransactionError as e:
        api_response(code=e.code, debits=e.debits, credits=e.credits)
    except InfrastructureError:
        retry_later()

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LedgerKernelError (base)
    |
    +-- ValidationError
    |   +-- MissingDebitsError
    |   +-- MissingCreditsError
    |   +-- MissingDateError
    |   +-- MissingMemoError
    |   +-- MissingAccountError
    |   +-- AccountNotEligibleError
    |   +-- UnbalancedTransactionError
    |   +-- InvalidAmountError
    |   +-- AmountOverflowError
    |
    +-- TransactionNotFoundError
    |
    +-- ReversalError
    |   +-- TransactionAlreadyReversedError
    |   +-- DuplicateAmendmentError
    |
    +-- ConcurrencyError
    |   +-- ConcurrentReversalError
    |
    +-- ImmutabilityError
    |   +-- ImmutabilityViolationError
    |
    +-- InfrastructureError
        +-- StoreError
        +-- AccountServiceError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Validation      | MISSING_DEBITS              | Transaction has no debit postings
                | MISSING_CREDITS             | Transaction has no credit postings
                | MISSING_DATE                | Transaction date not set
                | MISSING_MEMO                | Memo empty after trimming whitespace
                | MISSING_ACCOUNT             | A posting has an empty account id
                | ACCOUNT_NOT_ELIGIBLE        | Account service rejected an account
                | UNBALANCED_TRANSACTION      | Debit total != credit total
                | INVALID_AMOUNT              | Posting value is not an integer
                | AMOUNT_OVERFLOW             | Sum left the signed 64-bit range
----------------|-----------------------------|-----------------------------------------
Lookup          | TRANSACTION_NOT_FOUND       | Identity does not exist in the store
----------------|-----------------------------|-----------------------------------------
Reversal        | TRANSACTION_ALREADY_REVERSED| Identity already has a reversal
                | DUPLICATE_AMENDMENT         | Same identity amended twice in one save
----------------|-----------------------------|-----------------------------------------
Concurrency     | CONCURRENT_REVERSAL         | Racing writer took the reversal slot
----------------|-----------------------------|-----------------------------------------
Immutability    | IMMUTABILITY_VIOLATION      | UPDATE/DELETE on an appended record
----------------|-----------------------------|-----------------------------------------
Infrastructure  | STORE_ERROR                 | Append-only store failed
                | ACCOUNT_SERVICE_ERROR       | Account service failed or misbehaved

===============================================================================
"""


class LedgerKernelError(Exception):
    """
    Base exception for all ledger kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "LEDGER_KERNEL_ERROR"


# Validation exceptions


class ValidationError(LedgerKernelError):
    """Base exception for user-input faults. Never retried."""

    code: str = "VALIDATION_ERROR"


class MissingDebitsError(ValidationError):
    """Transaction has no debit postings."""

    code: str = "MISSING_DEBITS"

    def __init__(self):
        super().__init__("At least one debit must be informed")


class MissingCreditsError(ValidationError):
    """Transaction has no credit postings."""

    code: str = "MISSING_CREDITS"

    def __init__(self):
        super().__init__("At least one credit must be informed")


class MissingDateError(ValidationError):
    """Transaction date is not set."""

    code: str = "MISSING_DATE"

    def __init__(self):
        super().__init__("The date must be informed")


class MissingMemoError(ValidationError):
    """Memo is empty after trimming whitespace."""

    code: str = "MISSING_MEMO"

    def __init__(self):
        super().__init__("The memo must be informed")


class MissingAccountError(ValidationError):
    """A posting has an empty account identifier."""

    code: str = "MISSING_ACCOUNT"

    def __init__(self, side: str, index: int):
        self.side = side
        self.index = index
        super().__init__(
            f"The account must be informed for each entry ({side} #{index})"
        )


class AccountNotEligibleError(ValidationError):
    """The account service reported one or more accounts as not eligible."""

    code: str = "ACCOUNT_NOT_ELIGIBLE"

    def __init__(self, account_ids: tuple[str, ...]):
        self.account_ids = tuple(account_ids)
        super().__init__(
            f"Account not found or not eligible for posting: "
            f"{', '.join(self.account_ids)}"
        )


class UnbalancedTransactionError(ValidationError):
    """Debit total does not equal credit total."""

    code: str = "UNBALANCED_TRANSACTION"

    def __init__(self, debits: int, credits: int):
        self.debits = debits
        self.credits = credits
        super().__init__(
            f"The sum of debit values must be equal to the sum of credit "
            f"values: debits={debits}, credits={credits}"
        )


class InvalidAmountError(ValidationError):
    """Posting value is not an integer amount in minor units."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, account: str, value: object):
        self.account = account
        self.value = value
        super().__init__(
            f"Posting value for account '{account}' must be an integer "
            f"in minor units, got {type(value).__name__}: {value!r}"
        )


class AmountOverflowError(ValidationError):
    """A total left the representable signed 64-bit range."""

    code: str = "AMOUNT_OVERFLOW"

    def __init__(self, partial_total: int, limit: int):
        self.partial_total = partial_total
        self.limit = limit
        super().__init__(
            f"Amount total {partial_total} exceeds the representable "
            f"range (limit {limit})"
        )


# Lookup exceptions


class TransactionNotFoundError(LedgerKernelError):
    """Transaction with given identity was not found."""

    code: str = "TRANSACTION_NOT_FOUND"

    def __init__(self, transaction_id: str):
        self.transaction_id = transaction_id
        super().__init__(f"Transaction not found: {transaction_id}")


# Reversal exceptions


class ReversalError(LedgerKernelError):
    """Base exception for reversal-related errors."""

    code: str = "REVERSAL_ERROR"


class TransactionAlreadyReversedError(ReversalError):
    """The transaction already has a reversal; reversing again would
    double the correction."""

    code: str = "TRANSACTION_ALREADY_REVERSED"

    def __init__(self, transaction_id: str, reversal_id: str | None = None):
        self.transaction_id = transaction_id
        self.reversal_id = reversal_id
        detail = f" by {reversal_id}" if reversal_id else ""
        super().__init__(
            f"Transaction {transaction_id} has already been reversed{detail}"
        )


class DuplicateAmendmentError(ReversalError):
    """The same identity was amended more than once in a single save."""

    code: str = "DUPLICATE_AMENDMENT"

    def __init__(self, transaction_id: str):
        self.transaction_id = transaction_id
        super().__init__(
            f"Transaction {transaction_id} is amended more than once in the same batch"
        )


# Concurrency exceptions


class ConcurrencyError(LedgerKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class ConcurrentReversalError(ConcurrencyError):
    """
    A concurrent writer appended a reversal for the same identity first.

    Raised when the database unique constraint on the reversed identity
    rejects the batch. Nothing from the losing batch is persisted.
    """

    code: str = "CONCURRENT_REVERSAL"

    def __init__(self, transaction_ids: tuple[str, ...]):
        self.transaction_ids = tuple(transaction_ids)
        super().__init__(
            f"Concurrent reversal detected for: {', '.join(self.transaction_ids)}"
        )


# Immutability exceptions


class ImmutabilityError(LedgerKernelError):
    """Base exception for immutability violations."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """Attempted to modify or remove an appended record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Cannot modify {entity_type} {entity_id}: {reason}"
        )


# Infrastructure exceptions


class InfrastructureError(LedgerKernelError):
    """Base exception for failures of external collaborators."""

    code: str = "INFRASTRUCTURE_ERROR"


class StoreError(InfrastructureError):
    """The append-only store failed."""

    code: str = "STORE_ERROR"

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Store {operation} failed: {reason}")


class AccountServiceError(InfrastructureError):
    """The account existence service failed or broke its contract."""

    code: str = "ACCOUNT_SERVICE_ERROR"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Account service failed: {reason}")
