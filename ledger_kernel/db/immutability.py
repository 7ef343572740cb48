"""
ORM-Level Immutability Enforcement for the append-only ledger.

===============================================================================
WHY THIS EXISTS
===============================================================================

The ledger is an append-only log. Amending or deleting a transaction is
expressed as a new reversal record, never as an UPDATE or DELETE. These
listeners make that rule hold for anything written through the ORM:

    session.flush()
         |
         v
    [before_update] --> _block_update() --> ImmutabilityViolationError
         |
    [before_delete] --> _block_delete() --> ImmutabilityViolationError
         |
         v
    SQL sent to database (inserts only)

Protected entities: TransactionRecord and PostingRecord, always, from the
moment they are inserted. AccountRecord is reference data and stays mutable.

===============================================================================
USAGE
===============================================================================

    from ledger_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # idempotent; called by init_engine_from_url

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
"""

from sqlalchemy import event

from ledger_kernel.exceptions import ImmutabilityViolationError
from ledger_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _block(operation: str, target) -> None:
    entity_type = type(target).__name__
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": operation,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        reason=f"appended records cannot be {'updated' if operation == 'UPDATE' else 'deleted'}; "
        "append a reversal instead",
    )


def _block_update(mapper, connection, target):
    _block("UPDATE", target)


def _block_delete(mapper, connection, target):
    _block("DELETE", target)


def _protected_models():
    from ledger_kernel.models.transaction import PostingRecord, TransactionRecord

    return (TransactionRecord, PostingRecord)


def register_immutability_listeners() -> None:
    """Register UPDATE/DELETE guards on appended records (idempotent)."""
    for model in _protected_models():
        if not event.contains(model, "before_update", _block_update):
            event.listen(model, "before_update", _block_update)
        if not event.contains(model, "before_delete", _block_delete):
            event.listen(model, "before_delete", _block_delete)


def unregister_immutability_listeners() -> None:
    """
    Remove the guards.

    WARNING: Only use this in tests that must bypass the rule on purpose.
    """
    for model in _protected_models():
        if event.contains(model, "before_update", _block_update):
            event.remove(model, "before_update", _block_update)
        if event.contains(model, "before_delete", _block_delete):
            event.remove(model, "before_delete", _block_delete)
