"""
Transaction -- the unit the repository validates and appends.

Responsibility:
    Holds the debit and credit postings of one transaction together with its
    descriptive fields and the store-assigned identity. Provides value
    semantics (equality, deep copy), the reversal construction used for
    amendment and deletion, and a JSON-friendly dict form.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - copy() never shares posting lists or the tag set with the source, so a
      caller mutating a returned transaction cannot alias a stored one.
    - reversal() swaps the debit and credit sides posting-for-posting,
      preserving account and value, and links back through ``removes``.

Non-goals:
    - Validation lives in domain.validation; a Transaction may be invalid.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from ledger_kernel.domain.values import Posting, checked_sum


@dataclass
class Transaction:
    """
    A double-entry transaction.

    ``id`` is empty until the store assigns one. ``as_of`` is stamped by the
    repository at persistence time. ``removes`` is set only on reversal
    records and names the transaction being compensated.
    """

    debits: list[Posting] = field(default_factory=list)
    credits: list[Posting] = field(default_factory=list)
    date: datetime | None = None
    memo: str = ""
    tags: set[str] = field(default_factory=set)
    user: str = ""
    id: str | None = None
    as_of: datetime | None = None
    removes: str | None = None

    @property
    def is_persisted(self) -> bool:
        return bool(self.id)

    @property
    def is_reversal(self) -> bool:
        return bool(self.removes)

    def copy(self) -> Transaction:
        """Return a deep copy; no mutable member is shared with self."""
        return copy.deepcopy(self)

    def with_identity(self, transaction_id: str) -> Transaction:
        """Return a copy carrying ``transaction_id``."""
        result = self.copy()
        result.id = transaction_id
        return result

    def debit_total(self) -> int:
        return checked_sum(p.value for p in self.debits)

    def credit_total(self) -> int:
        return checked_sum(p.value for p in self.credits)

    def reversal(self, at: datetime, user: str | None = None) -> Transaction:
        """
        Build the compensating transaction for this persisted record.

        The old credits become the new debits and vice versa; every other
        descriptive field is carried over. The result has no id.

        Raises:
            ValueError: If this transaction has not been persisted.
        """
        if not self.is_persisted:
            raise ValueError("Only a persisted transaction can be reversed")
        return replace(
            self.copy(),
            debits=list(self.credits),
            credits=list(self.debits),
            id=None,
            as_of=at,
            removes=self.id,
            user=self.user if user is None else user,
        )

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id or "",
            "debits": [p.to_dict() for p in self.debits],
            "credits": [p.to_dict() for p in self.credits],
            "date": self.date.isoformat() if self.date else None,
            "memo": self.memo,
            "tags": sorted(self.tags),
            "user": self.user,
            "timestamp": self.as_of.isoformat() if self.as_of else None,
            "removes": self.removes or "",
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Transaction:
        return cls(
            id=data.get("id") or None,
            debits=[Posting.from_dict(p) for p in data.get("debits", [])],
            credits=[Posting.from_dict(p) for p in data.get("credits", [])],
            date=_parse_timestamp(data.get("date")),
            memo=data.get("memo", ""),
            tags=set(data.get("tags", [])),
            user=data.get("user", ""),
            as_of=_parse_timestamp(data.get("timestamp")),
            removes=data.get("removes") or None,
        )


def _parse_timestamp(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    raise ValueError(f"Cannot parse timestamp from {value!r}")
