"""
Values -- the Posting value object and exact integer arithmetic.

Responsibility:
    Represents one line of a transaction: an account identifier paired with
    a signed amount in minor currency units (e.g. cents). Amounts are exact
    Python integers -- never float -- so totals compare with plain integer
    equality and cannot drift.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Posting.value is an ``int`` (``bool`` is rejected even though it is an
      ``int`` subclass).
    - checked_sum never wraps: totals outside the signed 64-bit range (the
      width of the persisted column) raise AmountOverflowError.

Failure modes:
    - InvalidAmountError on construction with a non-integer value.
    - AmountOverflowError from checked_sum.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from ledger_kernel.exceptions import AmountOverflowError, InvalidAmountError

MAX_AMOUNT: int = 2**63 - 1
MIN_AMOUNT: int = -(2**63)


@dataclass(frozen=True, slots=True)
class Posting:
    """
    One posting line: account identifier plus signed minor-unit value.

    Contract:
        Immutable and hashable. An empty account is allowed here; the entry
        set validator reports it with its side and position.
    """

    account: str
    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise InvalidAmountError(self.account, self.value)

    def to_dict(self) -> dict[str, Any]:
        return {"account": self.account, "value": self.value}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Posting:
        return cls(account=data["account"], value=data["value"])


def checked_sum(values: Iterable[int]) -> int:
    """
    Sum integer amounts exactly, refusing to leave the signed 64-bit range.

    Every partial sum is checked so that an intermediate overflow is caught
    even when later values would bring the total back into range.

    Raises:
        AmountOverflowError: If any partial sum exceeds MIN_AMOUNT..MAX_AMOUNT.
    """
    total = 0
    for value in values:
        total += value
        if total > MAX_AMOUNT:
            raise AmountOverflowError(total, MAX_AMOUNT)
        if total < MIN_AMOUNT:
            raise AmountOverflowError(total, MIN_AMOUNT)
    return total
