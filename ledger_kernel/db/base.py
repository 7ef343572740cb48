"""
Module: ledger_kernel.db.base
Responsibility: Declarative base class and shared column types for the
    SQLAlchemy reference store.
Architecture position: Kernel > DB. Lowest-level import target of the
    persistence adapter; MUST NOT import from models/, stores/, services/
    or domain/.

Invariants enforced:
    - String primary keys: every row gets a uuid4 string identity, which is
      also the transaction identity handed back to callers.
    - Integer amounts: ``int`` maps to BigInteger, the signed 64-bit range
      enforced by domain.values.checked_sum. Monetary values are never
      stored as floating point.
    - Timestamps round-trip as timezone-aware UTC on every backend
      (UTCDateTime), including SQLite which drops tzinfo.
"""

from datetime import datetime, timezone
from typing import ClassVar
from uuid import uuid4

from sqlalchemy import BigInteger, DateTime, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


def new_identity() -> str:
    return str(uuid4())


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware datetime stored as naive UTC.

    Contract:
        - process_bind_param: aware values are converted to UTC; naive values
          are taken to already be UTC.
        - process_result_value: always returns an aware UTC datetime.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.replace(tzinfo=None)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class Base(DeclarativeBase):
    """
    Declarative base for all ledger ORM models.

    Guarantees:
        - id is a uuid4 string, generated client-side on INSERT.
        - int maps to BigInteger; datetime maps to UTCDateTime.
    """

    type_annotation_map: ClassVar[dict] = {
        datetime: UTCDateTime(),
        int: BigInteger,
    }

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=new_identity,
    )
