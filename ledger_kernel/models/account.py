"""
Module: ledger_kernel.models.account
Responsibility: ORM persistence for the chart of accounts consulted by the
    SQL account existence service.
Architecture position: Kernel > Models. May import from db/base.py only.

Eligibility:
    A posting may target an account only if it exists, is active and is
    analytic (a leaf account). Synthetic accounts group other accounts for
    reporting and never receive postings directly.
"""

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import Base


class AccountRecord(Base):
    """Chart of accounts entry."""

    __tablename__ = "ledger_accounts"

    code: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Leaf account that can receive postings
    is_analytic: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<AccountRecord {self.code}>"
