"""
Account model — a prepaid balance linked to an external payment account.

Each account has:
  - A reference to the Mercado Pago account it is topped up from
  - A balance in integer cents (loaded by top-ups, deducted by trips)
  - A status: ACTIVE, or CANCELLED with the moment of cancellation

Balance management:
  `balance_cents` stores the balance as an integer (e.g., $10.50 = 1050) so
  arithmetic is exact. The service API works in Decimal; `balance` converts
  on read. A CHECK constraint keeps the balance non-negative at the database
  level as well as in the service layer.

Concurrency:
  `version` is the mapper's version_id_col. Every UPDATE is guarded by the
  version the row was read at, which is what makes LedgerStore.update_if_match
  a compare-and-swap.

Cancellation vs deletion:
  Cancelling only flips status (the row and its history stay). Deleting
  removes the row and, through the cascade below, its user associations.
"""

import enum
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import BigInteger, String, Integer, DateTime, Enum, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from accounts_service.database import Base
from accounts_service.money import from_cents


class AccountStatus(str, enum.Enum):
    """Lifecycle state of an account. Stored as its string value."""
    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"


class Account(Base):
    __tablename__ = "accounts"

    __table_args__ = (
        CheckConstraint(
            "balance_cents >= 0",
            name="ck_accounts_non_negative_balance",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    # External payment-account reference the balance is loaded from
    mercado_pago_account_id: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
    )

    balance_cents: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )

    status: Mapped[AccountStatus] = mapped_column(
        Enum(AccountStatus),
        nullable=False,
        default=AccountStatus.ACTIVE,
        index=True,
    )

    # Set exactly when status is CANCELLED
    cancelled_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    # Audit timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # --- Relationships ---
    # Only used for delete cascades; never navigated
    user_links: Mapped[list["AccountUser"]] = relationship(
        cascade="all, delete-orphan",
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def balance(self) -> Decimal:
        return from_cents(self.balance_cents)

    @property
    def is_active(self) -> bool:
        return self.status == AccountStatus.ACTIVE
