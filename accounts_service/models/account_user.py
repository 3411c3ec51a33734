"""
AccountUser model — permission for a user to draw on an account's balance.

Accounts and users are many-to-many: a family account can be shared by
several riders, and a rider can hold several accounts. Each row is one
(account, user) pair; the unique constraint is what makes concurrent
associate calls for the same pair produce exactly one row.

The integer primary key increases with every insert, so ordering by it
lists associations in the order they were made.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from accounts_service.database import Base


class AccountUser(Base):
    __tablename__ = "account_users"

    __table_args__ = (
        UniqueConstraint("account_id", "user_id", name="uq_account_users_pair"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("accounts.id"),
        nullable=False,
        index=True,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
