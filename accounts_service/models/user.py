"""
User model — a rider who can draw on one or more accounts.

Users are created by the upstream auth service, which hashes the password
before it ever reaches us. `hashed_password` is stored as an opaque string:
it is never validated, re-hashed, or returned by any response schema.

Email is unique across all users and is the lookup key the gateway uses.

Deleting a user also removes their role grants and account associations
(see the cascades below).
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from accounts_service.database import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )

    # Opaque credential produced by the auth service
    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    first_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    last_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    phone_number: Mapped[str | None] = mapped_column(
        String(20),
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

    # --- Relationships (delete cascades only) ---
    role_links: Mapped[list["UserRole"]] = relationship(
        cascade="all, delete-orphan",
    )
    account_links: Mapped[list["AccountUser"]] = relationship(
        cascade="all, delete-orphan",
    )

    __mapper_args__ = {"version_id_col": version}
