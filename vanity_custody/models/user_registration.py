"""UserRegistration ORM: front-end user id <-> wallet-app user id, per origin and application.

Invariants:
    - (origin, application_id, frontend_user_id, wallet_user_id) is unique
    - Rows are created once and never mutated
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from vanity_custody.db.base import Base


class UserRegistration(Base):
    """One registration of a wallet user for a front-end user."""
    __tablename__ = "user_registrations"
    __table_args__ = (
        UniqueConstraint(
            "origin", "application_id", "frontend_user_id", "wallet_user_id",
            name="uq_user_registration",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    origin: Mapped[str] = mapped_column(String(255), nullable=False)
    application_id: Mapped[str] = mapped_column(
        String(100), nullable=False, index=True,
    )
    frontend_user_id: Mapped[str] = mapped_column(
        String(100), nullable=False, index=True,
    )
    wallet_user_id: Mapped[str] = mapped_column(
        String(100), nullable=False, index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
