"""PurchasedVanity ORM: vanity addresses bought by a buyer account, per origin and application.

Invariants:
    - (origin, application_id, account, vanity_address) is unique: set-union semantics
    - updated_at stamped on every write, including re-recording a known address
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from vanity_custody.db.base import Base


class PurchasedVanityAddress(Base):
    """One purchased vanity address of a buyer."""
    __tablename__ = "purchased_vanity_addresses"
    __table_args__ = (
        UniqueConstraint(
            "origin", "application_id", "account", "vanity_address",
            name="uq_purchased_vanity",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    origin: Mapped[str] = mapped_column(String(255), nullable=False)
    application_id: Mapped[str] = mapped_column(
        String(100), nullable=False, index=True,
    )
    account: Mapped[str] = mapped_column(
        String(64), nullable=False, index=True,
    )
    vanity_address: Mapped[str] = mapped_column(String(64), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
