"""SavedSearchTerm ORM: vanity search terms a wallet user asked to be reminded of."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from vanity_custody.db.base import Base


class SavedSearchTerm(Base):
    __tablename__ = "saved_search_terms"
    __table_args__ = (
        UniqueConstraint(
            "application_id", "wallet_user_id", "search_term",
            name="uq_saved_search_term",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    application_id: Mapped[str] = mapped_column(
        String(100), nullable=False, index=True,
    )
    wallet_user_id: Mapped[str] = mapped_column(
        String(100), nullable=False, index=True,
    )
    search_term: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
