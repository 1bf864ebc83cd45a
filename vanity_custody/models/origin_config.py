"""Origin Config ORM: per-application allowed origins, return-URL rules and API secrets.

Invariants:
    - application_id is unique in both tables
    - api_secret is unique
    - origin is a comma-joined allow-list; return_urls is a JSON list of
      {"from", "to_web", "to_app"} rules

Design Decisions:
    - Read in bulk by ConfigCache only; the core never writes these tables
    - Secrets in their own table so the origin snapshot can be logged safely
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from vanity_custody.db.base import Base


class AllowedOrigin(Base):
    """Allowed origins and return-URL rules of one client application."""
    __tablename__ = "allowed_origins"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    application_id: Mapped[str] = mapped_column(
        String(100), nullable=False, unique=True,
    )
    origin: Mapped[str] = mapped_column(Text, nullable=False, default="")
    return_urls: Mapped[list] = mapped_column(
        JSON, nullable=False, default=list,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )


class ApplicationApiKey(Base):
    """Wallet-app API secret of one client application."""
    __tablename__ = "application_api_keys"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    application_id: Mapped[str] = mapped_column(
        String(100), nullable=False, unique=True,
    )
    api_secret: Mapped[str] = mapped_column(
        String(200), nullable=False, unique=True,
    )
