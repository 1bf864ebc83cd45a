"""Linkage ORM: identity -> payload-set associations, one record per scope key.

Invariants:
    - (subject_kind, origin, referer, application_id, subject_id) is unique
    - A payload set is the rows of linkage_payloads sharing (linkage_id, payload_type)
    - (linkage_id, payload_type, payload_id) is unique: no duplicate payload in a set
    - wallet_user_id is only populated for subject_kind == ledger_account
    - updated_at is stamped on every payload write

Design Decisions:
    - Set-valued fields as a child table: "add to set" becomes INSERT ... ON CONFLICT DO NOTHING
    - referer stored as "" rather than NULL so the unique key always applies
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from vanity_custody.db.base import Base


class LinkageRecord(Base):
    """Scope key (origin, referer, application, subject) with its last update time."""
    __tablename__ = "linkage_records"
    __table_args__ = (
        UniqueConstraint(
            "subject_kind", "origin", "referer", "application_id", "subject_id",
            name="uq_linkage_scope",
        ),
        Index("ix_linkage_subject", "application_id", "subject_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    subject_kind: Mapped[str] = mapped_column(String(20), nullable=False)
    origin: Mapped[str] = mapped_column(String(255), nullable=False)
    referer: Mapped[str] = mapped_column(
        String(500), nullable=False, default="",
    )
    application_id: Mapped[str] = mapped_column(String(100), nullable=False)
    subject_id: Mapped[str] = mapped_column(String(100), nullable=False)
    wallet_user_id: Mapped[str | None] = mapped_column(
        String(100), nullable=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    payloads: Mapped[list["LinkagePayload"]] = relationship(
        "LinkagePayload", back_populates="linkage",
        cascade="all, delete-orphan", passive_deletes=True,
    )


class LinkagePayload(Base):
    """One payload id inside the named set of a linkage record."""
    __tablename__ = "linkage_payloads"
    __table_args__ = (
        UniqueConstraint(
            "linkage_id", "payload_type", "payload_id",
            name="uq_linkage_payload",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    linkage_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("linkage_records.id", ondelete="CASCADE"),
        nullable=False,
    )
    payload_type: Mapped[str] = mapped_column(String(30), nullable=False)
    payload_id: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    linkage: Mapped["LinkageRecord"] = relationship(
        "LinkageRecord", back_populates="payloads",
    )
