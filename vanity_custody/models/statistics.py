"""Statistics ORM: monotonically increasing counters per (origin, application, type, key).

Invariants:
    - (origin, application_id, stat_type, stat_key) is unique
    - counter only ever grows, via an atomic ON CONFLICT DO UPDATE increment
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Integer, DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from vanity_custody.db.base import Base


class StatisticCounter(Base):
    """One named counter of a statistics record."""
    __tablename__ = "statistic_counters"
    __table_args__ = (
        UniqueConstraint(
            "origin", "application_id", "stat_type", "stat_key",
            name="uq_statistic_counter",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    origin: Mapped[str] = mapped_column(String(255), nullable=False)
    application_id: Mapped[str] = mapped_column(String(100), nullable=False)
    stat_type: Mapped[str] = mapped_column(
        String(30), nullable=False, default="transactions",
    )
    stat_key: Mapped[str] = mapped_column(String(50), nullable=False)
    counter: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
