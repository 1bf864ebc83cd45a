"""TempInfo ORM: short-lived staging documents, consumed and deleted by the HTTP layer.

Invariants:
    - info_key is unique
    - document is opaque JSON; its shape is owned by the TempInfoStore type parameter
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from vanity_custody.db.base import Base


class TempInfo(Base):
    __tablename__ = "temp_info"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    info_key: Mapped[str] = mapped_column(
        String(200), nullable=False, unique=True,
    )
    document: Mapped[dict] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
