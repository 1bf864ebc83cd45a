"""Statistics Recorder: per-(origin, application) transaction-type counters.

Invariants:
    - increment is one atomic INSERT ... ON CONFLICT DO UPDATE counter = counter + 1
    - Counter names are trimmed and lower-cased
    - Failures are logged; increment returns False, totals returns {}
"""

import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timezone

from sqlalchemy import select

from vanity_custody.core.errors import ValidationError, VanityError
from vanity_custody.infrastructure.database import DatabaseSessionManager
from vanity_custody.models.statistics import StatisticCounter

logger = logging.getLogger(__name__)

TRANSACTIONS = "transactions"


class StatisticsRecorder:
    def __init__(
        self,
        db: DatabaseSessionManager,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._db = db
        self._clock = clock

    async def increment(
        self, origin: str, application_id: str, transaction_type: str,
    ) -> bool:
        key = (transaction_type or "").strip().lower()
        if not key:
            raise ValidationError(
                "transaction_type must not be blank", "transaction_type",
            )
        table = StatisticCounter.__table__
        now = self._clock()
        insert = self._db.upsert_insert(table).values(
            id=uuid.uuid4(),
            origin=origin,
            application_id=application_id,
            stat_type=TRANSACTIONS,
            stat_key=key,
            counter=1,
            updated_at=now,
        )
        stmt = insert.on_conflict_do_update(
            index_elements=[
                table.c.origin, table.c.application_id,
                table.c.stat_type, table.c.stat_key,
            ],
            set_={
                "counter": table.c.counter + 1,
                "updated_at": insert.excluded.updated_at,
            },
        )
        try:
            async with self._db.session() as db:
                await db.execute(stmt)
                await db.commit()
        except VanityError as e:
            logger.error(
                f"Statistics increment failed: {e.message}",
                extra={"application_id": application_id, "origin": origin},
            )
            return False
        return True

    async def totals(self, origin: str, application_id: str) -> dict[str, int]:
        query = (
            select(StatisticCounter.stat_key, StatisticCounter.counter)
            .where(StatisticCounter.origin == origin)
            .where(StatisticCounter.application_id == application_id)
            .where(StatisticCounter.stat_type == TRANSACTIONS)
        )
        try:
            async with self._db.session() as db:
                rows = (await db.execute(query)).all()
        except VanityError as e:
            logger.error(
                f"Statistics totals failed: {e.message}",
                extra={"application_id": application_id, "origin": origin},
            )
            return {}
        return {key: counter for key, counter in rows}
