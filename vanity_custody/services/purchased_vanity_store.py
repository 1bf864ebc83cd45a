"""Purchased Vanity Store: append-only record of which buyer owns which vanity addresses.

Invariants:
    - record_purchase is a set union: re-recording an address only refreshes updated_at
    - Reads never raise: failures degrade to [] / False and are logged
"""

import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timezone

from sqlalchemy import select

from vanity_custody.core.errors import VanityError
from vanity_custody.infrastructure.database import DatabaseSessionManager
from vanity_custody.models.purchased_vanity import PurchasedVanityAddress

logger = logging.getLogger(__name__)


class PurchasedVanityStore:
    def __init__(
        self,
        db: DatabaseSessionManager,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._db = db
        self._clock = clock

    async def record_purchase(
        self, origin: str, application_id: str,
        buyer_account: str, vanity_address: str,
    ) -> bool:
        table = PurchasedVanityAddress.__table__
        insert = self._db.upsert_insert(table).values(
            id=uuid.uuid4(),
            origin=origin,
            application_id=application_id,
            account=buyer_account,
            vanity_address=vanity_address,
            updated_at=self._clock(),
        )
        stmt = insert.on_conflict_do_update(
            index_elements=[
                table.c.origin, table.c.application_id,
                table.c.account, table.c.vanity_address,
            ],
            set_={"updated_at": insert.excluded.updated_at},
        )
        try:
            async with self._db.session() as db:
                await db.execute(stmt)
                await db.commit()
        except VanityError as e:
            logger.error(
                f"record_purchase failed: {e.message}",
                extra={"application_id": application_id, "account": buyer_account},
            )
            return False
        logger.info(
            f"Recorded purchase of {vanity_address}",
            extra={"application_id": application_id, "account": buyer_account},
        )
        return True

    async def purchased_by(self, account: str) -> list[str]:
        query = (
            select(PurchasedVanityAddress.vanity_address)
            .where(PurchasedVanityAddress.account == account)
            .order_by(PurchasedVanityAddress.updated_at.asc())
        )
        return await self._addresses(query, "purchased_by")

    async def all_purchased(self) -> list[str]:
        query = select(PurchasedVanityAddress.vanity_address).order_by(
            PurchasedVanityAddress.updated_at.asc(),
        )
        return await self._addresses(query, "all_purchased")

    async def is_already_bought(
        self, application_id: str, vanity_address: str,
    ) -> bool:
        query = (
            select(PurchasedVanityAddress.id)
            .where(PurchasedVanityAddress.application_id == application_id)
            .where(PurchasedVanityAddress.vanity_address == vanity_address)
            .limit(1)
        )
        try:
            async with self._db.session() as db:
                return (await db.execute(query)).first() is not None
        except VanityError as e:
            logger.error(f"is_already_bought failed: {e.message}")
            return False

    async def _addresses(self, query, operation: str) -> list[str]:
        try:
            async with self._db.session() as db:
                rows = (await db.execute(query)).scalars().all()
        except VanityError as e:
            logger.error(f"{operation} failed: {e.message}")
            return []
        return list(dict.fromkeys(rows))
