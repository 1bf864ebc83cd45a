"""Saved Search Store: vanity search terms remembered per wallet user."""

import logging
import uuid

from sqlalchemy import delete, select

from vanity_custody.core.errors import VanityError
from vanity_custody.infrastructure.database import DatabaseSessionManager
from vanity_custody.models.saved_search_term import SavedSearchTerm

logger = logging.getLogger(__name__)


class SavedSearchStore:
    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def save(
        self, application_id: str, search_term: str, wallet_user_id: str,
    ) -> bool:
        """Idempotent: saving an existing term is a no-op success."""
        table = SavedSearchTerm.__table__
        stmt = self._db.upsert_insert(table).values(
            id=uuid.uuid4(),
            application_id=application_id,
            wallet_user_id=wallet_user_id,
            search_term=search_term,
        ).on_conflict_do_nothing(
            index_elements=[
                table.c.application_id, table.c.wallet_user_id,
                table.c.search_term,
            ],
        )
        try:
            async with self._db.session() as db:
                await db.execute(stmt)
                await db.commit()
        except VanityError as e:
            logger.error(
                f"Saving search term failed: {e.message}",
                extra={"application_id": application_id},
            )
            return False
        return True

    async def delete(
        self, application_id: str, search_term: str, wallet_user_id: str,
    ) -> bool:
        """True when a saved term was removed."""
        stmt = (
            delete(SavedSearchTerm)
            .where(SavedSearchTerm.application_id == application_id)
            .where(SavedSearchTerm.wallet_user_id == wallet_user_id)
            .where(SavedSearchTerm.search_term == search_term)
        )
        try:
            async with self._db.session() as db:
                result = await db.execute(stmt)
                await db.commit()
        except VanityError as e:
            logger.error(f"Deleting search term failed: {e.message}")
            return False
        return result.rowcount > 0

    async def terms_for(
        self, application_id: str, wallet_user_id: str,
    ) -> list[str]:
        query = (
            select(SavedSearchTerm.search_term)
            .where(SavedSearchTerm.application_id == application_id)
            .where(SavedSearchTerm.wallet_user_id == wallet_user_id)
            .order_by(SavedSearchTerm.created_at.asc())
        )
        try:
            async with self._db.session() as db:
                return list((await db.execute(query)).scalars().all())
        except VanityError as e:
            logger.error(f"Listing search terms failed: {e.message}")
            return []
