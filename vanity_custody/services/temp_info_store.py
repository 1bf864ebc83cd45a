"""Temp Info Store: typed key-value staging documents (create / read / list / delete).

Invariants:
    - Documents are validated against the store's pydantic model on save and on read
    - Saving an existing key replaces its document and refreshes created
    - Stored rows that no longer validate are skipped with a warning, never returned raw
    - Storage failures are logged; save/delete return False, reads return None / []

Design Decisions:
    - Generic over a pydantic BaseModel instead of an untyped blob: each staging flow
      gets its own TempInfoStore[Model] with a distinct key prefix
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Generic, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import delete, select

from vanity_custody.core.errors import VanityError
from vanity_custody.infrastructure.database import DatabaseSessionManager
from vanity_custody.models.temp_info import TempInfo

logger = logging.getLogger(__name__)

DocT = TypeVar("DocT", bound=BaseModel)


class TempInfoStore(Generic[DocT]):
    def __init__(
        self, db: DatabaseSessionManager, model: type[DocT], prefix: str = "",
    ):
        self._db = db
        self._model = model
        self._prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}:{key}" if self._prefix else key

    async def save(self, key: str, document: DocT) -> bool:
        table = TempInfo.__table__
        now = datetime.now(timezone.utc)
        insert = self._db.upsert_insert(table).values(
            id=uuid.uuid4(),
            info_key=self._key(key),
            document=document.model_dump(mode="json"),
            created_at=now,
        )
        stmt = insert.on_conflict_do_update(
            index_elements=[table.c.info_key],
            set_={
                "document": insert.excluded.document,
                "created_at": insert.excluded.created_at,
            },
        )
        try:
            async with self._db.session() as db:
                await db.execute(stmt)
                await db.commit()
        except VanityError as e:
            logger.error(f"Saving temp info failed: {e.message}")
            return False
        return True

    async def get(self, key: str) -> DocT | None:
        query = select(TempInfo.document).where(TempInfo.info_key == self._key(key))
        try:
            async with self._db.session() as db:
                raw = (await db.execute(query)).scalar_one_or_none()
        except VanityError as e:
            logger.error(f"Reading temp info failed: {e.message}")
            return None
        return self._parse(raw) if raw is not None else None

    async def all(self) -> list[DocT]:
        query = select(TempInfo.document).order_by(TempInfo.created_at.asc())
        if self._prefix:
            query = query.where(TempInfo.info_key.startswith(
                f"{self._prefix}:", autoescape=True,
            ))
        try:
            async with self._db.session() as db:
                rows = (await db.execute(query)).scalars().all()
        except VanityError as e:
            logger.error(f"Listing temp info failed: {e.message}")
            return []
        parsed = (self._parse(raw) for raw in rows)
        return [doc for doc in parsed if doc is not None]

    async def delete(self, key: str) -> bool:
        """True when a document was removed."""
        stmt = delete(TempInfo).where(TempInfo.info_key == self._key(key))
        try:
            async with self._db.session() as db:
                result = await db.execute(stmt)
                await db.commit()
        except VanityError as e:
            logger.error(f"Deleting temp info failed: {e.message}")
            return False
        return result.rowcount > 0

    def _parse(self, raw: dict) -> DocT | None:
        try:
            return self._model.model_validate(raw)
        except PydanticValidationError:
            logger.warning(
                f"Stored temp info does not match {self._model.__name__}",
            )
            return None
