"""Config Cache: read-through, process-wide snapshot of origin configs and API secrets.

Invariants:
    - The first call after start or reset() performs ONE full scan of both config tables
    - Every later call reads the in-memory snapshot, no database round-trip
    - The snapshot is replaced by a single reference assignment: readers see the old
      or the new snapshot, never a mix
    - Backing-store failures never propagate: logged, then None / [] is returned and
      the next call tries to load again

Design Decisions:
    - Manual invalidation only (reset); no TTL, no write-through
    - Loading serialized by an asyncio.Lock so concurrent cold reads share one scan;
      warm reads never touch the lock
    - reset() bumps a generation counter; a scan that started before the bump is
      discarded and repeated, never installed
"""

import asyncio
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select

from vanity_custody.core.errors import VanityError
from vanity_custody.core import origin_matching
from vanity_custody.infrastructure.database import DatabaseSessionManager
from vanity_custody.models.origin_config import AllowedOrigin, ApplicationApiKey
from vanity_custody.schemas.origin import OriginConfig, ReturnUrlRule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfigSnapshot:
    origins: tuple[OriginConfig, ...] = ()
    api_secrets: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({}),
    )


class ConfigCache:
    """Origin resolution, return URLs and API secrets from one cached snapshot."""

    def __init__(self, db: DatabaseSessionManager):
        self._db = db
        self._snapshot: ConfigSnapshot | None = None
        self._load_lock = asyncio.Lock()
        self._generation = 0
        self.load_count = 0

    def reset(self) -> None:
        self._generation += 1
        self._snapshot = None
        logger.info("Config cache has been reset")

    async def all_origins(self) -> list[OriginConfig]:
        snapshot = await self._safe_snapshot("all_origins")
        return list(snapshot.origins) if snapshot else []

    async def by_application_id(self, application_id: str) -> OriginConfig | None:
        snapshot = await self._safe_snapshot("by_application_id")
        if snapshot is None:
            return None
        return origin_matching.find_by_application_id(
            snapshot.origins, application_id,
        )

    async def application_id_for_origin(self, origin: str) -> str | None:
        snapshot = await self._safe_snapshot("application_id_for_origin")
        if snapshot is None:
            return None
        return origin_matching.application_id_for_origin(snapshot.origins, origin)

    async def allowed_origin_strings(self) -> list[str]:
        snapshot = await self._safe_snapshot("allowed_origin_strings")
        if snapshot is None:
            return []
        return origin_matching.all_allowed_origins(snapshot.origins)

    async def return_url(
        self, origin: str, application_id: str, referer: str, is_web: bool,
    ) -> str | None:
        snapshot = await self._safe_snapshot("return_url")
        if snapshot is None:
            return None
        return origin_matching.return_url_for(
            snapshot.origins, origin, application_id, referer, is_web,
        )

    async def api_secret(self, application_id: str) -> str | None:
        snapshot = await self._safe_snapshot("api_secret")
        if snapshot is None:
            return None
        return snapshot.api_secrets.get(application_id) or None

    # ─── Loading ─────────────────────────────────────────────────

    async def _safe_snapshot(self, operation: str) -> ConfigSnapshot | None:
        try:
            return await self._current()
        except VanityError as e:
            logger.error(
                f"Config lookup {operation} failed: {e.message}",
                extra={"error_code": e.code},
            )
            return None

    async def _current(self) -> ConfigSnapshot:
        snapshot = self._snapshot
        if snapshot is not None:
            return snapshot
        async with self._load_lock:
            while self._snapshot is None:
                generation = self._generation
                loaded = await self._load()
                # a reset() during the scan invalidates it: scan again
                if generation == self._generation:
                    self._snapshot = loaded
            return self._snapshot

    async def _load(self) -> ConfigSnapshot:
        async with self._db.session() as db:
            origin_rows = (await db.execute(select(AllowedOrigin))).scalars().all()
            key_rows = (await db.execute(select(ApplicationApiKey))).scalars().all()
        self.load_count += 1
        logger.info(
            f"Config cache loaded {len(origin_rows)} origin configs "
            f"and {len(key_rows)} API keys from database",
        )
        return ConfigSnapshot(
            origins=tuple(_to_origin_config(row) for row in origin_rows),
            api_secrets=MappingProxyType(
                {row.application_id: row.api_secret for row in key_rows},
            ),
        )


def _to_origin_config(row: AllowedOrigin) -> OriginConfig:
    rules: list[ReturnUrlRule] = []
    for raw in row.return_urls or []:
        try:
            rules.append(ReturnUrlRule.model_validate(raw))
        except PydanticValidationError:
            logger.warning(
                f"Skipping malformed return URL rule of {row.application_id}",
                extra={"application_id": row.application_id},
            )
    return OriginConfig(
        application_id=row.application_id,
        origin=row.origin or "",
        return_urls=tuple(rules),
    )
