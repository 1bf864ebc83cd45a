"""Linkage Store: identity -> payload-set associations with idempotent, atomic upserts.

Invariants:
    - One linkage record per ScopeKey; every write is an upsert that merges, never replaces
    - add_payload is two single-statement upserts in one transaction: record upsert
      (ON CONFLICT DO UPDATE updated_at) then payload insert (ON CONFLICT DO NOTHING).
      No read-modify-write, so concurrent writers on one scope never lose an id
    - Payload types are normalized through PayloadCategory.from_tag (trim, lower, OTHERS)
    - A known wallet user id on a ledger-account record is never overwritten by None
    - Lookup misses return empty sets / lists / None; storage failures are logged and
      degrade to the same empty values (writes return False)

Design Decisions:
    - Registration uses INSERT ... ON CONFLICT DO NOTHING on the full tuple: a duplicate
      registration is a silent success
    - Timestamps come from an injectable clock so "most recent" ordering is testable
"""

import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timezone

from sqlalchemy import func, select

from vanity_custody.core.domain_types import (
    PayloadCategory, ScopeKey, SubjectKind,
)
from vanity_custody.core.errors import ValidationError, VanityError
from vanity_custody.infrastructure.database import DatabaseSessionManager
from vanity_custody.models.linkage import LinkagePayload, LinkageRecord
from vanity_custody.models.user_registration import UserRegistration

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LinkageStore:
    """Persistence for user registrations and identity/payload linkage."""

    def __init__(
        self,
        db: DatabaseSessionManager,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._db = db
        self._clock = clock

    # ─── Registrations ───────────────────────────────────────────

    async def register_user(
        self, origin: str, application_id: str,
        frontend_user_id: str, wallet_user_id: str,
    ) -> bool:
        """Insert-if-absent on the full tuple. Returns False only on storage failure."""
        table = UserRegistration.__table__
        stmt = self._db.upsert_insert(table).values(
            id=uuid.uuid4(),
            origin=origin,
            application_id=application_id,
            frontend_user_id=frontend_user_id,
            wallet_user_id=wallet_user_id,
            created_at=self._clock(),
        ).on_conflict_do_nothing(
            index_elements=[
                table.c.origin, table.c.application_id,
                table.c.frontend_user_id, table.c.wallet_user_id,
            ],
        )
        try:
            async with self._db.session() as db:
                result = await db.execute(stmt)
                await db.commit()
        except VanityError as e:
            logger.error(
                f"register_user failed: {e.message}",
                extra={"application_id": application_id, "origin": origin},
            )
            return False
        if result.rowcount == 0:
            logger.debug(
                "register_user: registration already present",
                extra={"application_id": application_id},
            )
        return True

    # ─── Writes ──────────────────────────────────────────────────

    async def add_payload(
        self,
        scope: ScopeKey,
        payload_type: str | PayloadCategory | None,
        payload_id: str,
        *,
        wallet_user_id: str | None = None,
    ) -> bool:
        """Union payload_id into the scope's set for payload_type, creating the record if absent."""
        if not payload_id or not payload_id.strip():
            raise ValidationError("payload_id must not be blank", "payload_id")
        if not scope.subject_id:
            raise ValidationError("subject_id must not be blank", "subject_id")

        category = PayloadCategory.from_tag(payload_type)
        now = self._clock()
        records = LinkageRecord.__table__
        payloads = LinkagePayload.__table__

        record_insert = self._db.upsert_insert(records).values(
            id=uuid.uuid4(),
            subject_kind=scope.kind.value,
            origin=scope.origin,
            referer=scope.referer or "",
            application_id=scope.application_id,
            subject_id=scope.subject_id,
            wallet_user_id=wallet_user_id or None,
            updated_at=now,
        )
        record_upsert = record_insert.on_conflict_do_update(
            index_elements=[
                records.c.subject_kind, records.c.origin, records.c.referer,
                records.c.application_id, records.c.subject_id,
            ],
            set_={
                "updated_at": record_insert.excluded.updated_at,
                "wallet_user_id": func.coalesce(
                    record_insert.excluded.wallet_user_id,
                    records.c.wallet_user_id,
                ),
            },
        ).returning(records.c.id)

        try:
            async with self._db.session() as db:
                linkage_id = (await db.execute(record_upsert)).scalar_one()
                await db.execute(
                    self._db.upsert_insert(payloads).values(
                        id=uuid.uuid4(),
                        linkage_id=linkage_id,
                        payload_type=category.value,
                        payload_id=payload_id,
                        created_at=now,
                    ).on_conflict_do_nothing(
                        index_elements=[
                            payloads.c.linkage_id,
                            payloads.c.payload_type,
                            payloads.c.payload_id,
                        ],
                    ),
                )
                await db.commit()
        except VanityError as e:
            logger.error(
                f"add_payload failed: {e.message}",
                extra={
                    "application_id": scope.application_id,
                    "origin": scope.origin,
                    "payload_type": category.value,
                },
            )
            return False
        return True

    async def add_payload_for_frontend_user(
        self, origin: str, referer: str, application_id: str,
        frontend_user_id: str, payload_id: str, payload_type: str | None,
    ) -> bool:
        scope = ScopeKey(
            SubjectKind.FRONTEND_USER, origin, referer, application_id,
            frontend_user_id,
        )
        return await self.add_payload(scope, payload_type, payload_id)

    async def add_payload_for_wallet_user(
        self, origin: str, referer: str, application_id: str,
        wallet_user_id: str, payload_id: str, payload_type: str | None,
    ) -> bool:
        scope = ScopeKey(
            SubjectKind.WALLET_USER, origin, referer, application_id,
            wallet_user_id,
        )
        return await self.add_payload(scope, payload_type, payload_id)

    async def add_payload_for_account(
        self, origin: str, referer: str, application_id: str, account: str,
        wallet_user_id: str | None, payload_id: str, payload_type: str | None,
    ) -> bool:
        """Ledger-account variant; falls back to the account's most recent wallet user."""
        if not wallet_user_id:
            wallet_user_id = await self.most_recent_wallet_user_for_account(
                application_id, account,
            )
        scope = ScopeKey(
            SubjectKind.LEDGER_ACCOUNT, origin, referer, application_id, account,
        )
        return await self.add_payload(
            scope, payload_type, payload_id, wallet_user_id=wallet_user_id,
        )

    # ─── Reads ───────────────────────────────────────────────────

    async def payloads_for(
        self, scope: ScopeKey, payload_type: str | PayloadCategory | None,
    ) -> set[str]:
        """Exact scope-key lookup of one payload set."""
        category = PayloadCategory.from_tag(payload_type)
        query = (
            select(LinkagePayload.payload_id)
            .join(LinkageRecord)
            .where(LinkageRecord.subject_kind == scope.kind.value)
            .where(LinkageRecord.origin == scope.origin)
            .where(LinkageRecord.referer == (scope.referer or ""))
            .where(LinkageRecord.application_id == scope.application_id)
            .where(LinkageRecord.subject_id == scope.subject_id)
            .where(LinkagePayload.payload_type == category.value)
        )
        return set(await self._fetch_ids(query, "payloads_for"))

    async def payloads_for_subject_across_referers(
        self,
        application_id: str,
        subject_id: str,
        payload_type: str | PayloadCategory | None,
        kind: SubjectKind = SubjectKind.WALLET_USER,
    ) -> set[str]:
        """Union over every referer (and origin) the subject used within one application."""
        category = PayloadCategory.from_tag(payload_type)
        query = (
            select(LinkagePayload.payload_id)
            .join(LinkageRecord)
            .where(LinkageRecord.subject_kind == kind.value)
            .where(LinkageRecord.application_id == application_id)
            .where(LinkageRecord.subject_id == subject_id)
            .where(LinkagePayload.payload_type == category.value)
        )
        return set(
            await self._fetch_ids(query, "payloads_for_subject_across_referers"),
        )

    async def payloads_for_account_and_referer(
        self, referer: str, application_id: str, account: str,
        payload_type: str | PayloadCategory | None,
    ) -> set[str]:
        category = PayloadCategory.from_tag(payload_type)
        query = (
            select(LinkagePayload.payload_id)
            .join(LinkageRecord)
            .where(LinkageRecord.subject_kind == SubjectKind.LEDGER_ACCOUNT.value)
            .where(LinkageRecord.referer == (referer or ""))
            .where(LinkageRecord.application_id == application_id)
            .where(LinkageRecord.subject_id == account)
            .where(LinkagePayload.payload_type == category.value)
        )
        return set(
            await self._fetch_ids(query, "payloads_for_account_and_referer"),
        )

    async def payloads_for_account_across_referers(
        self, application_id: str, account: str,
        payload_type: str | PayloadCategory | None,
    ) -> list[str]:
        """Payload ids of an account across referers, oldest record first."""
        category = PayloadCategory.from_tag(payload_type)
        query = (
            select(LinkagePayload.payload_id)
            .join(LinkageRecord)
            .where(LinkageRecord.subject_kind == SubjectKind.LEDGER_ACCOUNT.value)
            .where(LinkageRecord.application_id == application_id)
            .where(LinkageRecord.subject_id == account)
            .where(LinkagePayload.payload_type == category.value)
            .order_by(
                LinkageRecord.updated_at.asc(),
                LinkagePayload.created_at.asc(),
            )
        )
        ids = await self._fetch_ids(
            query, "payloads_for_account_across_referers",
        )
        return list(dict.fromkeys(ids))

    async def signin_payloads_ordered_by_time(
        self, application_id: str, account: str,
    ) -> list[str]:
        return await self.payloads_for_account_across_referers(
            application_id, account, PayloadCategory.SIGNIN,
        )

    async def most_recent_wallet_user_for_account(
        self, application_id: str, account: str,
    ) -> str | None:
        """Wallet user id of the latest-updated account record that has one."""
        query = (
            select(LinkageRecord.wallet_user_id)
            .where(LinkageRecord.subject_kind == SubjectKind.LEDGER_ACCOUNT.value)
            .where(LinkageRecord.application_id == application_id)
            .where(LinkageRecord.subject_id == account)
            .where(LinkageRecord.wallet_user_id.is_not(None))
            .order_by(LinkageRecord.updated_at.desc())
            .limit(1)
        )
        try:
            async with self._db.session() as db:
                return (await db.execute(query)).scalar_one_or_none()
        except VanityError as e:
            logger.error(
                f"most_recent_wallet_user_for_account failed: {e.message}",
                extra={"application_id": application_id, "account": account},
            )
            return None

    async def _fetch_ids(self, query, operation: str) -> list[str]:
        try:
            async with self._db.session() as db:
                return list((await db.execute(query)).scalars().all())
        except VanityError as e:
            logger.error(f"{operation} failed: {e.message}")
            return []
