"""Ownership Transfer: hand a purchased vanity address to its buyer in two ledger steps.

Invariants:
    - Step 1 (transfer): SetRegularKey(vanity -> buyer key), prepare -> sign -> submit,
      at most max_attempts times (default 2: one retry)
    - Step 2 (disable_master_key): AccountSet(asfDisableMaster), same bounded retry
    - Step 2 is refused (REKEY_REQUIRED, no ledger call) unless step 1 succeeded for
      that address in this process; once the master key is off, the vanity secret can
      no longer repair a failed rekey
    - Neither step raises: exceptions and non-tesSUCCESS result codes both become a
      failed TransferResult
    - Calls for the same address are serialized by a per-address asyncio.Lock;
      different addresses interleave freely on the shared ledger connection
    - Secrets are never logged or returned

Design Decisions:
    - Explicit attempt() helper instead of recursive retry; the rekey -> disable order is
      plain control flow in hand_over()
    - Rekeyed addresses tracked in memory only: a restart requires the caller to rerun
      transfer (idempotent at the ledger) before disabling. An entry lives from a
      successful transfer until the matching successful disable
    - Per-address locks held weakly: an entry disappears once no call holds or
      waits on it
"""

import asyncio
import logging
from collections.abc import Callable
from weakref import WeakValueDictionary

from vanity_custody.core.domain_types import TransferStage
from vanity_custody.core.errors import (
    LedgerSubmissionError, OrderingViolationError, RateConversionError,
)
from vanity_custody.core.rate_conversion import to_native_units
from vanity_custody.core.repository_protocols import LedgerClient
from vanity_custody.infrastructure.retry import attempt
from vanity_custody.schemas.ledger import (
    HandOverResult, SettingsChange, SubmitResult, TransferResult,
)

logger = logging.getLogger(__name__)

_REKEY_STAGES = (
    TransferStage.KEY_PREPARED, TransferStage.KEY_SIGNED,
    TransferStage.KEY_SUBMITTED, TransferStage.REKEYED, TransferStage.REKEY_FAILED,
)
_DISABLE_STAGES = (
    TransferStage.DISABLE_PREPARED, TransferStage.DISABLE_SIGNED,
    TransferStage.DISABLE_SUBMITTED, TransferStage.DISABLED,
    TransferStage.DISABLE_FAILED,
)


class OwnershipTransfer:
    """Rekey + master-key disable of vanity accounts, with retry-once semantics."""

    def __init__(
        self,
        ledger: LedgerClient,
        max_attempts: int = 2,
        rate_issuer_account: str = "",
        rate_currency: str = "USD",
        native_unit_decimals: int = 6,
    ):
        self._ledger = ledger
        self._max_attempts = max_attempts
        self._rate_issuer_account = rate_issuer_account
        self._rate_currency = rate_currency
        self._native_unit_decimals = native_unit_decimals
        self._connect_lock = asyncio.Lock()
        self._address_locks: WeakValueDictionary[str, asyncio.Lock] = (
            WeakValueDictionary()
        )
        self._rekeyed: dict[str, str] = {}

    def is_rekeyed(self, vanity_address: str) -> bool:
        return vanity_address in self._rekeyed

    async def transfer(
        self, vanity_address: str, vanity_secret: str, buyer_regular_key: str,
    ) -> TransferResult:
        """Point the vanity account's regular key at the buyer."""
        async with self._lock_for(vanity_address):
            result = await self._submit_settings(
                vanity_address, vanity_secret,
                lambda: SettingsChange(regular_key=buyer_regular_key),
                _REKEY_STAGES,
            )
            if result.success:
                self._rekeyed[vanity_address] = buyer_regular_key
                result.account = buyer_regular_key
            return result

    async def disable_master_key(
        self, vanity_address: str, vanity_secret: str,
    ) -> TransferResult:
        """Disable the vanity account's master key; requires a prior successful transfer."""
        async with self._lock_for(vanity_address):
            if vanity_address not in self._rekeyed:
                error = OrderingViolationError(vanity_address)
                logger.error(
                    error.message,
                    extra={"account": vanity_address, "error_code": error.code},
                )
                return TransferResult(
                    success=False,
                    stage=TransferStage.IDLE,
                    vanity_address=vanity_address,
                    account=vanity_address,
                    error_code=error.code,
                    message=error.message,
                )
            result = await self._submit_settings(
                vanity_address, vanity_secret,
                lambda: SettingsChange(disable_master=True),
                _DISABLE_STAGES,
            )
            if result.success:
                self._rekeyed.pop(vanity_address, None)
            return result

    async def hand_over(
        self, vanity_address: str, vanity_secret: str, buyer_regular_key: str,
    ) -> HandOverResult:
        """transfer, then disable_master_key only if the transfer succeeded."""
        rekey = await self.transfer(vanity_address, vanity_secret, buyer_regular_key)
        if not rekey.success:
            return HandOverResult(rekey=rekey)
        disable = await self.disable_master_key(vanity_address, vanity_secret)
        return HandOverResult(rekey=rekey, disable=disable)

    async def xrp_amount_for(self, amount) -> int:
        """Native smallest-unit amount for `amount` using the issuer trustline limit as rate."""
        try:
            await self._ensure_connected()
            lines = await self._ledger.get_trustlines(
                self._rate_issuer_account, self._rate_currency,
            )
        except Exception as e:
            logger.error(f"Reading exchange rate trustline failed: {e}")
            raise RateConversionError("Exchange rate unavailable")
        rate = lines[0].get("limit") if lines else None
        return to_native_units(amount, rate, self._native_unit_decimals)

    # ─── Internals ───────────────────────────────────────────────

    def _lock_for(self, vanity_address: str) -> asyncio.Lock:
        lock = self._address_locks.get(vanity_address)
        if lock is None:
            lock = asyncio.Lock()
            self._address_locks[vanity_address] = lock
        return lock

    async def _ensure_connected(self) -> None:
        if self._ledger.is_connected():
            return
        async with self._connect_lock:
            if not self._ledger.is_connected():
                await self._ledger.connect()

    async def _submit_settings(
        self,
        vanity_address: str,
        vanity_secret: str,
        build_change: Callable[[], SettingsChange],
        stages: tuple[TransferStage, ...],
    ) -> TransferResult:
        prepared_stage, signed_stage, submitted_stage, done_stage, failed_stage = stages
        reached = TransferStage.IDLE

        async def prepare_sign_submit(attempt_number: int) -> SubmitResult:
            nonlocal reached
            reached = TransferStage.IDLE
            await self._ensure_connected()
            prepared = await self._ledger.prepare_settings(
                vanity_address, build_change(),
            )
            reached = prepared_stage
            signed = self._ledger.sign(prepared, vanity_secret)
            reached = signed_stage
            result = await self._ledger.submit(signed)
            reached = submitted_stage
            logger.info(
                f"{done_stage.value} submission result {result.result_code}",
                extra={
                    "account": vanity_address,
                    "attempt": attempt_number,
                    "result_code": result.result_code,
                },
            )
            return result

        outcome = await attempt(
            prepare_sign_submit,
            succeeded=lambda r: r.succeeded,
            max_attempts=self._max_attempts,
            label=f"{done_stage.value} of {vanity_address}",
        )

        if outcome.succeeded:
            return TransferResult(
                success=True,
                stage=done_stage,
                vanity_address=vanity_address,
                account=vanity_address,
                tx_id=outcome.result.tx_id,
                result_code=outcome.result.result_code,
                attempts=outcome.attempts,
            )

        result_code = outcome.result.result_code if outcome.result else None
        detail = (
            f"result {result_code}" if result_code
            else f"{type(outcome.error).__name__} after {reached.value}"
        )
        failure = LedgerSubmissionError(
            f"{failed_stage.value}: {detail} ({outcome.attempts} attempts)",
            result_code=result_code,
        )
        logger.error(
            failure.message,
            extra={
                "account": vanity_address,
                "error_code": failure.code,
                "result_code": result_code,
            },
        )
        return TransferResult(
            success=False,
            stage=failed_stage,
            vanity_address=vanity_address,
            account=vanity_address,
            result_code=result_code,
            error_code=failure.code,
            message=failure.message,
            attempts=outcome.attempts,
        )
