"""Ownership Transfer: verifies bounded retry, rekey-before-disable ordering and rate lookup.

Invariants:
    - Success on the first submission -> one submission, success result
    - One failed submission then success -> success after two attempts
    - Two failed submissions -> failure, disable never attempted by hand_over
    - disable_master_key without a prior successful rekey -> REKEY_REQUIRED, no ledger call
    - Exceptions inside prepare/sign/submit -> failed TransferResult, never raised
"""

import asyncio
import gc

import pytest

from vanity_custody.core.domain_types import TransferStage
from vanity_custody.core.errors import RateConversionError
from vanity_custody.services.ownership_transfer import OwnershipTransfer

from tests.services.mock_ledger import DISABLE, REKEY, FakeLedgerClient

VANITY = "rVANITYxxxxxxxxxxxxxxxxxxxxxxxxx"
SECRET = "sVanitySecret"
BUYER = "rBuyerKey"


def _transfer(ledger: FakeLedgerClient, **kwargs) -> OwnershipTransfer:
    return OwnershipTransfer(ledger, rate_issuer_account="rIssuer", **kwargs)


# ─── transfer ────────────────────────────────────────────────────

async def test_transfer_first_try():
    ledger = FakeLedgerClient()
    result = await _transfer(ledger).transfer(VANITY, SECRET, BUYER)

    assert result.success
    assert result.stage == TransferStage.REKEYED
    assert result.account == BUYER
    assert result.vanity_address == VANITY
    assert result.attempts == 1
    assert result.tx_id.startswith("TX-REKEY")
    assert ledger.submissions(REKEY) == 1


async def test_transfer_connects_lazily_once():
    ledger = FakeLedgerClient()
    service = _transfer(ledger)
    await service.transfer(VANITY, SECRET, BUYER)
    await service.transfer("rOtherVanity", SECRET, BUYER)
    assert ledger.connect_calls == 1


async def test_single_failure_is_masked_by_retry():
    ledger = FakeLedgerClient(rekey_results=["tefPAST_SEQ"])
    result = await _transfer(ledger).transfer(VANITY, SECRET, BUYER)

    assert result.success
    assert result.attempts == 2
    assert ledger.submissions(REKEY) == 2


async def test_two_failures_give_failed_result():
    ledger = FakeLedgerClient(rekey_results=["tefPAST_SEQ", "tecNO_PERMISSION"])
    result = await _transfer(ledger).transfer(VANITY, SECRET, BUYER)

    assert not result.success
    assert result.stage == TransferStage.REKEY_FAILED
    assert result.result_code == "tecNO_PERMISSION"
    assert result.error_code == "LEDGER_SUBMISSION_FAILED"
    assert result.account == VANITY
    assert ledger.submissions(REKEY) == 2


async def test_exception_becomes_failed_result():
    ledger = FakeLedgerClient(
        rekey_results=[ConnectionError("socket closed"), ConnectionError("again")],
    )
    result = await _transfer(ledger).transfer(VANITY, SECRET, BUYER)

    assert not result.success
    assert result.result_code is None
    assert "ConnectionError" in result.message
    assert "key_signed" in result.message


async def test_prepare_exception_reports_idle_stage():
    ledger = FakeLedgerClient(prepare_error=TimeoutError("no ledger"))
    result = await _transfer(ledger).transfer(VANITY, SECRET, BUYER)

    assert not result.success
    assert "idle" in result.message
    assert ledger.submissions(REKEY) == 0


async def test_max_attempts_is_configurable():
    ledger = FakeLedgerClient(rekey_results=["tefPAST_SEQ", "tefPAST_SEQ"])
    result = await _transfer(ledger, max_attempts=3).transfer(VANITY, SECRET, BUYER)
    assert result.success
    assert result.attempts == 3


async def test_secret_never_in_result():
    ledger = FakeLedgerClient(rekey_results=["tecNO_PERMISSION", "tecNO_PERMISSION"])
    result = await _transfer(ledger).transfer(VANITY, SECRET, BUYER)
    assert SECRET not in result.model_dump_json()


# ─── disable_master_key ──────────────────────────────────────────

async def test_disable_without_rekey_is_refused():
    ledger = FakeLedgerClient()
    result = await _transfer(ledger).disable_master_key(VANITY, SECRET)

    assert not result.success
    assert result.error_code == "REKEY_REQUIRED"
    assert result.stage == TransferStage.IDLE
    assert ledger.calls == []


async def test_disable_after_failed_rekey_is_refused():
    ledger = FakeLedgerClient(rekey_results=["tecNO_PERMISSION", "tecNO_PERMISSION"])
    service = _transfer(ledger)
    await service.transfer(VANITY, SECRET, BUYER)
    result = await service.disable_master_key(VANITY, SECRET)

    assert result.error_code == "REKEY_REQUIRED"
    assert ledger.submissions(DISABLE) == 0


async def test_disable_after_rekey():
    ledger = FakeLedgerClient()
    service = _transfer(ledger)
    await service.transfer(VANITY, SECRET, BUYER)
    assert service.is_rekeyed(VANITY)

    result = await service.disable_master_key(VANITY, SECRET)

    assert result.success
    assert result.stage == TransferStage.DISABLED
    assert ledger.submissions(DISABLE) == 1
    assert not service.is_rekeyed(VANITY)


async def test_disable_retries_once():
    ledger = FakeLedgerClient(disable_results=["tefPAST_SEQ"])
    service = _transfer(ledger)
    await service.transfer(VANITY, SECRET, BUYER)
    result = await service.disable_master_key(VANITY, SECRET)
    assert result.success
    assert result.attempts == 2


async def test_failed_disable_keeps_rekey_registered():
    ledger = FakeLedgerClient(disable_results=["tecFAILED", "tecFAILED"])
    service = _transfer(ledger)
    await service.transfer(VANITY, SECRET, BUYER)
    result = await service.disable_master_key(VANITY, SECRET)

    assert not result.success
    assert result.stage == TransferStage.DISABLE_FAILED
    assert service.is_rekeyed(VANITY)


# ─── hand_over ───────────────────────────────────────────────────

async def test_hand_over_runs_both_steps_in_order():
    ledger = FakeLedgerClient()
    outcome = await _transfer(ledger).hand_over(VANITY, SECRET, BUYER)

    assert outcome.success
    kinds = [kind for method, kind in ledger.calls if method == "submit"]
    assert kinds == [REKEY, DISABLE]


async def test_hand_over_skips_disable_when_rekey_fails():
    ledger = FakeLedgerClient(rekey_results=["tecNO_PERMISSION", "tecNO_PERMISSION"])
    outcome = await _transfer(ledger).hand_over(VANITY, SECRET, BUYER)

    assert not outcome.success
    assert outcome.disable is None
    assert ledger.submissions(DISABLE) == 0
    assert all(kind == REKEY for _, kind in ledger.calls)


async def test_concurrent_hand_overs_of_different_addresses():
    ledger = FakeLedgerClient()
    service = _transfer(ledger)
    outcomes = await asyncio.gather(
        *(service.hand_over(f"rVanity{i}", SECRET, BUYER) for i in range(5)),
    )
    assert all(o.success for o in outcomes)
    assert ledger.submissions(REKEY) == 5
    assert ledger.submissions(DISABLE) == 5
    assert ledger.connect_calls == 1


# ─── xrp_amount_for ──────────────────────────────────────────────

async def test_xrp_amount_uses_trustline_limit():
    ledger = FakeLedgerClient(trustlines=[{"currency": "USD", "limit": "0.5"}])
    assert await _transfer(ledger).xrp_amount_for(10) == 5_000_000
    assert ("trustlines", "rIssuer") in ledger.calls


async def test_xrp_amount_without_trustline_raises():
    ledger = FakeLedgerClient(trustlines=[{"currency": "EUR", "limit": "2"}])
    with pytest.raises(RateConversionError):
        await _transfer(ledger).xrp_amount_for(10)


async def test_xrp_amount_ledger_error_raises_rate_error():
    ledger = FakeLedgerClient(trustline_error=ConnectionError("down"))
    with pytest.raises(RateConversionError):
        await _transfer(ledger).xrp_amount_for(10)


# ─── Per-address serialization ───────────────────────────────────

class HeldSubmitLedger(FakeLedgerClient):
    """Holds the first submission until .release is set."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.first_submit_entered = asyncio.Event()
        self.release = asyncio.Event()

    async def submit(self, signed):
        if not self.first_submit_entered.is_set():
            self.first_submit_entered.set()
            await self.release.wait()
        return await super().submit(signed)


async def _let_others_run():
    for _ in range(10):
        await asyncio.sleep(0)


async def test_same_address_sequences_never_interleave():
    ledger = HeldSubmitLedger()
    service = _transfer(ledger)

    first = asyncio.create_task(service.transfer(VANITY, SECRET, BUYER))
    await ledger.first_submit_entered.wait()
    second = asyncio.create_task(service.transfer(VANITY, SECRET, "rSecondBuyer"))
    await _let_others_run()

    assert [method for method, _ in ledger.calls] == ["prepare", "sign"]

    ledger.release.set()
    results = await asyncio.gather(first, second)

    assert all(r.success for r in results)
    assert [method for method, _ in ledger.calls] == [
        "prepare", "sign", "submit", "prepare", "sign", "submit",
    ]


async def test_other_address_proceeds_while_one_is_held():
    ledger = HeldSubmitLedger()
    service = _transfer(ledger)

    held = asyncio.create_task(service.transfer(VANITY, SECRET, BUYER))
    await ledger.first_submit_entered.wait()
    other = await service.transfer("rOtherVanity", SECRET, BUYER)

    assert other.success
    assert not held.done()
    ledger.release.set()
    assert (await held).success


async def test_address_locks_released_after_use():
    ledger = FakeLedgerClient()
    service = _transfer(ledger)
    await service.hand_over(VANITY, SECRET, BUYER)
    await service.transfer("rOtherVanity", SECRET, BUYER)
    gc.collect()

    assert len(service._address_locks) == 0
