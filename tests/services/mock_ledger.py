"""Fake Ledger Client: scripted LedgerClient for OwnershipTransfer tests.

Invariants:
    - submit() pops the next scripted outcome per settings kind (rekey / disable);
      an Exception instance in the script is raised instead of returned
    - Once a script is exhausted, submit() returns tesSUCCESS
    - Every call is recorded in .calls as (method, kind) so tests can assert
      that a step was never attempted

Design Decisions:
    - Structural fake (no Protocol inheritance), like the production adapter
    - sign() derives a fake blob from the prepared transaction and never stores the secret
"""

from vanity_custody.core.domain_types import LEDGER_SUCCESS_CODE
from vanity_custody.schemas.ledger import (
    PreparedTransaction, SettingsChange, SignedTransaction, SubmitResult,
)

REKEY = "rekey"
DISABLE = "disable"


def _kind(change: SettingsChange) -> str:
    return DISABLE if change.disable_master else REKEY


class FakeLedgerClient:
    def __init__(
        self,
        rekey_results: list | None = None,
        disable_results: list | None = None,
        trustlines: list[dict] | None = None,
        trustline_error: Exception | None = None,
        prepare_error: Exception | None = None,
    ):
        self.scripts = {
            REKEY: list(rekey_results or []),
            DISABLE: list(disable_results or []),
        }
        self.trustlines = trustlines or []
        self.trustline_error = trustline_error
        self.prepare_error = prepare_error
        self.connected = False
        self.connect_calls = 0
        self.calls: list[tuple[str, str]] = []

    def is_connected(self) -> bool:
        return self.connected

    async def connect(self) -> None:
        self.connect_calls += 1
        self.connected = True

    async def disconnect(self) -> None:
        self.connected = False

    async def prepare_settings(
        self, account: str, settings: SettingsChange,
    ) -> PreparedTransaction:
        kind = _kind(settings)
        self.calls.append(("prepare", kind))
        if self.prepare_error is not None:
            raise self.prepare_error
        return PreparedTransaction(
            account=account,
            tx_json={"Account": account, "kind": kind, "Sequence": len(self.calls)},
        )

    def sign(self, prepared: PreparedTransaction, secret: str) -> SignedTransaction:
        kind = prepared.tx_json["kind"]
        self.calls.append(("sign", kind))
        return SignedTransaction(
            tx_blob=f"blob-{kind}-{prepared.tx_json['Sequence']}",
            tx_id=f"TX-{kind.upper()}-{prepared.tx_json['Sequence']}",
        )

    async def submit(self, signed: SignedTransaction) -> SubmitResult:
        kind = signed.tx_blob.split("-")[1]
        self.calls.append(("submit", kind))
        script = self.scripts[kind]
        outcome = script.pop(0) if script else LEDGER_SUCCESS_CODE
        if isinstance(outcome, Exception):
            raise outcome
        return SubmitResult(result_code=outcome, tx_id=signed.tx_id)

    async def get_trustlines(
        self, account: str, currency: str | None = None,
    ) -> list[dict]:
        self.calls.append(("trustlines", account))
        if self.trustline_error is not None:
            raise self.trustline_error
        return [
            line for line in self.trustlines
            if currency is None or line.get("currency") == currency
        ]

    def submissions(self, kind: str) -> int:
        return sum(1 for method, k in self.calls if method == "submit" and k == kind)
