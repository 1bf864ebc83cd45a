"""XRPL Ledger Client: xrpl-py adapter implementing the LedgerClient protocol.

Invariants:
    - regular_key changes become SetRegularKey; disable_master becomes AccountSet(asfDisableMaster)
    - prepare_settings autofills Fee / Sequence / LastLedgerSequence from the network
    - sign is local (no IO); the secret never leaves this module and is never logged
    - submit sends the signed blob once and reports the preliminary engine result

Design Decisions:
    - Wire protocol, signing and fee logic delegated entirely to xrpl-py
    - One shared websocket connection per process; OwnershipTransfer serializes connect()
"""

import logging

from xrpl.asyncio.clients import AsyncWebsocketClient
from xrpl.asyncio.transaction import autofill
from xrpl.constants import XRPLException
from xrpl.core.binarycodec import encode
from xrpl.models.requests import AccountLines, SubmitOnly
from xrpl.models.transactions import AccountSet, AccountSetAsfFlag, SetRegularKey
from xrpl.models.transactions.transaction import Transaction
from xrpl.transaction import sign as xrpl_sign
from xrpl.wallet import Wallet

from vanity_custody.core.errors import UpstreamUnavailableError
from vanity_custody.schemas.ledger import (
    PreparedTransaction, SettingsChange, SignedTransaction, SubmitResult,
)

logger = logging.getLogger(__name__)


def build_settings_transaction(account: str, change: SettingsChange) -> Transaction:
    """Unsigned, un-autofilled settings transaction for `account`."""
    if change.disable_master:
        return AccountSet(
            account=account, set_flag=AccountSetAsfFlag.ASF_DISABLE_MASTER,
        )
    return SetRegularKey(account=account, regular_key=change.regular_key)


class XrplLedgerClient:
    """LedgerClient over an xrpl-py AsyncWebsocketClient."""

    def __init__(self, node_url: str):
        self.node_url = node_url
        self.client = AsyncWebsocketClient(node_url)

    def is_connected(self) -> bool:
        return self.client.is_open()

    async def connect(self) -> None:
        logger.info(f"Connecting to ledger node {self.node_url}")
        try:
            await self.client.open()
        except (OSError, XRPLException) as e:
            logger.error(f"Ledger node {self.node_url} unreachable: {e}")
            raise UpstreamUnavailableError("ledger", str(e))

    async def disconnect(self) -> None:
        if self.client.is_open():
            await self.client.close()

    async def prepare_settings(
        self, account: str, settings: SettingsChange,
    ) -> PreparedTransaction:
        filled = await autofill(build_settings_transaction(account, settings), self.client)
        return PreparedTransaction(account=account, tx_json=filled.to_xrpl())

    def sign(
        self, prepared: PreparedTransaction, secret: str,
    ) -> SignedTransaction:
        wallet = Wallet.from_seed(secret)
        signed = xrpl_sign(Transaction.from_xrpl(prepared.tx_json), wallet)
        return SignedTransaction(
            tx_blob=encode(signed.to_xrpl()), tx_id=signed.get_hash(),
        )

    async def submit(self, signed: SignedTransaction) -> SubmitResult:
        response = await self.client.request(SubmitOnly(tx_blob=signed.tx_blob))
        result = response.result
        tx_json = result.get("tx_json") or {}
        return SubmitResult(
            result_code=result.get("engine_result", "unknown"),
            tx_id=tx_json.get("hash", signed.tx_id),
            message=result.get("engine_result_message"),
        )

    async def get_trustlines(
        self, account: str, currency: str | None = None,
    ) -> list[dict]:
        response = await self.client.request(AccountLines(account=account))
        lines = response.result.get("lines", [])
        if currency:
            lines = [line for line in lines if line.get("currency") == currency]
        return lines
