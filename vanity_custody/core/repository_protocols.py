"""Boundary Protocols: contracts between core services and their IO collaborators.

Invariants:
    - Services depend on these Protocols, never on a concrete ledger SDK
    - Implementations provided by infrastructure via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance
    - sign() is synchronous: signing is local CPU work, no IO
"""

from typing import Protocol

from vanity_custody.schemas.ledger import (
    PreparedTransaction, SettingsChange, SignedTransaction, SubmitResult,
)


class LedgerClient(Protocol):
    """Black-box ledger network client (connect / prepare / sign / submit / trustlines)."""
    def is_connected(self) -> bool: ...
    async def connect(self) -> None: ...
    async def disconnect(self) -> None: ...
    async def prepare_settings(
        self, account: str, settings: SettingsChange,
    ) -> PreparedTransaction: ...
    def sign(
        self, prepared: PreparedTransaction, secret: str,
    ) -> SignedTransaction: ...
    async def submit(self, signed: SignedTransaction) -> SubmitResult: ...
    async def get_trustlines(
        self, account: str, currency: str | None = None,
    ) -> list[dict]: ...
