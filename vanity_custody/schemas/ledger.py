"""Ledger Schemas: value objects exchanged with the ledger client and returned to callers.

Invariants:
    - SettingsChange sets exactly one of regular_key / disable_master
    - TransferResult is the only shape OwnershipTransfer returns (success or failure)
    - TransferResult never carries a secret
"""

from pydantic import BaseModel, Field, model_validator

from vanity_custody.core.domain_types import LEDGER_SUCCESS_CODE, TransferStage


class SettingsChange(BaseModel):
    """Account settings delta: hand over the regular key or disable the master key."""
    regular_key: str | None = None
    disable_master: bool = False

    @model_validator(mode="after")
    def exactly_one_change(self) -> "SettingsChange":
        if bool(self.regular_key) == self.disable_master:
            raise ValueError("set either regular_key or disable_master")
        return self


class PreparedTransaction(BaseModel):
    """Autofilled, unsigned transaction."""
    account: str
    tx_json: dict


class SignedTransaction(BaseModel):
    """Signed blob ready for submission."""
    tx_blob: str
    tx_id: str


class SubmitResult(BaseModel):
    """Preliminary engine result of a submission."""
    result_code: str
    tx_id: str | None = None
    message: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.result_code == LEDGER_SUCCESS_CODE


class TransferResult(BaseModel):
    """Outcome of one rekey or master-disable step.

    account is the key now controlling vanity_address after a successful rekey
    (the buyer's regular key); otherwise it is vanity_address itself.
    """
    success: bool
    stage: TransferStage
    vanity_address: str
    account: str
    tx_id: str | None = None
    result_code: str | None = None
    error_code: str | None = None
    message: str | None = None
    attempts: int = Field(default=0, ge=0)


class HandOverResult(BaseModel):
    """Rekey + master-disable, in that order; disable is None when rekey failed."""
    rekey: TransferResult
    disable: TransferResult | None = None

    @property
    def success(self) -> bool:
        return self.rekey.success and self.disable is not None and self.disable.success
