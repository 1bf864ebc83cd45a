"""Domain Types: rich types that replace bare primitives across the codebase.

Invariants:
    - ApplicationId, LedgerAccount, WalletUserId, PayloadId wrap str, never bare str in signatures
    - Payload categories are an Enum; unknown or blank tags collapse to PayloadCategory.OTHERS
    - ScopeKey identifies exactly one linkage record

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: stored verbatim in the payload_type column and serialized without custom encoders
"""

from dataclasses import dataclass
from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

ApplicationId = NewType("ApplicationId", str)
LedgerAccount = NewType("LedgerAccount", str)
WalletUserId = NewType("WalletUserId", str)
FrontendUserId = NewType("FrontendUserId", str)
PayloadId = NewType("PayloadId", str)


# ─── Enums ───────────────────────────────────────────────────────

class SubjectKind(str, Enum):
    """Which identity a linkage record is keyed by."""
    FRONTEND_USER = "frontend_user"
    WALLET_USER = "wallet_user"
    LEDGER_ACCOUNT = "ledger_account"


class PayloadCategory(str, Enum):
    """Sign-in / transaction-approval flow categories a payload is filed under."""
    SIGNIN = "signin"
    PAYMENT = "payment"
    SETREGULARKEY = "setregularkey"
    ACCOUNTSET = "accountset"
    TRUSTSET = "trustset"
    ACCOUNTDELETE = "accountdelete"
    ESCROWCREATE = "escrowcreate"
    ESCROWFINISH = "escrowfinish"
    ESCROWCANCEL = "escrowcancel"
    OFFERCREATE = "offercreate"
    OFFERCANCEL = "offercancel"
    CHECKCREATE = "checkcreate"
    CHECKCASH = "checkcash"
    CHECKCANCEL = "checkcancel"
    OTHERS = "others"

    @classmethod
    def from_tag(cls, tag: "str | PayloadCategory | None") -> "PayloadCategory":
        """Trim + lower-case a raw tag; blank or unknown tags map to OTHERS."""
        if isinstance(tag, PayloadCategory):
            return tag
        normalized = (tag or "").strip().lower()
        if not normalized:
            return cls.OTHERS
        try:
            return cls(normalized)
        except ValueError:
            return cls.OTHERS


class TransferStage(str, Enum):
    """Ownership transfer state machine."""
    IDLE = "idle"
    KEY_PREPARED = "key_prepared"
    KEY_SIGNED = "key_signed"
    KEY_SUBMITTED = "key_submitted"
    REKEYED = "rekeyed"
    REKEY_FAILED = "rekey_failed"
    DISABLE_PREPARED = "disable_prepared"
    DISABLE_SIGNED = "disable_signed"
    DISABLE_SUBMITTED = "disable_submitted"
    DISABLED = "disabled"
    DISABLE_FAILED = "disable_failed"


# ─── Value Types ─────────────────────────────────────────────────

@dataclass(frozen=True)
class ScopeKey:
    """(origin, referer, application_id, subject) tuple of one linkage record."""
    kind: SubjectKind
    origin: str
    referer: str
    application_id: ApplicationId
    subject_id: str


LEDGER_SUCCESS_CODE = "tesSUCCESS"
