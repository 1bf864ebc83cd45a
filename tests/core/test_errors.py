"""Error Hierarchy: verifies codes, HTTP statuses and the response envelope."""

from vanity_custody.core.errors import (
    DatabaseError, ErrorContext, InventoryServiceError, LedgerSubmissionError,
    OrderingViolationError, UpstreamUnavailableError, ValidationError,
    VanityError,
)


def test_all_errors_share_base():
    for err in (
        ValidationError("bad", "field"),
        DatabaseError("down", "execute"),
        OrderingViolationError("rVanity"),
        InventoryServiceError("search", 500),
        LedgerSubmissionError("failed", "tecNO_PERMISSION"),
        UpstreamUnavailableError("ledger", "refused"),
    ):
        assert isinstance(err, VanityError)


def test_ordering_violation_code_and_status():
    err = OrderingViolationError("rVanity")
    assert err.code == "REKEY_REQUIRED"
    assert err.http_status == 409
    assert "rVanity" in err.message


def test_inventory_error_is_bad_gateway():
    err = InventoryServiceError("purge", 503)
    assert err.code == "INVENTORY_SERVICE_ERROR"
    assert err.http_status == 502


def test_to_response_envelope():
    err = ValidationError(
        "payload_id must not be blank", "payload_id",
        context=ErrorContext(application_id="app-1"),
    )
    body = err.to_response()
    assert body["error"]["code"] == err.code
    assert body["error"]["message"] == "payload_id must not be blank"
    assert body["error"]["severity"] == err.severity.value
