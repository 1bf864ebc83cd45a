"""Error Handlers: map core failures onto JSON responses for the HTTP layer that mounts them.

Invariants:
    - Every response body is the VanityError envelope ({"error": {...}}), whatever raised
    - Error-specific fields land in error.details: the inventory operation and upstream
      status, the ledger result code, the rejected field
    - An OrderingViolationError tells the client to run the transfer step first
    - Secrets and stack traces never reach the response; unexpected errors are logged
      with the request path and answered as INTERNAL_ERROR

Design Decisions:
    - Plain module-level handler functions registered with add_exception_handler, so
      they can be tested without an app
    - Request validation reuses ValidationError so clients see one error shape
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from vanity_custody.core.errors import (
    ErrorCategory, ErrorSeverity, InventoryServiceError, LedgerSubmissionError,
    OrderingViolationError, ValidationError, VanityError,
)

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(VanityError, handle_vanity_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(Exception, handle_unexpected)


async def handle_vanity_error(request: Request, exc: VanityError) -> JSONResponse:
    log = logger.error if exc.severity == ErrorSeverity.CRITICAL else logger.warning
    log(
        f"{type(exc).__name__} on {request.url.path}: {exc.message}",
        extra={
            "error_code": exc.code,
            "path": request.url.path,
            "application_id": exc.context.application_id,
            "origin": exc.context.origin,
            "account": exc.context.account,
        },
    )
    return JSONResponse(status_code=exc.http_status, content=error_body(exc))


async def handle_request_validation(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    problems = [
        {
            "field": ".".join(str(loc) for loc in e["loc"]),
            "message": e["msg"],
        }
        for e in exc.errors()
    ]
    first_field = problems[0]["field"] if problems else ""
    error = ValidationError("Invalid request data", first_field)
    logger.warning(
        f"Rejected request on {request.url.path}: {len(problems)} invalid field(s)",
        extra={"error_code": error.code, "path": request.url.path},
    )
    body = error_body(error)
    body["error"]["details"]["fields"] = problems
    return JSONResponse(status_code=error.http_status, content=body)


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.url.path}",
        exc_info=exc,
        extra={"path": request.url.path},
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "category": ErrorCategory.INTERNAL.value,
                "severity": ErrorSeverity.CRITICAL.value,
                "details": {},
            },
        },
    )


def error_body(exc: VanityError) -> dict:
    """The to_response() envelope plus error-specific details."""
    body = exc.to_response()
    body["error"]["details"] = _details(exc)
    return body


def _details(exc: VanityError) -> dict:
    if isinstance(exc, InventoryServiceError):
        return {"operation": exc.operation, "upstream_status": exc.status_code}
    if isinstance(exc, LedgerSubmissionError):
        return {"result_code": exc.result_code}
    if isinstance(exc, OrderingViolationError):
        return {"required_step": "transfer"}
    if isinstance(exc, ValidationError):
        return {"field": exc.field}
    return {}
