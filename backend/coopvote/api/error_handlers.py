"""Error Handlers — every failure leaves the API as the same JSON error envelope.

Invariants:
    - Body shape is always {"error": {code, message, category, severity, ...}}
    - CoopVoteError -> its own http_status; ConcurrencyError also sets Retry-After
    - RequestValidationError -> 400 VALIDATION_ERROR with one entry per bad field
    - Anything else -> 500 INTERNAL_ERROR; the exception text stays in the logs

Design Decisions:
    - Three handlers (domain, validation, catch-all) registered once from main.py
    - Log level follows severity: CRITICAL domain errors at ERROR, the rest at WARNING
"""

import logging
import math

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from coopvote.core.errors import CoopVoteError, ErrorCategory, ErrorSeverity

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CoopVoteError, handle_domain_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)


def error_body(
    code: str,
    message: str,
    category: str,
    severity: ErrorSeverity,
    **extra,
) -> dict:
    return {
        "error": {
            "code": code,
            "message": message,
            "category": category,
            "severity": severity.value,
            **extra,
        },
    }


async def handle_domain_error(request: Request, exc: CoopVoteError):
    context = exc.context
    logger.log(
        logging.ERROR if exc.severity is ErrorSeverity.CRITICAL else logging.WARNING,
        exc.message,
        extra={
            "error_code": exc.code,
            "path": request.url.path,
            "resolution_id": context.resolution_id,
            "scope_id": context.scope_id,
            "member_id": context.member_id,
        },
    )
    headers = None
    if context.retry_after_ms:
        headers = {"Retry-After": str(math.ceil(context.retry_after_ms / 1000))}
    return JSONResponse(
        status_code=exc.http_status, content=exc.to_response(), headers=headers,
    )


async def handle_validation_error(request: Request, exc: RequestValidationError):
    details = [
        {
            "field": ".".join(str(part) for part in e["loc"]),
            "message": e["msg"],
            "type": e["type"],
        }
        for e in exc.errors()
    ]
    logger.warning(
        f"Rejected request: {len(details)} invalid field(s)",
        extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(
            "VALIDATION_ERROR", "Invalid request data",
            ErrorCategory.VALIDATION.value, ErrorSeverity.ERROR,
            details=details,
        ),
    )


async def handle_unexpected_error(request: Request, exc: Exception):
    logger.error(
        f"Unhandled {type(exc).__name__}",
        exc_info=exc,
        extra={"error_code": "INTERNAL_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(
            "INTERNAL_ERROR", "An unexpected error occurred",
            "internal", ErrorSeverity.CRITICAL,
        ),
    )
