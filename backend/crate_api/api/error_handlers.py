"""Error Handlers — every failure leaves the API in the same JSON envelope.

Invariants:
    - Body shape is always {"error": {"code", "message", "category", "severity", ...}}
    - CrateApiError keeps its own status; 4xx are logged as warnings, 5xx as errors
    - Request validation failures are 400 (never FastAPI's default 422)
    - Unexpected exceptions are 500 with a fixed message; details stay in the log
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from crate_api.core.errors import CrateApiError, ErrorCategory, ErrorSeverity

logger = logging.getLogger(__name__)


def error_envelope(
    code: str,
    message: str,
    category: ErrorCategory,
    severity: ErrorSeverity,
    **extra,
) -> dict:
    return {
        "error": {
            "code": code,
            "message": message,
            "category": category.value,
            "severity": severity.value,
            **extra,
        },
    }


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CrateApiError, handle_crate_api_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)


async def handle_crate_api_error(request: Request, exc: CrateApiError):
    log = logger.error if exc.http_status >= 500 else logger.warning
    log(
        f"{request.method} {request.url.path} failed: {exc.message}",
        extra={
            "error_code": exc.code,
            "path": request.url.path,
            "collection_id": exc.context.collection_id,
            "entity_id": exc.context.entity_id,
        },
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


async def handle_validation_error(request: Request, exc: RequestValidationError):
    details = [
        {
            "field": ".".join(str(part) for part in err["loc"]),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]
    logger.warning(
        f"Invalid request to {request.url.path}: {len(details)} error(s)",
        extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_envelope(
            "VALIDATION_ERROR", "Invalid request data",
            ErrorCategory.VALIDATION, ErrorSeverity.ERROR,
            details=details,
        ),
    )


async def handle_unexpected_error(request: Request, exc: Exception):
    logger.error(
        f"Unhandled {exc.__class__.__name__} on {request.url.path}: {exc}",
        exc_info=True,
        extra={"error_code": "INTERNAL_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_envelope(
            "INTERNAL_ERROR", "An unexpected error occurred",
            ErrorCategory.INTERNAL, ErrorSeverity.CRITICAL,
        ),
    )
