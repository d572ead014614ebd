"""Mapping of service errors onto HTTP responses."""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from shortlink.errors import (
    CodeTakenError,
    GenerationExhaustedError,
    InvalidShortCodeError,
    InvalidURLError,
    MappingExpiredError,
    MappingNotFoundError,
    OperationTimeoutError,
    ShortlinkError,
    StoreUnavailableError,
)

logger = logging.getLogger("shortlink.web")

# (error kind, HTTP status) per exception type; first match wins
ERROR_STATUS = [
    (InvalidURLError, "InvalidUrl", status.HTTP_400_BAD_REQUEST),
    (InvalidShortCodeError, "InvalidShortCode", status.HTTP_400_BAD_REQUEST),
    (CodeTakenError, "CodeTaken", status.HTTP_409_CONFLICT),
    (MappingNotFoundError, "NotFound", status.HTTP_404_NOT_FOUND),
    (MappingExpiredError, "Expired", status.HTTP_410_GONE),
    (GenerationExhaustedError, "GenerationExhausted", status.HTTP_503_SERVICE_UNAVAILABLE),
    (StoreUnavailableError, "ServiceUnavailable", status.HTTP_503_SERVICE_UNAVAILABLE),
    (OperationTimeoutError, "Timeout", status.HTTP_504_GATEWAY_TIMEOUT),
]


def error_response(error: str, message: str, status_code: int) -> JSONResponse:
    """Build the JSON error body shared by every failing route."""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


async def shortlink_error_handler(request: Request, exc: ShortlinkError) -> JSONResponse:
    for exc_type, error, status_code in ERROR_STATUS:
        if isinstance(exc, exc_type):
            break
    else:
        error, status_code = "InternalError", status.HTTP_500_INTERNAL_SERVER_ERROR

    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {error}: {exc}")
    return error_response(error, str(exc), status_code)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}"
        for err in exc.errors()
    )
    return error_response("InvalidRequest", details, status.HTTP_400_BAD_REQUEST)


def register_error_handlers(app: FastAPI) -> None:
    """Install the exception handlers on ``app``."""
    app.add_exception_handler(ShortlinkError, shortlink_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
