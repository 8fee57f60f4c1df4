"""Maps core exceptions to HTTP responses."""

import logging

from starlette.requests import Request
from starlette.responses import JSONResponse

from core.exceptions import (
    DispatchError,
    InvalidAmountError,
    InvalidDriverError,
    InvalidStateError,
    NoAvailableDriverError,
    NotFoundError,
    TransferFailureError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)

STATUS_CODES: dict[type[DispatchError], int] = {
    NotFoundError: 404,
    UnauthorizedError: 403,
    InvalidStateError: 409,
    InvalidAmountError: 422,
    NoAvailableDriverError: 409,
    InvalidDriverError: 400,
    TransferFailureError: 402,
}


def status_code_for(exc: DispatchError) -> int:
    for error_class in type(exc).__mro__:
        if error_class in STATUS_CODES:
            return STATUS_CODES[error_class]  # type: ignore[index]
    return 400


def dispatch_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render a DispatchError as {"error": code, "detail": message, "details": {...}}."""
    assert isinstance(exc, DispatchError)
    status_code = status_code_for(exc)
    logger.info(f"{request.method} {request.url.path} rejected: {exc.code}: {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.code, "detail": exc.message, "details": exc.details},
    )
