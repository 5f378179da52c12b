"""Maps storefront rejections onto HTTP responses."""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from storefront.exceptions import (
    ConfigurationError,
    InsufficientStock,
    InvalidCoupon,
    ProductUnavailable,
    ShippingThresholdUnmet,
    StorefrontError,
    SubmissionFailed,
    ValidationFailed,
)
from storefront.results import Result

logger = structlog.get_logger(__name__)

STATUS_CODES: dict[type[StorefrontError], int] = {
    InsufficientStock: 409,
    ProductUnavailable: 409,
    InvalidCoupon: 409,
    ShippingThresholdUnmet: 409,
    SubmissionFailed: 409,
    ValidationFailed: 422,
}


def unwrap(result: Result):
    """Value of an accepted result; a rejection is re-raised for the handler."""
    if not result.ok:
        raise result.error
    return result.value


def status_code_for(error: StorefrontError) -> int:
    for error_type, status_code in STATUS_CODES.items():
        if isinstance(error, error_type):
            return status_code
    return 400


async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    return JSONResponse(
        status_code=status_code_for(exc),
        content={"error": exc.code, "messages": exc.messages},
    )


async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    logger.error("Checkout configuration unavailable", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=503,
        content={"error": "configuration_unavailable", "messages": {"_entity": [str(exc)]}},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StorefrontError, storefront_error_handler)
    app.add_exception_handler(ConfigurationError, configuration_error_handler)
