"""Map core errors to HTTP responses."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from canteen_registry.core.exceptions import (
    CanteenNotFound,
    CanteenRegistryError,
    CompanyMissingAddress,
    NotOwner,
    ReviewNotFound,
    TransactionConflict,
    UpstreamLookupFailure,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: dict[type[CanteenRegistryError], int] = {
    CanteenNotFound: 404,
    ReviewNotFound: 404,
    NotOwner: 403,
    CompanyMissingAddress: 422,
    TransactionConflict: 503,
    UpstreamLookupFailure: 502,
}


def status_for(exc: CanteenRegistryError) -> int:
    for error_type, status_code in STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return status_code
    return 400


def setup_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(CanteenRegistryError)
    async def registry_error_handler(request: Request, exc: CanteenRegistryError) -> JSONResponse:
        status_code = status_for(exc)
        if status_code >= 500:
            logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status_code, content={"error": exc.kind, "detail": str(exc)})
