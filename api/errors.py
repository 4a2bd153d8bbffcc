"""
HTTP error mapping.

Every failure leaves the API as `{"error": "<message>"}` with a status code
chosen from the domain error type.
"""

from __future__ import annotations

import logging
from typing import Dict, Type

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from domain.errors import (
    Forbidden,
    InsufficientInventory,
    InternalError,
    MarketplaceError,
    NotFound,
    RegistrationLocked,
    Unauthorized,
    UploadError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_STATUS_CODES: Dict[Type[MarketplaceError], int] = {
    ValidationError: 400,
    InsufficientInventory: 400,
    Unauthorized: 401,
    Forbidden: 403,
    NotFound: 404,
    RegistrationLocked: 409,
    UploadError: 500,
    InternalError: 500,
}


def status_code_for(exc: MarketplaceError) -> int:
    for cls in type(exc).__mro__:
        if cls in _STATUS_CODES:
            return _STATUS_CODES[cls]
    return 500


async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(
            "Request failed",
            extra={"path": request.url.path, "error_type": type(exc).__name__, "reason": exc.message},
        )
    return JSONResponse({"error": exc.message}, status_code=status_code)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404 and exc.detail == "Not Found":
        message = "Route not found"
    else:
        message = str(exc.detail)
    return JSONResponse({"error": message}, status_code=exc.status_code, headers=getattr(exc, "headers", None))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path"))
        problems.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return JSONResponse({"error": "Invalid request: " + "; ".join(problems)}, status_code=400)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Server error", extra={"path": request.url.path})
    return JSONResponse({"error": "Internal server error"}, status_code=500)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MarketplaceError, marketplace_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
