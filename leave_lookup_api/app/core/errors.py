"""
Error taxonomy and global exception handlers.

Every failure the service reports to a caller is one of four kinds:

* ``ValidationError`` – malformed request shape (400);
* ``VerificationError`` – bot verification failed or was unreachable (403);
* ``NotFoundError`` – a well‑formed query with no matching record (404);
* ``InternalError`` – anything unexpected (500).

All of them derive from ``ServiceError`` which carries the user facing
message and HTTP status.  ``register_exception_handlers`` converts these,
FastAPI's own request validation errors, Starlette HTTP errors and any
unhandled exception into the uniform ``{"success": false, "message": ...}``
body.  Internal details are logged server side and never returned.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .logging_config import get_security_logger


logger = logging.getLogger(__name__)

INVALID_INPUT_MESSAGE = "Invalid input."
VERIFICATION_FAILED_MESSAGE = "Verification failed."
NOT_FOUND_MESSAGE = "No matching record."
INTERNAL_ERROR_MESSAGE = "Internal server error."
PAGE_NOT_FOUND_MESSAGE = "Page not found."


class ServiceError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = INTERNAL_ERROR_MESSAGE

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ServiceError):
    """The request body does not have the expected shape."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = INVALID_INPUT_MESSAGE


class VerificationError(ServiceError):
    """Bot verification rejected the request or could not be completed."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = VERIFICATION_FAILED_MESSAGE


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = NOT_FOUND_MESSAGE


class InternalError(ServiceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = INTERNAL_ERROR_MESSAGE


def error_response(status_code: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    """Build the uniform JSON error body."""
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the global exception handlers on ``app``."""

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
        if isinstance(exc, VerificationError):
            get_security_logger().warning(
                "Verification rejected for %s %s: %s", request.method, request.url.path, exc.message
            )
        elif isinstance(exc, NotFoundError):
            logger.info("No record found for %s %s", request.method, request.url.path)
        elif isinstance(exc, InternalError):
            logger.error("Internal error on %s %s: %s", request.method, request.url.path, exc.message)
        else:
            logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.message)
        # InternalError always reports the generic message to the caller.
        message = INTERNAL_ERROR_MESSAGE if isinstance(exc, InternalError) else exc.message
        return error_response(exc.status_code, message)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        # Only the failing locations are logged; inputs may hold id numbers.
        locations = [".".join(str(part) for part in e.get("loc", ())) for e in exc.errors()]
        logger.info("Request validation failed on %s: %s", request.url.path, locations)
        return error_response(status.HTTP_400_BAD_REQUEST, INVALID_INPUT_MESSAGE)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            message = PAGE_NOT_FOUND_MESSAGE
        else:
            message = str(exc.detail)
        return error_response(exc.status_code, message, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)
