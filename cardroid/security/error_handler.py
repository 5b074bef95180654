"""
Error handlers - plain-text error pages without internal details

Business errors (CardroidError and subclasses) carry a message that is safe
to show in the back-office forms. Anything else is logged with a trace id
and answered with a generic "error".

Usage:
    # In main.py
    register_exception_handlers(app)
"""

import uuid
import logging
from fastapi import FastAPI, Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse
from pymongo.errors import ConnectionFailure
from starlette.exceptions import HTTPException as StarletteHTTPException

from cardroid.exceptions import CardroidError, StoreUnavailableError
from cardroid.utils.monitoring import capture_exception

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "error"


def generate_trace_id() -> str:
    """
    Generate a unique trace ID for error correlation.

    Returns:
        A unique trace ID string (UUID4)
    """
    return str(uuid.uuid4())


async def cardroid_error_handler(request: Request, exc: CardroidError) -> PlainTextResponse:
    """Render a business error as plain text with its status code."""
    trace_id = generate_trace_id()
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"{type(exc).__name__} [{exc.status_code}] trace_id={trace_id}: {exc.message}",
        extra={
            "trace_id": trace_id,
            "status_code": exc.status_code,
            "path": request.url.path,
            "method": request.method,
        },
    )
    if exc.status_code >= 500:
        capture_exception(exc, trace_id=trace_id, path=request.url.path)
    return PlainTextResponse(exc.message, status_code=exc.status_code)


async def store_connection_handler(request: Request, exc: ConnectionFailure) -> PlainTextResponse:
    """A configured but unreachable store answers 503 like an unconfigured one."""
    logger.error(f"Store unreachable on {request.url.path}: {type(exc).__name__}")
    return await cardroid_error_handler(request, StoreUnavailableError("Base de datos no disponible"))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> PlainTextResponse:
    """Missing or malformed form fields answer 400 with the offending field names."""
    fields = sorted({str(err["loc"][-1]) for err in exc.errors() if err.get("loc")})
    logger.warning(f"Invalid request to {request.url.path}: {fields}")
    return PlainTextResponse(
        f"Parámetros incompletos o inválidos: {', '.join(fields)}",
        status_code=400,
    )


async def secure_exception_handler(request: Request, exc: Exception) -> PlainTextResponse:
    """
    Global exception handler that never exposes internal details.

    Register with: app.add_exception_handler(Exception, secure_exception_handler)
    """
    if isinstance(exc, CardroidError):
        return await cardroid_error_handler(request, exc)

    if isinstance(exc, ConnectionFailure):
        return await store_connection_handler(request, exc)

    if isinstance(exc, (HTTPException, StarletteHTTPException)):
        logger.warning(f"HTTPException [{exc.status_code}] on {request.url.path}: {exc.detail}")
        return PlainTextResponse(str(exc.detail), status_code=exc.status_code)

    trace_id = generate_trace_id()

    # Log full exception details internally
    logger.error(
        f"Unhandled exception trace_id={trace_id}",
        extra={
            "trace_id": trace_id,
            "exception_type": type(exc).__name__,
            "path": request.url.path,
            "method": request.method,
        },
        exc_info=exc,
    )
    capture_exception(exc, trace_id=trace_id, path=request.url.path)

    return PlainTextResponse(GENERIC_ERROR_MESSAGE, status_code=500)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CardroidError, cardroid_error_handler)
    app.add_exception_handler(ConnectionFailure, store_connection_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, secure_exception_handler)
    app.add_exception_handler(Exception, secure_exception_handler)


__all__ = [
    "GENERIC_ERROR_MESSAGE",
    "generate_trace_id",
    "cardroid_error_handler",
    "store_connection_handler",
    "request_validation_handler",
    "secure_exception_handler",
    "register_exception_handlers",
]
