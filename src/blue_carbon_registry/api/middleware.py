"""FastAPI middleware for request tracing, error mapping, and CORS.

Registered outermost first:
    RequestIDMiddleware: binds X-Request-ID to the structlog context.
    ErrorHandlerMiddleware: turns RegistryError subclasses into JSON errors.
    CORSMiddleware: lets the browser dashboard call the API.

Body and query validation failures raised by FastAPI itself go through an
exception handler so they share the ``VALIDATION_ERROR`` shape.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

import structlog
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from blue_carbon_registry.config import get_settings
from blue_carbon_registry.domain.exceptions import (
    ChainError,
    ConflictError,
    FileTooLargeError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    RegistryError,
    UnauthenticatedError,
    ValidationError,
)

if TYPE_CHECKING:
    from fastapi import FastAPI, Request, Response

logger = structlog.get_logger(__name__)

# First match wins, so subclasses must precede RegistryError.
ERROR_STATUS: tuple[tuple[type[RegistryError], int, int], ...] = (
    (ValidationError, 400, logging.INFO),
    (UnauthenticatedError, 401, logging.INFO),
    (ForbiddenError, 403, logging.WARNING),
    (NotFoundError, 404, logging.INFO),
    (InvalidStateError, 409, logging.WARNING),
    (ConflictError, 409, logging.WARNING),
    (FileTooLargeError, 413, logging.INFO),
    (ChainError, 502, logging.ERROR),
    (RegistryError, 400, logging.ERROR),
)


def status_for(exc: RegistryError) -> tuple[int, int]:
    """Return (HTTP status, log level) for a registry error."""
    for error_type, status_code, level in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code, level
    return 400, logging.ERROR


def _error_response(status_code: int, exc: RegistryError) -> JSONResponse:
    content = {"error": exc.code, "message": exc.message}
    if isinstance(exc, ValidationError) and exc.details:
        content["details"] = jsonable_encoder(exc.details)
    return JSONResponse(status_code=status_code, content=content)


def _log_fields(exc: RegistryError) -> dict[str, object]:
    fields: dict[str, object] = {"code": exc.code, "error": exc.message}
    if isinstance(exc, InvalidStateError):
        fields.update(current=exc.current_state, attempted=exc.attempted)
    elif isinstance(exc, ForbiddenError):
        fields.update(operation=exc.operation, principal=exc.principal_id)
    elif isinstance(exc, ChainError):
        fields.update(tx_hash=exc.tx_hash)
    return fields


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tag every request and its log lines with an X-Request-ID."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id, method=request.method, path=request.url.path
        )

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Map registry errors to status codes; anything else becomes a 500."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except RegistryError as exc:
            status_code, level = status_for(exc)
            logger.log(level, "request.failed", status=status_code, **_log_fields(exc))
            return _error_response(status_code, exc)
        except Exception as exc:
            logger.exception("unhandled.error", error=str(exc))
            return JSONResponse(
                status_code=500,
                content={
                    "error": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred",
                },
            )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report FastAPI body/query validation failures as VALIDATION_ERROR (400)."""
    details = jsonable_encoder(exc.errors())
    logger.info("request.invalid", errors=len(details))
    return JSONResponse(
        status_code=400,
        content={
            "error": "VALIDATION_ERROR",
            "message": "Request validation failed",
            "details": details,
        },
    )


def setup_middleware(app: FastAPI) -> None:
    """Register the exception handler and middleware stack.

    Starlette wraps in reverse order of registration, so RequestIDMiddleware
    is added last to sit outermost.
    """
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_settings().cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(RequestIDMiddleware)
