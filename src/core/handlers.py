from __future__ import annotations

"""
Global exception handlers for the FastAPI application.

This module contains centralized handlers for custom application exceptions,
translating them into HTTP responses with a `{"message": ...}` body.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status
from structlog import get_logger

from src.core.exceptions import (
    GENERIC_FAULT_MESSAGE,
    DatabaseError,
    PasswordResetError,
    ResetGuardError,
    ValidationError,
)
from src.core.logging import mask_ip_address

__all__ = [
    "validation_error_handler",
    "request_validation_error_handler",
    "password_reset_error_handler",
    "database_error_handler",
    "reset_guard_error_handler",
    "register_exception_handlers",
]

logger = get_logger(__name__)

INVALID_BODY_MESSAGE = "Invalid request body"


def _client_host(request: Request) -> str | None:
    return request.client.host if request.client else None


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handles `ValidationError`, returning a `400 Bad Request`.

    Covers malformed email addresses, credential ids and secrets, and
    passwords shorter than the policy minimum.

    Args:
        request: The incoming `Request` object.
        exc: The `ValidationError` instance.

    Returns:
        A `JSONResponse` with a 400 status code and the validation message.
    """
    logger.info(
        "Request input rejected",
        error=exc.code,
        path=request.url.path,
        client_ip=mask_ip_address(_client_host(request)),
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": exc.message},
    )


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handles FastAPI body parsing failures, returning a `400 Bad Request`.

    FastAPI answers 422 with field-level detail by default; the reset surface
    answers a flat 400 instead so the body shape is the same for every
    malformed request.
    """
    logger.info(
        "Request body rejected",
        path=request.url.path,
        error_count=len(exc.errors()),
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": INVALID_BODY_MESSAGE},
    )


async def password_reset_error_handler(request: Request, exc: PasswordResetError) -> JSONResponse:
    """Handles `PasswordResetError`, returning a `500 Internal Server Error`.

    The underlying cause has already been logged and audited by the service.
    """
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": exc.message},
    )


async def database_error_handler(request: Request, exc: DatabaseError) -> JSONResponse:
    """Handles `DatabaseError`, returning a `500 Internal Server Error`."""
    logger.error("Database error", error=str(exc), path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": GENERIC_FAULT_MESSAGE},
    )


async def reset_guard_error_handler(request: Request, exc: ResetGuardError) -> JSONResponse:
    """Fallback for any `ResetGuardError` without a dedicated handler."""
    logger.error(
        "Unhandled application error",
        error=exc.code,
        error_type=type(exc).__name__,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": GENERIC_FAULT_MESSAGE},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Registers all custom exception handlers with the FastAPI application.

    Starlette resolves handlers by walking the exception's MRO, so the most
    specific registered class wins regardless of registration order.

    Args:
        app: The `FastAPI` application instance.
    """
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(PasswordResetError, password_reset_error_handler)
    app.add_exception_handler(DatabaseError, database_error_handler)
    app.add_exception_handler(ResetGuardError, reset_guard_error_handler)
