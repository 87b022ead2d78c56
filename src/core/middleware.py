"""Middleware configuration for the FastAPI application.

This module handles the configuration and registration of all middleware
components: CORS and the request-id middleware that tags every request with
a correlation id.
"""

import uuid

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from src.core.config.settings import settings

REQUEST_ID_HEADER = "X-Request-ID"


def configure_middleware(app: FastAPI) -> None:
    """Configure all middleware for the FastAPI application.

    Args:
        app (FastAPI): The FastAPI application instance
    """
    # CORS middleware configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Correlation id middleware
    app.middleware("http")(request_id_middleware)


async def request_id_middleware(request: Request, call_next):
    """Middleware assigning a correlation id to each request.

    A fresh UUID is generated per request; a client-supplied request id is
    not trusted. The id is stored on ``request.state``, bound into the
    structlog context for the duration of the request, and echoed in the
    response headers.

    Args:
        request (Request): The incoming request
        call_next: The next middleware or route handler

    Returns:
        Response: The response with the request id header
    """
    correlation_id = str(uuid.uuid4())
    request.state.correlation_id = correlation_id
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)
    try:
        response = await call_next(request)
    finally:
        structlog.contextvars.unbind_contextvars("correlation_id")
    response.headers[REQUEST_ID_HEADER] = correlation_id
    return response
