"""Utility functions for the password reset API routes.

Shared helpers that pull request context (caller address, correlation id)
so every endpoint reports it the same way.
"""

import uuid
from typing import Optional

from fastapi import Request


def get_client_address(request: Request) -> Optional[str]:
    """Returns the peer address of the request, or None when unknown."""
    if request.client is None:
        return None
    return request.client.host or None


def get_correlation_id(request: Request) -> str:
    """Returns the correlation id assigned by the request-id middleware.

    Falls back to a fresh id when the middleware is not installed, which is
    the case for routers mounted on a bare test application.
    """
    correlation_id = getattr(request.state, "correlation_id", None)
    return correlation_id or str(uuid.uuid4())
