"""
Logging configuration module for structured logging.

This module configures the application's logging system using structlog.
It provides structured logging capabilities with JSON formatting for production
and human-readable console output for development.

The logging configuration includes:
- Timestamp formatting
- Log level inclusion and filtering
- JSON/Console output based on environment
- Logger caching

Reset secrets, digests and new passwords are never passed to a logger; email
addresses and caller addresses go through the masking helpers below first.
"""

import logging
import sys

import structlog

from src.core.config.settings import settings


def configure_logging(log_level: str = "INFO", json_logs: bool = False) -> None:
    """
    Configures the application's logging system.

    This function sets up structlog with:
    1. ISO format timestamps
    2. Log level inclusion
    3. JSON formatting for production (when LOG_JSON=True)
    4. Console formatting for development
    5. Standard library logger factory and level filtering

    Args:
        log_level: Minimum level emitted by the stdlib root logger.
        json_logs: Render events as JSON instead of the console format.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer(),
    ]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def mask_email(email: str) -> str:
    """Mask an email address for log output, keeping its shape.

    ``john.doe@example.com`` becomes ``jo******@e******.com``.
    """
    if not email or "@" not in email:
        return "***"
    local, _, domain = email.partition("@")
    domain_name, dot, tld = domain.rpartition(".")
    if not dot:
        domain_name, tld = domain, ""
    masked_local = local[:2] + "*" * max(len(local) - 2, 1)
    masked_domain = domain_name[:1] + "*" * max(len(domain_name) - 1, 1)
    return f"{masked_local}@{masked_domain}{dot}{tld}"


def mask_ip_address(ip_address: str | None) -> str:
    """Drop the host part of an address for log output."""
    if not ip_address:
        return "unknown"
    if ":" in ip_address:
        groups = ip_address.split(":")
        return ":".join(groups[:3]) + ":****"
    octets = ip_address.split(".")
    if len(octets) == 4:
        return ".".join(octets[:3]) + ".***"
    return "***"


# Create a singleton logger instance for the application
logger = structlog.get_logger(settings.PROJECT_NAME)
