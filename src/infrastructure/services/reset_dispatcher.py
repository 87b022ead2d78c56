"""Email delivery for reset links and password-changed notices.

This service implements `IResetDispatcher` with Jinja2 templates and
fastapi-mail. Both operations schedule a background task and return at once,
so mail server latency never shows up in a reset flow's response time.
Delivery is retried with exponential backoff; a message that still fails is
logged and dropped.

In test mode (development and test environments) messages are rendered and
logged instead of sent. The reset secret is never logged.
"""

import asyncio
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Set
from urllib.parse import urlencode

import structlog
from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType
from jinja2 import Environment, FileSystemLoader, select_autoescape
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential

from src.core.config.settings import settings
from src.core.logging import mask_email, mask_ip_address
from src.domain.interfaces.email import IResetDispatcher

logger = structlog.get_logger(__name__)

PACKAGE_TEMPLATES_DIR = Path(__file__).resolve().parents[2] / "templates" / "email"

RESET_LINK_TEMPLATE = "password_reset.html"
CHANGE_NOTICE_TEMPLATE = "password_changed.html"


def build_reset_url(frontend_url: str, credential_id: str, secret: str) -> str:
    query = urlencode({"tokenId": credential_id, "token": secret})
    return f"{frontend_url.rstrip('/')}/reset-password?{query}"


class EmailResetDispatcher(IResetDispatcher):
    """Background email dispatcher for the reset protocol.

    Attributes:
        jinja_env: Jinja2 environment for template rendering
        fastmail: FastMail client, None in test mode
    """

    def __init__(
        self,
        test_mode: Optional[bool] = None,
        templates_dir: Optional[Path] = None,
        send_attempts: Optional[int] = None,
        fastmail: Optional[FastMail] = None,
    ):
        """Set up templates and the SMTP client.

        Args:
            test_mode: Log instead of send; defaults to settings.EMAIL_TEST_MODE
            templates_dir: Template directory; defaults to the configured one,
                falling back to the templates shipped with the package
            send_attempts: Delivery attempts per message
            fastmail: Pre-built client, mainly for tests
        """
        self._test_mode = settings.EMAIL_TEST_MODE if test_mode is None else test_mode
        self._send_attempts = send_attempts or settings.EMAIL_SEND_ATTEMPTS
        self._tasks: Set[asyncio.Task] = set()

        self.jinja_env = Environment(
            loader=FileSystemLoader(str(self._resolve_templates_dir(templates_dir))),
            autoescape=select_autoescape(enabled_extensions=("html", "xml")),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.fastmail = fastmail if fastmail is not None else self._build_client()

        logger.info(
            "EmailResetDispatcher initialized",
            test_mode=self._test_mode,
            send_attempts=self._send_attempts,
        )

    @staticmethod
    def _resolve_templates_dir(templates_dir: Optional[Path]) -> Path:
        if templates_dir is not None:
            return templates_dir
        configured = Path(settings.EMAIL_TEMPLATES_DIR)
        if configured.is_dir():
            return configured
        return PACKAGE_TEMPLATES_DIR

    def _build_client(self) -> Optional[FastMail]:
        if self._test_mode:
            logger.info("Email dispatcher in test mode - emails will be logged")
            return None

        config = ConnectionConfig(
            MAIL_USERNAME=settings.SMTP_USERNAME or "",
            MAIL_PASSWORD=settings.SMTP_PASSWORD.get_secret_value() if settings.SMTP_PASSWORD else "",
            MAIL_FROM=settings.FROM_EMAIL,
            MAIL_PORT=settings.SMTP_PORT,
            MAIL_SERVER=settings.SMTP_HOST,
            MAIL_FROM_NAME=settings.FROM_NAME,
            MAIL_STARTTLS=settings.SMTP_USE_TLS,
            MAIL_SSL_TLS=settings.SMTP_USE_SSL,
            USE_CREDENTIALS=bool(settings.SMTP_USERNAME and settings.SMTP_PASSWORD),
            VALIDATE_CERTS=True,
        )
        return FastMail(config)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def send_reset_link(
        self,
        contact_address: str,
        display_name: str,
        credential_id: str,
        secret: str,
    ) -> None:
        context = {
            "display_name": display_name,
            "reset_url": build_reset_url(settings.FRONTEND_URL, credential_id, secret),
            "expires_in_minutes": settings.RESET_TOKEN_TTL_SECONDS // 60,
            "sender_name": settings.FROM_NAME,
        }
        self._schedule(
            kind="reset_link",
            recipient=contact_address,
            subject="Reset your password",
            template=RESET_LINK_TEMPLATE,
            context=context,
            log_fields={"credential_id": credential_id},
        )

    async def send_change_notification(
        self,
        contact_address: str,
        caller_address: Optional[str],
        timestamp: datetime,
    ) -> None:
        context = {
            "changed_at": timestamp.strftime("%Y-%m-%d %H:%M:%S %Z").strip(),
            "caller_address": caller_address,
            "sender_name": settings.FROM_NAME,
        }
        self._schedule(
            kind="password_changed",
            recipient=contact_address,
            subject="Your password was changed",
            template=CHANGE_NOTICE_TEMPLATE,
            context=context,
            log_fields={"caller": mask_ip_address(caller_address)},
        )

    def _schedule(
        self,
        kind: str,
        recipient: str,
        subject: str,
        template: str,
        context: Dict[str, Any],
        log_fields: Dict[str, Any],
    ) -> None:
        task = asyncio.create_task(
            self._deliver(kind, recipient, subject, template, context, log_fields)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _deliver(
        self,
        kind: str,
        recipient: str,
        subject: str,
        template: str,
        context: Dict[str, Any],
        log_fields: Dict[str, Any],
    ) -> None:
        masked = mask_email(recipient)
        try:
            html = self.jinja_env.get_template(template).render(**context)

            if self.fastmail is None:
                logger.info(
                    "Email logged (test mode)",
                    kind=kind,
                    recipient=masked,
                    subject=subject,
                    body_length=len(html),
                    **log_fields,
                )
                return

            message = MessageSchema(
                subject=subject,
                recipients=[recipient],
                body=html,
                subtype=MessageType.html,
            )
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._send_attempts),
                wait=wait_exponential(multiplier=0.5, max=8),
                reraise=True,
            ):
                with attempt:
                    await self.fastmail.send_message(message)

            logger.info("Email sent", kind=kind, recipient=masked, **log_fields)
        except Exception as e:
            logger.error(
                "Email delivery failed",
                kind=kind,
                recipient=masked,
                error=str(e),
                error_type=type(e).__name__,
                **log_fields,
            )

    async def drain(self, timeout: float = 10.0) -> None:
        """Waits for scheduled deliveries, cancelling any still running after `timeout`."""
        if not self._tasks:
            return
        pending = list(self._tasks)
        _, not_done = await asyncio.wait(pending, timeout=timeout)
        for task in not_done:
            task.cancel()
        if not_done:
            await asyncio.gather(*not_done, return_exceptions=True)
            logger.warning("Email deliveries cancelled on shutdown", count=len(not_done))
