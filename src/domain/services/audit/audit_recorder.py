"""Audit trail for the password reset protocol.

One record is written per protocol decision. Recording never raises: an audit
store outage is logged for operators and the flow carries on unchanged.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog

from src.core.logging import mask_ip_address
from src.domain.entities.password_reset_audit import PasswordResetAudit
from src.domain.interfaces.repositories import IAuditStore
from src.domain.value_objects.outcomes import AuditOutcome

logger = structlog.get_logger(__name__)


class AuditRecorder:
    """Builds audit records and appends them to the durable store."""

    DEFAULT_HISTORY_LIMIT = 50

    def __init__(self, audit_store: IAuditStore):
        self._audit_store = audit_store
        logger.info("AuditRecorder initialized")

    async def record(
        self,
        correlation_id: str,
        account_id: Optional[str],
        caller_address: Optional[str],
        outcome: AuditOutcome,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Appends one decision record, swallowing any failure.

        Args:
            correlation_id: Request-scoped id
            account_id: Account concerned, if known
            caller_address: Address the request came from
            outcome: Decision taken
            metadata: Small structured payload, e.g. the credential id
        """
        record = PasswordResetAudit(
            correlation_id=correlation_id,
            account_id=account_id,
            request_ip=caller_address,
            outcome=outcome.value,
            meta=dict(metadata or {}),
            requested_at=datetime.now(timezone.utc),
        )
        try:
            await self._audit_store.append(record)
        except Exception as e:
            logger.error(
                "Audit record write failed",
                correlation_id=correlation_id,
                outcome=outcome.value,
                caller=mask_ip_address(caller_address),
                error=str(e),
                error_type=type(e).__name__,
            )

    async def history(
        self, account_id: str, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> List[PasswordResetAudit]:
        """Returns an account's newest audit records, newest first.

        An unreachable store yields an empty list.
        """
        try:
            return await self._audit_store.list_for_account(account_id, limit)
        except Exception as e:
            logger.error(
                "Audit history query failed",
                account_id=account_id,
                error=str(e),
            )
            return []
