"""Outbound notification interfaces.

The reset protocol hands the data a message needs to a dispatch collaborator
and moves on; delivery is best-effort and never blocks or fails a flow.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional


class IResetDispatcher(ABC):
    """Interface for delivering reset links and password-changed notices."""

    @abstractmethod
    async def send_reset_link(
        self,
        contact_address: str,
        display_name: str,
        credential_id: str,
        secret: str,
    ) -> None:
        """Schedules delivery of a one-time reset link.

        Returns as soon as delivery is scheduled. Failures are logged by the
        implementation and never raised.

        Args:
            contact_address: Recipient email address.
            display_name: Name used to greet the recipient.
            credential_id: Public credential identifier.
            secret: Plaintext secret, disclosed only through this message.
        """
        raise NotImplementedError

    @abstractmethod
    async def send_change_notification(
        self,
        contact_address: str,
        caller_address: Optional[str],
        timestamp: datetime,
    ) -> None:
        """Schedules a notice that the account password was changed.

        Args:
            contact_address: Recipient email address.
            caller_address: Address the redemption came from.
            timestamp: When the password was changed.
        """
        raise NotImplementedError
