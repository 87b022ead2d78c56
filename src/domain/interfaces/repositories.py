"""Repository interfaces for abstracting data persistence in the domain layer.

This module defines the abstract base classes (interfaces) for repositories,
which act as a "port" in the context of Hexagonal Architecture. The domain layer
uses these interfaces to interact with persistence mechanisms without being
coupled to any specific technology.

The concrete implementations of these interfaces reside in the `infrastructure`
layer, acting as "adapters" that translate the domain's requests into specific
database queries.
"""

from abc import ABC, abstractmethod
from typing import AsyncIterator, List, Optional

from src.domain.entities.account import Account
from src.domain.entities.password_reset_audit import PasswordResetAudit


class IAccountRepository(ABC):
    """An interface defining the reset protocol's view of the system of record."""

    @abstractmethod
    async def find_account_by_address(self, address: str) -> Optional[Account]:
        """Retrieves an account by its normalized email address.

        Args:
            address: Trimmed, lower-cased email address.

        Returns:
            An optional `Account`. Returns `None` if no account is found.

        Raises:
            DatabaseError: If the lookup fails.
        """
        raise NotImplementedError

    @abstractmethod
    async def find_account_by_id(self, account_id: str) -> Optional[Account]:
        """Retrieves an account by its identifier.

        Args:
            account_id: The account identifier.

        Returns:
            An optional `Account`. Returns `None` if no account is found.

        Raises:
            DatabaseError: If the lookup fails.
        """
        raise NotImplementedError

    @abstractmethod
    async def update_password(self, account_id: str, password_hash: str) -> None:
        """Replaces the stored password hash of an account.

        Args:
            account_id: The account identifier.
            password_hash: Encoded hash of the new password.

        Raises:
            DatabaseError: If the account does not exist or the write fails.
        """
        raise NotImplementedError

    @abstractmethod
    def enumerate_all_addresses(self) -> AsyncIterator[str]:
        """Streams every registered email address.

        Used only by the membership filter rebuild.

        Yields:
            Email addresses, one per account.
        """
        raise NotImplementedError


class IAuditStore(ABC):
    """An interface for the durable, append-only audit store."""

    @abstractmethod
    async def append(self, record: PasswordResetAudit) -> None:
        """Persists one audit record.

        Raises:
            DatabaseError: If the write fails.
        """
        raise NotImplementedError

    @abstractmethod
    async def list_for_account(self, account_id: str, limit: int = 50) -> List[PasswordResetAudit]:
        """Returns the newest records for an account, newest first.

        Args:
            account_id: The account identifier.
            limit: Maximum number of records.

        Raises:
            DatabaseError: If the query fails.
        """
        raise NotImplementedError
