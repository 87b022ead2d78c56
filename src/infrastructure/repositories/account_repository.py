"""Account Repository implementation using SQLAlchemy.

This module gives the reset protocol its narrow view of the system of record:
lookups by normalized email or id, password hash updates, and a streamed
enumeration of every address for the membership filter rebuild.
"""

from datetime import datetime, timezone
from typing import AsyncIterator, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from structlog import get_logger

from src.core.exceptions import DatabaseError
from src.core.logging import mask_email
from src.domain.entities.account import Account
from src.domain.interfaces.repositories import IAccountRepository

logger = get_logger(__name__)


class AccountRepository(IAccountRepository):
    """SQLAlchemy implementation of `IAccountRepository`.

    Each operation opens its own short-lived session from the factory, so the
    repository is safe to share across concurrent requests.
    """

    STREAM_BATCH_SIZE = 1000

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        """Initialize repository with a session factory.

        Args:
            session_factory: Factory producing SQLAlchemy async sessions
        """
        self._session_factory = session_factory
        logger.debug("AccountRepository initialized")

    async def find_account_by_address(self, address: str) -> Optional[Account]:
        try:
            async with self._session_factory() as session:
                statement = select(Account).where(func.lower(Account.email) == address.lower())
                result = await session.execute(statement)
                account = result.scalars().first()
        except SQLAlchemyError as e:
            logger.error(
                "Error retrieving account by address",
                email=mask_email(address),
                error=str(e),
            )
            raise DatabaseError("Account lookup failed") from e

        logger.debug(
            "Account lookup by address",
            email=mask_email(address),
            found=account is not None,
        )
        return account

    async def find_account_by_id(self, account_id: str) -> Optional[Account]:
        try:
            async with self._session_factory() as session:
                return await session.get(Account, account_id)
        except SQLAlchemyError as e:
            logger.error("Error retrieving account by id", account_id=account_id, error=str(e))
            raise DatabaseError("Account lookup failed") from e

    async def update_password(self, account_id: str, password_hash: str) -> None:
        try:
            async with self._session_factory() as session:
                statement = (
                    update(Account)
                    .where(Account.id == account_id)
                    .values(hashed_password=password_hash, updated_at=datetime.now(timezone.utc))
                )
                result = await session.execute(statement)
                await session.commit()
        except SQLAlchemyError as e:
            logger.error("Error updating account password", account_id=account_id, error=str(e))
            raise DatabaseError("Password update failed") from e

        if result.rowcount != 1:
            raise DatabaseError(f"Account {account_id} not found for password update")
        logger.info("Account password updated", account_id=account_id)

    async def enumerate_all_addresses(self) -> AsyncIterator[str]:
        try:
            async with self._session_factory() as session:
                statement = select(Account.email).execution_options(
                    yield_per=self.STREAM_BATCH_SIZE
                )
                result = await session.stream_scalars(statement)
                async for email in result:
                    yield email
        except SQLAlchemyError as e:
            logger.error("Error enumerating account addresses", error=str(e))
            raise DatabaseError("Account enumeration failed") from e
