"""Durable audit store backed by the `password_resets_audit` table."""

from typing import List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from structlog import get_logger

from src.core.exceptions import DatabaseError
from src.domain.entities.password_reset_audit import PasswordResetAudit
from src.domain.interfaces.repositories import IAuditStore

logger = get_logger(__name__)


class AuditRepository(IAuditStore):
    """Appends audit rows in their own session, independent of request state."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def append(self, record: PasswordResetAudit) -> None:
        try:
            async with self._session_factory() as session:
                session.add(record)
                await session.commit()
        except SQLAlchemyError as e:
            raise DatabaseError("Audit append failed") from e

    async def list_for_account(self, account_id: str, limit: int = 50) -> List[PasswordResetAudit]:
        try:
            async with self._session_factory() as session:
                statement = (
                    select(PasswordResetAudit)
                    .where(PasswordResetAudit.account_id == account_id)
                    .order_by(PasswordResetAudit.requested_at.desc())
                    .limit(limit)
                )
                result = await session.execute(statement)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Error listing audit records", account_id=account_id, error=str(e))
            raise DatabaseError("Audit query failed") from e
