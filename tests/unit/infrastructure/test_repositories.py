"""Tests for the SQLAlchemy repositories with mocked sessions."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from src.core.exceptions import DatabaseError
from src.domain.entities.password_reset_audit import PasswordResetAudit
from src.infrastructure.repositories import AccountRepository, AuditRepository
from tests.factories import create_fake_account


@pytest.fixture
def session():
    mock_session = AsyncMock()
    mock_session.add = MagicMock()
    return mock_session


@pytest.fixture
def session_factory(session):
    factory = MagicMock()
    factory.return_value.__aenter__ = AsyncMock(return_value=session)
    factory.return_value.__aexit__ = AsyncMock(return_value=False)
    return factory


def db_failure():
    return OperationalError("SELECT 1", {}, Exception("connection refused"))


class TestAccountRepository:
    @pytest.mark.asyncio
    async def test_find_by_address(self, session, session_factory):
        account = create_fake_account(email="alice@example.com")
        result = MagicMock()
        result.scalars.return_value.first.return_value = account
        session.execute.return_value = result

        found = await AccountRepository(session_factory).find_account_by_address("alice@example.com")

        assert found is account

    @pytest.mark.asyncio
    async def test_find_by_id(self, session, session_factory):
        account = create_fake_account(id="acct-1")
        session.get.return_value = account

        assert await AccountRepository(session_factory).find_account_by_id("acct-1") is account

    @pytest.mark.asyncio
    async def test_lookup_failure_raises_database_error(self, session, session_factory):
        session.execute.side_effect = db_failure()

        with pytest.raises(DatabaseError):
            await AccountRepository(session_factory).find_account_by_address("alice@example.com")

    @pytest.mark.asyncio
    async def test_update_password_commits(self, session, session_factory):
        session.execute.return_value = MagicMock(rowcount=1)

        await AccountRepository(session_factory).update_password("acct-1", "$argon2id$new")

        session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_update_password_for_missing_account(self, session, session_factory):
        session.execute.return_value = MagicMock(rowcount=0)

        with pytest.raises(DatabaseError):
            await AccountRepository(session_factory).update_password("ghost", "$argon2id$new")

    @pytest.mark.asyncio
    async def test_enumerate_all_addresses_streams(self, session, session_factory):
        async def rows():
            for email in ("a@example.com", "b@example.com"):
                yield email

        session.stream_scalars.return_value = rows()

        addresses = [a async for a in AccountRepository(session_factory).enumerate_all_addresses()]

        assert addresses == ["a@example.com", "b@example.com"]


class TestAuditRepository:
    @pytest.mark.asyncio
    async def test_append_commits(self, session, session_factory):
        record = PasswordResetAudit(correlation_id="c", outcome="requested")

        await AuditRepository(session_factory).append(record)

        session.add.assert_called_once_with(record)
        session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_append_failure_raises_database_error(self, session, session_factory):
        session.commit.side_effect = db_failure()

        with pytest.raises(DatabaseError):
            await AuditRepository(session_factory).append(
                PasswordResetAudit(correlation_id="c", outcome="requested")
            )

    @pytest.mark.asyncio
    async def test_list_for_account(self, session, session_factory):
        rows = [PasswordResetAudit(correlation_id="c", outcome="reset", account_id="acct-1")]
        result = MagicMock()
        result.scalars.return_value.all.return_value = rows
        session.execute.return_value = result

        assert await AuditRepository(session_factory).list_for_account("acct-1") == rows
