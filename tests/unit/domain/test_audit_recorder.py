"""Tests for the audit recorder."""

import pytest

from src.domain.services.audit.audit_recorder import AuditRecorder
from src.domain.value_objects.outcomes import AuditOutcome
from tests.factories import FakeAuditStore


@pytest.fixture
def audit_store():
    return FakeAuditStore()


@pytest.fixture
def recorder(audit_store):
    return AuditRecorder(audit_store)


class TestAuditRecorder:
    @pytest.mark.asyncio
    async def test_record_appends_one_row(self, recorder, audit_store):
        await recorder.record(
            correlation_id="corr-1",
            account_id="acct-1",
            caller_address="203.0.113.5",
            outcome=AuditOutcome.REQUESTED,
            metadata={"credential_id": "cred-1"},
        )

        [row] = audit_store.records
        assert row.correlation_id == "corr-1"
        assert row.account_id == "acct-1"
        assert row.request_ip == "203.0.113.5"
        assert row.outcome == "requested"
        assert row.meta == {"credential_id": "cred-1"}
        assert row.requested_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_record_without_account_or_metadata(self, recorder, audit_store):
        await recorder.record("corr-2", None, None, AuditOutcome.BLOOM_MISS)

        [row] = audit_store.records
        assert row.account_id is None
        assert row.meta == {}

    @pytest.mark.asyncio
    async def test_record_swallows_store_failure(self, recorder, audit_store):
        audit_store.fail = True

        await recorder.record("corr-3", "acct-1", "203.0.113.5", AuditOutcome.RESET)

        assert audit_store.records == []

    @pytest.mark.asyncio
    async def test_history_newest_first(self, recorder):
        await recorder.record("corr-a", "acct-1", None, AuditOutcome.REQUESTED)
        await recorder.record("corr-b", "acct-2", None, AuditOutcome.REQUESTED)
        await recorder.record("corr-c", "acct-1", None, AuditOutcome.RESET)

        history = await recorder.history("acct-1")

        assert [r.correlation_id for r in history] == ["corr-c", "corr-a"]

    @pytest.mark.asyncio
    async def test_history_is_empty_when_store_fails(self, recorder, audit_store):
        await recorder.record("corr-a", "acct-1", None, AuditOutcome.REQUESTED)
        audit_store.fail = True

        assert await recorder.history("acct-1") == []
