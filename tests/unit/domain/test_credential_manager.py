"""Tests for the reset credential lifecycle."""

import asyncio
import json

import pytest

from src.core.exceptions import CredentialDataError
from src.domain.services.credentials.credential_manager import (
    CredentialManager,
    account_index_key,
    credential_key,
)
from src.domain.services.rate_limiting.reset_rate_limiter import ResetRateLimiter
from src.domain.value_objects.outcomes import VerificationStatus
from src.domain.value_objects.rate_limit import RateLimitNamespace, RateLimitRule
from src.infrastructure.stores import InMemoryKeyValueStore

HMAC_SECRET = "unit-test-hmac-secret-with-enough-length"


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class SuspendingStore(InMemoryKeyValueStore):
    """Holds `set_members` open until released, to interleave other calls."""

    def __init__(self, clock):
        super().__init__(clock=clock)
        self.suspend_set_reads = False
        self.set_read = asyncio.Event()
        self.resume = asyncio.Event()

    async def set_members(self, key):
        members = await super().set_members(key)
        if self.suspend_set_reads:
            self.set_read.set()
            await self.resume.wait()
        return members


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return InMemoryKeyValueStore(clock=clock)


@pytest.fixture
def rate_limiter(store):
    rules = {ns: RateLimitRule(limit=10, window_seconds=300) for ns in RateLimitNamespace}
    return ResetRateLimiter(store, rules)


@pytest.fixture
def manager(store, rate_limiter):
    return CredentialManager(store, rate_limiter, HMAC_SECRET, ttl_seconds=900)


class TestCredentialManagerConstruction:
    def test_rejects_empty_key(self, store, rate_limiter):
        with pytest.raises(ValueError):
            CredentialManager(store, rate_limiter, "")

    def test_rejects_short_secrets(self, store, rate_limiter):
        with pytest.raises(ValueError):
            CredentialManager(store, rate_limiter, HMAC_SECRET, secret_bytes=16)


class TestIssue:
    @pytest.mark.asyncio
    async def test_stores_digest_never_the_secret(self, manager, store):
        issued = await manager.issue("acct-1", "alice@example.com")

        raw = await store.get(credential_key(issued.credential_id.value))
        record = json.loads(raw)
        assert set(record) == {"accountId", "secretDigest", "contactAddress", "issuedAt"}
        assert record["accountId"] == "acct-1"
        assert record["contactAddress"] == "alice@example.com"
        assert issued.secret.value not in raw
        assert len(record["secretDigest"]) == 64

    @pytest.mark.asyncio
    async def test_secret_has_at_least_48_bytes_of_entropy(self, manager):
        issued = await manager.issue("acct-1", "alice@example.com")

        assert len(issued.secret.value) >= 64
        assert issued.expires_in == 900

    @pytest.mark.asyncio
    async def test_record_expires_with_ttl(self, manager, store):
        issued = await manager.issue("acct-1", "alice@example.com")

        assert await store.ttl(credential_key(issued.credential_id.value)) == 900

    @pytest.mark.asyncio
    async def test_ids_and_secrets_are_unique(self, manager):
        first = await manager.issue("acct-1", "alice@example.com")
        second = await manager.issue("acct-1", "alice@example.com")

        assert first.credential_id != second.credential_id
        assert first.secret.value != second.secret.value

    @pytest.mark.asyncio
    async def test_tracks_outstanding_ids_per_account(self, manager, store):
        first = await manager.issue("acct-1", "alice@example.com")
        second = await manager.issue("acct-1", "alice@example.com")

        members = await store.set_members(account_index_key("acct-1"))
        assert members == {first.credential_id.value, second.credential_id.value}


class TestVerify:
    @pytest.mark.asyncio
    async def test_valid_secret(self, manager):
        issued = await manager.issue("acct-1", "alice@example.com")

        result = await manager.verify(issued.credential_id.value, issued.secret.value)

        assert result.is_valid
        assert result.account_id == "acct-1"
        assert result.contact_address == "alice@example.com"

    @pytest.mark.asyncio
    async def test_wrong_secret_is_mismatch(self, manager):
        issued = await manager.issue("acct-1", "alice@example.com")

        result = await manager.verify(issued.credential_id.value, "x" * 64)

        assert result.status is VerificationStatus.MISMATCH
        assert result.account_id is None

    @pytest.mark.asyncio
    async def test_unknown_id_is_not_found(self, manager):
        result = await manager.verify("0b8f3c2e-4a51-4d7e-9f2a-6c1d2e3f4a5b", "x" * 64)

        assert result.status is VerificationStatus.NOT_FOUND

    @pytest.mark.asyncio
    async def test_expired_credential_is_not_found(self, manager, clock):
        issued = await manager.issue("acct-1", "alice@example.com")
        clock.now += 901

        result = await manager.verify(issued.credential_id.value, issued.secret.value)

        assert result.status is VerificationStatus.NOT_FOUND

    @pytest.mark.asyncio
    async def test_digest_key_matters(self, store, rate_limiter, manager):
        issued = await manager.issue("acct-1", "alice@example.com")
        other = CredentialManager(store, rate_limiter, "a-completely-different-hmac-secret")

        result = await other.verify(issued.credential_id.value, issued.secret.value)

        assert result.status is VerificationStatus.MISMATCH

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            "not json",
            json.dumps({"accountId": "acct-1"}),
            json.dumps(
                {
                    "accountId": "acct-1",
                    "secretDigest": "zz",
                    "contactAddress": "alice@example.com",
                    "issuedAt": "2026-01-01T00:00:00+00:00",
                }
            ),
        ],
    )
    async def test_corrupt_record_is_a_fault(self, manager, store, payload):
        credential_id = "0b8f3c2e-4a51-4d7e-9f2a-6c1d2e3f4a5b"
        await store.set(credential_key(credential_id), payload, 900)

        with pytest.raises(CredentialDataError):
            await manager.verify(credential_id, "x" * 64)


class TestConsume:
    @pytest.mark.asyncio
    async def test_consume_removes_credential(self, manager):
        issued = await manager.issue("acct-1", "alice@example.com")

        assert await manager.consume(issued.credential_id.value, "acct-1") is True

        result = await manager.verify(issued.credential_id.value, issued.secret.value)
        assert result.status is VerificationStatus.NOT_FOUND

    @pytest.mark.asyncio
    async def test_second_consume_loses(self, manager):
        issued = await manager.issue("acct-1", "alice@example.com")

        await manager.consume(issued.credential_id.value, "acct-1")

        assert await manager.consume(issued.credential_id.value, "acct-1") is False

    @pytest.mark.asyncio
    async def test_concurrent_consumes_have_one_winner(self, manager):
        issued = await manager.issue("acct-1", "alice@example.com")

        results = await asyncio.gather(
            *(manager.consume(issued.credential_id.value, "acct-1") for _ in range(10))
        )

        assert results.count(True) == 1

    @pytest.mark.asyncio
    async def test_consume_invalidates_siblings_only_for_that_account(self, manager, store):
        first = await manager.issue("acct-1", "alice@example.com")
        second = await manager.issue("acct-1", "alice@example.com")
        unrelated = await manager.issue("acct-2", "bob@example.com")

        await manager.consume(first.credential_id.value, "acct-1")

        sibling = await manager.verify(second.credential_id.value, second.secret.value)
        other = await manager.verify(unrelated.credential_id.value, unrelated.secret.value)
        assert sibling.status is VerificationStatus.NOT_FOUND
        assert other.is_valid
        assert await store.set_members(account_index_key("acct-1")) == set()

    @pytest.mark.asyncio
    async def test_credential_issued_during_consume_stays_indexed(self, clock, rate_limiter):
        store = SuspendingStore(clock=clock)
        manager = CredentialManager(store, rate_limiter, HMAC_SECRET, ttl_seconds=900)
        first = await manager.issue("acct-1", "alice@example.com")

        store.suspend_set_reads = True
        consuming = asyncio.create_task(manager.consume(first.credential_id.value, "acct-1"))
        await store.set_read.wait()
        late = await manager.issue("acct-1", "alice@example.com")
        store.resume.set()
        assert await consuming is True

        assert await store.set_members(account_index_key("acct-1")) == {late.credential_id.value}

        store.suspend_set_reads = False
        latest = await manager.issue("acct-1", "alice@example.com")
        await manager.consume(latest.credential_id.value, "acct-1")

        result = await manager.verify(late.credential_id.value, late.secret.value)
        assert result.status is VerificationStatus.NOT_FOUND

    @pytest.mark.asyncio
    async def test_consume_clears_attempt_counter(self, manager, rate_limiter, store):
        issued = await manager.issue("acct-1", "alice@example.com")
        await rate_limiter.allow_credential_attempt(issued.credential_id.value)
        counter_key = RateLimitNamespace.CREDENTIAL.key_for(issued.credential_id.value)
        assert await store.get(counter_key) == "1"

        await manager.consume(issued.credential_id.value, "acct-1")

        assert await store.get(counter_key) is None


class TestPeek:
    @pytest.mark.asyncio
    async def test_reports_remaining_lifetime(self, manager, clock):
        issued = await manager.issue("acct-1", "alice@example.com")
        clock.now += 100

        assert await manager.peek(issued.credential_id.value) == 800

    @pytest.mark.asyncio
    async def test_absent_for_expired_consumed_and_unknown(self, manager, clock):
        expired = await manager.issue("acct-1", "alice@example.com")
        consumed = await manager.issue("acct-2", "bob@example.com")
        await manager.consume(consumed.credential_id.value, "acct-2")
        clock.now += 901

        assert await manager.peek(expired.credential_id.value) is None
        assert await manager.peek(consumed.credential_id.value) is None
        assert await manager.peek("0b8f3c2e-4a51-4d7e-9f2a-6c1d2e3f4a5b") is None
