"""Tests for the three-namespace reset rate limiter."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from src.core.exceptions import StoreUnavailableError
from src.domain.services.rate_limiting.reset_rate_limiter import ResetRateLimiter
from src.domain.value_objects.rate_limit import RateLimitNamespace, RateLimitRule
from src.infrastructure.stores import InMemoryKeyValueStore


def make_rules(fail_open: bool = True, limit: int = 3, window: int = 60):
    return {
        namespace: RateLimitRule(limit=limit, window_seconds=window, fail_open=fail_open)
        for namespace in RateLimitNamespace
    }


@pytest.fixture
def limiter():
    return ResetRateLimiter(InMemoryKeyValueStore(), make_rules())


class TestResetRateLimiter:
    def test_requires_a_rule_for_every_namespace(self):
        rules = make_rules()
        del rules[RateLimitNamespace.ACCOUNT]

        with pytest.raises(ValueError, match="ACCOUNT"):
            ResetRateLimiter(InMemoryKeyValueStore(), rules)

    @pytest.mark.asyncio
    async def test_allows_up_to_limit_then_denies(self, limiter):
        results = [await limiter.allow_caller("203.0.113.7") for _ in range(5)]

        assert results == [True, True, True, False, False]

    @pytest.mark.asyncio
    async def test_namespaces_are_independent(self, limiter):
        for _ in range(3):
            await limiter.allow_caller("same-identity")

        assert await limiter.allow_caller("same-identity") is False
        assert await limiter.allow_account("same-identity") is True
        assert await limiter.allow_credential_attempt("same-identity") is True

    @pytest.mark.asyncio
    async def test_concurrent_checks_never_exceed_limit(self, limiter):
        results = await asyncio.gather(
            *(limiter.allow_account("acct-1") for _ in range(3 * 3))
        )

        assert sum(results) == 3

    @pytest.mark.asyncio
    async def test_explicit_limit_overrides_rule(self, limiter):
        first = await limiter.check_and_increment(RateLimitNamespace.ACCOUNT, "acct-2", limit=1)
        second = await limiter.check_and_increment(RateLimitNamespace.ACCOUNT, "acct-2", limit=1)

        assert (first, second) == (True, False)

    @pytest.mark.asyncio
    async def test_uses_namespaced_keys(self):
        store = AsyncMock()
        store.check_and_increment.return_value = True
        limiter = ResetRateLimiter(store, make_rules(limit=7, window=90))

        await limiter.allow_caller("198.51.100.1")
        await limiter.allow_account("acct-3")
        await limiter.allow_credential_attempt("cred-4")

        keys = [c.args for c in store.check_and_increment.call_args_list]
        assert keys == [
            ("password_reset:rate:ip:198.51.100.1", 7, 90),
            ("password_reset:rate:user:acct-3", 7, 90),
            ("password_reset:validate:token:cred-4", 7, 90),
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("fail_open", [True, False])
    async def test_store_failure_follows_rule(self, fail_open):
        store = AsyncMock()
        store.check_and_increment.side_effect = StoreUnavailableError("redis down")
        limiter = ResetRateLimiter(store, make_rules(fail_open=fail_open))

        assert await limiter.allow_caller("203.0.113.9") is fail_open

    @pytest.mark.asyncio
    async def test_clear_resets_counter(self, limiter):
        for _ in range(3):
            await limiter.allow_credential_attempt("cred-5")

        await limiter.clear(RateLimitNamespace.CREDENTIAL, "cred-5")

        assert await limiter.allow_credential_attempt("cred-5") is True

    @pytest.mark.asyncio
    async def test_clear_swallows_store_failure(self):
        store = AsyncMock()
        store.delete.side_effect = StoreUnavailableError("redis down")
        limiter = ResetRateLimiter(store, make_rules())

        await limiter.clear(RateLimitNamespace.CREDENTIAL, "cred-6")
