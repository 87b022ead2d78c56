"""Tests for Password Reset Request Service.

These tests drive the request flow over in-memory infrastructure and check
that every terminal answers identically while recording the real decision.
"""

from unittest.mock import patch

import pytest

from src.core.exceptions import ValidationError
from src.domain.services.password_reset.password_reset_request_service import (
    EMAIL_REQUIRED_MESSAGE,
    GENERIC_REQUEST_MESSAGE,
    INVALID_EMAIL_MESSAGE,
)
from src.domain.services.password_reset.response_pacer import ResponsePacer
from src.infrastructure.dependency_injection.password_reset_dependencies import (
    build_password_reset_components,
)
from tests.factories import create_fake_account

CALLER = "203.0.113.10"


@pytest.fixture
def service(components):
    return components.request_service


class TestRequestOutcomes:
    @pytest.mark.asyncio
    async def test_registered_address_gets_a_link(
        self, service, components, active_account, dispatcher, audit_store
    ):
        response = await service.request_password_reset("alice@example.com", CALLER, "corr-1")

        assert response == {"message": GENERIC_REQUEST_MESSAGE}
        link = dispatcher.last_link
        assert link["contact_address"] == "alice@example.com"
        assert link["display_name"] == "Alice"
        verification = await components.credential_manager.verify(
            link["credential_id"], link["secret"]
        )
        assert verification.is_valid
        assert verification.account_id == active_account.id

        [row] = audit_store.records
        assert row.outcome == "requested"
        assert row.account_id == active_account.id
        assert row.correlation_id == "corr-1"
        assert row.request_ip == CALLER
        assert row.meta == {"credential_id": link["credential_id"]}

    @pytest.mark.asyncio
    async def test_address_is_normalized(self, service, active_account, dispatcher):
        await service.request_password_reset("  ALICE@Example.com ", CALLER)

        assert dispatcher.last_link["contact_address"] == "alice@example.com"

    @pytest.mark.asyncio
    async def test_unknown_address_with_cold_filter(
        self, service, account_repository, dispatcher, audit_store
    ):
        response = await service.request_password_reset("ghost@example.com", CALLER)

        assert response == {"message": GENERIC_REQUEST_MESSAGE}
        assert account_repository.address_lookups == 1
        assert dispatcher.reset_links == []
        assert audit_store.outcomes() == ["user_not_found"]

    @pytest.mark.asyncio
    async def test_filter_miss_skips_system_of_record(
        self, service, components, active_account, account_repository, audit_store
    ):
        await components.membership_index.rebuild()

        response = await service.request_password_reset("ghost@example.com", CALLER)

        assert response == {"message": GENERIC_REQUEST_MESSAGE}
        assert account_repository.address_lookups == 0
        assert audit_store.outcomes() == ["bloom_miss"]

    @pytest.mark.asyncio
    async def test_inactive_account_is_treated_as_unknown(
        self, service, account_repository, dispatcher, audit_store
    ):
        account_repository.add(create_fake_account(email="dormant@example.com", is_active=False))

        response = await service.request_password_reset("dormant@example.com", CALLER)

        assert response == {"message": GENERIC_REQUEST_MESSAGE}
        assert dispatcher.reset_links == []
        assert audit_store.outcomes() == ["user_not_found"]

    @pytest.mark.asyncio
    async def test_account_limit_stops_issuing(
        self, service, active_account, dispatcher, audit_store
    ):
        for i in range(6):
            response = await service.request_password_reset("alice@example.com", f"198.51.100.{i}")
            assert response == {"message": GENERIC_REQUEST_MESSAGE}

        assert len(dispatcher.reset_links) == 5
        assert audit_store.outcomes()[-1] == "account_rate_limited"
        assert audit_store.records[-1].account_id == active_account.id

    @pytest.mark.asyncio
    async def test_caller_limit_stops_before_lookup(
        self, service, account_repository, audit_store
    ):
        for i in range(20):
            await service.request_password_reset(f"ghost{i}@example.com", CALLER)
        lookups = account_repository.address_lookups

        response = await service.request_password_reset("ghost-final@example.com", CALLER)

        assert response == {"message": GENERIC_REQUEST_MESSAGE}
        assert account_repository.address_lookups == lookups
        assert audit_store.outcomes()[-1] == "caller_rate_limited"

    @pytest.mark.asyncio
    async def test_missing_caller_address_is_counted_as_unknown(self, service, audit_store, store):
        await service.request_password_reset("ghost@example.com", None)

        assert audit_store.records[0].request_ip == "unknown"
        assert await store.get("password_reset:rate:ip:unknown") == "1"

    @pytest.mark.asyncio
    async def test_missing_caller_address_is_logged(self, service):
        with patch(
            "src.domain.services.password_reset.password_reset_request_service.logger"
        ) as mock_logger:
            await service.request_password_reset("ghost@example.com", None, "corr-9")

        mock_logger.warning.assert_any_call(
            "Reset request without caller address", correlation_id="corr-9"
        )

    @pytest.mark.asyncio
    async def test_known_caller_address_is_not_flagged(self, service):
        with patch(
            "src.domain.services.password_reset.password_reset_request_service.logger"
        ) as mock_logger:
            await service.request_password_reset("ghost@example.com", CALLER, "corr-10")

        mock_logger.warning.assert_not_called()

    @pytest.mark.asyncio
    async def test_dispatch_failure_still_answers_generically(
        self, service, active_account, dispatcher, audit_store
    ):
        dispatcher.fail = True

        response = await service.request_password_reset("alice@example.com", CALLER)

        assert response == {"message": GENERIC_REQUEST_MESSAGE}
        [row] = audit_store.records
        assert row.outcome == "requested"
        assert row.meta["dispatch_failed"] is True

    @pytest.mark.asyncio
    async def test_internal_fault_answers_generically(
        self, service, active_account, account_repository, audit_store
    ):
        account_repository.fail_lookups = True

        response = await service.request_password_reset("alice@example.com", CALLER)

        assert response == {"message": GENERIC_REQUEST_MESSAGE}
        [row] = audit_store.records
        assert row.outcome == "internal_error"
        assert row.meta == {"error": "DatabaseError"}

    @pytest.mark.asyncio
    async def test_audit_outage_does_not_change_answer(
        self, service, active_account, audit_store, dispatcher
    ):
        audit_store.fail = True

        response = await service.request_password_reset("alice@example.com", CALLER)

        assert response == {"message": GENERIC_REQUEST_MESSAGE}
        assert len(dispatcher.reset_links) == 1


class TestRequestValidation:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("email", [None, "", "   "])
    async def test_missing_email(self, service, audit_store, email):
        with pytest.raises(ValidationError) as exc_info:
            await service.request_password_reset(email, CALLER)

        assert exc_info.value.message == EMAIL_REQUIRED_MESSAGE
        assert audit_store.records == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email", ["not-an-email", "a@b", 12345])
    async def test_malformed_email(self, service, audit_store, email):
        with pytest.raises(ValidationError) as exc_info:
            await service.request_password_reset(email, CALLER)

        assert exc_info.value.message == INVALID_EMAIL_MESSAGE
        assert audit_store.records == []


class TestRequestPacing:
    @pytest.mark.asyncio
    async def test_every_terminal_is_padded(
        self, store, account_repository, audit_store, dispatcher, active_account
    ):
        sleeps = []

        async def record_sleep(seconds):
            sleeps.append(seconds)

        pacer = ResponsePacer(min_latency_ms=300, jitter_ms=0, sleep=record_sleep)
        service = build_password_reset_components(
            store, account_repository, audit_store, dispatcher, pacer=pacer
        ).request_service

        await service.request_password_reset("alice@example.com", CALLER)
        await service.request_password_reset("ghost@example.com", CALLER)
        account_repository.fail_lookups = True
        await service.request_password_reset("alice@example.com", CALLER)

        assert len(sleeps) == 3
        assert all(0 < s <= 0.3 for s in sleeps)
