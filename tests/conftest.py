import os

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("KEY_VALUE_BACKEND", "memory")

from contextlib import asynccontextmanager

import httpx
import pytest
import pytest_asyncio

from src.core.application import create_application
from src.domain.services.password_reset.response_pacer import ResponsePacer
from src.infrastructure.dependency_injection.password_reset_dependencies import (
    build_password_reset_components,
)
from src.infrastructure.stores import InMemoryKeyValueStore
from tests.factories import (
    FakeAccountRepository,
    FakeAuditStore,
    RecordingDispatcher,
    create_fake_account,
)


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def account_repository():
    return FakeAccountRepository()


@pytest.fixture
def audit_store():
    return FakeAuditStore()


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def instant_pacer():
    return ResponsePacer(min_latency_ms=0, jitter_ms=0)


@pytest.fixture
def active_account(account_repository):
    return account_repository.add(
        create_fake_account(email="alice@example.com", name="Alice")
    )


@pytest.fixture
def components(store, account_repository, audit_store, dispatcher, instant_pacer):
    return build_password_reset_components(
        store=store,
        account_repository=account_repository,
        audit_store=audit_store,
        dispatcher=dispatcher,
        pacer=instant_pacer,
    )


@pytest.fixture
def app(components):
    @asynccontextmanager
    async def lifespan(app):
        yield

    application = create_application(lifespan=lifespan)
    application.state.password_reset = components
    return application


@pytest_asyncio.fixture
async def async_client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
