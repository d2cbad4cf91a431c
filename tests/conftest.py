import asyncio
import os
from collections.abc import AsyncGenerator
from typing import Dict, List, Optional

# Must be set before listpilot is imported: settings and the engine are module level
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JOB_TICKER_ENABLED"] = "false"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from listpilot.api.v1 import dependencies
from listpilot.db.repositories.accounts import AccountRepository
from listpilot.db.session import async_session_factory, engine as db_engine
from listpilot.main import app
from listpilot.models.base import Base
from listpilot.schemas.job import Contact
from listpilot.services.event_bus.bus import EventBus
from listpilot.services.jobs.engine import JobEngine, lookup_account_api_key
from listpilot.services.provider.client import ContactSubmission


TEST_ACCOUNTS = {
    "acc-main": "xkeysib-main",
    "acc-other": "xkeysib-other",
}


class FakeBrevoClient:
    """
    Stand-in for BrevoClient in job engine tests.

    Records every submitted email. When `gate` is given, each submission
    waits for it, which keeps a job in flight for as long as a test needs.
    """

    def __init__(
        self,
        outcomes: Optional[Dict[str, ContactSubmission]] = None,
        gate: Optional[asyncio.Event] = None,
        error: Optional[Exception] = None
    ):
        self.outcomes = outcomes or {}
        self.gate = gate
        self.error = error
        self.submitted: List[str] = []
        self.closed = False

    async def create_contact(self, list_id: str, contact: Contact) -> ContactSubmission:
        self.submitted.append(contact.email)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        default = ContactSubmission(True, 201, {"id": len(self.submitted)})
        return self.outcomes.get(contact.email, default)

    async def aclose(self) -> None:
        self.closed = True


async def fake_account_lookup(account_id: str) -> Optional[str]:
    return TEST_ACCOUNTS.get(account_id)


async def wait_until(predicate, timeout: float = 2.0) -> None:
    """Yield to the event loop until `predicate()` holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.005)


@pytest.fixture()
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture()
def fake_client() -> FakeBrevoClient:
    return FakeBrevoClient()


def make_engine(event_bus, client, account_lookup=fake_account_lookup) -> JobEngine:
    return JobEngine(
        event_bus,
        account_lookup=account_lookup,
        client_factory=lambda api_key: client,
        pause_poll_interval=0.05,
        tick_interval=0.01,
        discard_grace=0,
    )


@pytest_asyncio.fixture()
async def job_engine(event_bus, fake_client) -> AsyncGenerator[JobEngine, None]:
    engine = make_engine(event_bus, fake_client)
    yield engine
    await engine.shutdown()


@pytest_asyncio.fixture()
async def api_engine(event_bus, fake_client) -> AsyncGenerator[JobEngine, None]:
    """Engine resolving accounts from the test database, as the app does."""
    engine = make_engine(event_bus, fake_client, account_lookup=lookup_account_api_key)
    yield engine
    await engine.shutdown()


@pytest_asyncio.fixture(autouse=True)
async def reset_db() -> AsyncGenerator[None, None]:
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield


@pytest_asyncio.fixture()
async def db_session():
    async with async_session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def account_repo(db_session) -> AccountRepository:
    return AccountRepository(db_session)


@pytest_asyncio.fixture()
async def async_client(api_engine) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[dependencies.get_engine] = lambda: api_engine
    transport = ASGITransport(app=app)
    async with AsyncClient(base_url="http://testserver", transport=transport) as client:
        yield client
    app.dependency_overrides.clear()
