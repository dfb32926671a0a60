"""
Pytest fixtures for test database, catalog, service and client.

Each test gets its own SQLite file database (through aiosqlite) under
tmp_path, so concurrent sessions see each other's commits exactly as they
would against PostgreSQL. Set TEST_DATABASE_URL to run against a real
PostgreSQL instead.
"""

import asyncio
import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from gusto.main import app
from gusto.core.errors import StorageError
from gusto.db.base import Base
from gusto.db.session import get_db
from gusto.models import EventRegistration, Participant, Payment
from gusto.schemas.catalog import CatalogData
from gusto.services.catalog import Catalog, get_catalog, load_catalog
from gusto.services.interfaces.blob_store import BlobStore
from gusto.services.interfaces.notification_sender import RegistrationNotification
from gusto.services.registration_service import RegistrationPayload, RegistrationService
from gusto.services.storage_service import build_object_key
from gusto.services.strategy_factory import get_dispatcher, get_registration_service

SCREENSHOT = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class InMemoryBlobStore(BlobStore):
    """Keeps uploads in a dict keyed by object key."""

    def __init__(self):
        self.objects: dict[str, bytes] = {}

    async def store(self, data, filename, content_type, category, owner_id) -> str:
        key = build_object_key(category, owner_id, filename)
        self.objects[key] = data
        return f"memory://{key}"


class FailingBlobStore(BlobStore):
    async def store(self, data, filename, content_type, category, owner_id) -> str:
        raise StorageError("bucket unavailable")


class GatedBlobStore(InMemoryBlobStore):
    """
    Holds every upload until the test releases it, so two submissions can
    be parked after their uniqueness pre-check and resumed in a chosen order.
    """

    def __init__(self, expected: int):
        super().__init__()
        self.expected = expected
        self.waiting: list[asyncio.Event] = []
        self.all_arrived = asyncio.Event()

    async def store(self, data, filename, content_type, category, owner_id) -> str:
        gate = asyncio.Event()
        self.waiting.append(gate)
        if len(self.waiting) == self.expected:
            self.all_arrived.set()
        await gate.wait()
        return await super().store(data, filename, content_type, category, owner_id)


class RecordingDispatcher:
    """Stands in for NotificationDispatcher; records instead of sending."""

    def __init__(self):
        self.messages: list[RegistrationNotification] = []

    def dispatch(self, message: RegistrationNotification) -> None:
        self.messages.append(message)


def make_payload(**overrides) -> RegistrationPayload:
    fields = dict(
        name="A",
        email="a@x.com",
        mobile="9000000001",
        college="C",
        year="2nd Year",
        selected_event_ids='["icon-iq"]',
        transaction_id="TXN1",
        screenshot=SCREENSHOT,
        screenshot_filename="payment.png",
        screenshot_content_type="image/png",
    )
    fields.update(overrides)
    return RegistrationPayload(**fields)


def form_data(**overrides) -> dict:
    data = {
        "name": "A",
        "email": "a@x.com",
        "mobile": "9000000001",
        "college": "C",
        "year": "2nd Year",
        "selectedEventIds": '["icon-iq"]',
        "transactionId": "TXN1",
    }
    data.update(overrides)
    return {key: value for key, value in data.items() if value is not None}


def screenshot_file() -> dict:
    return {"screenshot": ("payment.png", SCREENSHOT, "image/png")}


async def count_rows(factory: async_sessionmaker[AsyncSession], model) -> int:
    async with factory() as session:
        result = await session.execute(select(func.count()).select_from(model))
        return result.scalar_one()


async def count_all(factory: async_sessionmaker[AsyncSession]) -> tuple[int, int, int]:
    return (
        await count_rows(factory, Participant),
        await count_rows(factory, EventRegistration),
        await count_rows(factory, Payment),
    )


@pytest.fixture
def catalog() -> Catalog:
    return load_catalog()


@pytest.fixture
def make_catalog():
    """Build a fixture catalog from plain dicts."""

    def _make(events: list[dict], max_total: int = 3, max_technical: int = 2, max_non_technical: int = 2) -> Catalog:
        return Catalog.from_data(
            CatalogData.model_validate(
                {
                    "default_pass_id": "test",
                    "passes": [
                        {
                            "id": "test",
                            "name": "Test Pass",
                            "price": 100,
                            "max_total": max_total,
                            "max_technical": max_technical,
                            "max_non_technical": max_non_technical,
                        }
                    ],
                    "events": events,
                }
            )
        )

    return _make


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    """Create tables, yield the engine, then drop tables for isolation."""
    url = os.environ.get("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    test_engine = create_async_engine(url, echo=False)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def service(catalog, blob_store) -> RegistrationService:
    return RegistrationService(catalog=catalog, blob_store=blob_store)


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest_asyncio.fixture(scope="function")
async def client(
    session_factory,
    catalog: Catalog,
    service: RegistrationService,
    dispatcher: RecordingDispatcher,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with database, catalog, service and dispatcher overridden."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_catalog] = lambda: catalog
    app.dependency_overrides[get_registration_service] = lambda: service
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def find_event(catalog: Catalog, event_id: str):
    event = catalog.events.lookup_event(event_id)
    assert event is not None, event_id
    return event


def events(catalog: Catalog, *event_ids: str) -> list:
    return [find_event(catalog, event_id) for event_id in event_ids]
