"""
Tests for the registration endpoint: multipart submission end to end.
"""

import re

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from gusto.core.errors import NotificationError
from gusto.models import EventRegistration
from gusto.services.registration_service import RegistrationService
from gusto.services.notification_service import NotificationDispatcher
from gusto.services.strategy_factory import get_dispatcher, get_registration_service
from gusto.main import app
from conftest import FailingBlobStore, count_all, form_data, screenshot_file


@pytest.mark.asyncio
async def test_register_single_event(client: AsyncClient, session_factory, dispatcher):
    """One Non-Technical event under the general pass."""
    response = await client.post("/api/v1/register", data=form_data(), files=screenshot_file())

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert re.match(r"^GUSTO26-[0-9A-F]{8}$", data["uniqueCode"])
    assert data["events"] == ["Icon IQ"]
    assert data["amount"] == 250
    assert data["hasSubmissionEvents"] is False
    assert await count_all(session_factory) == (1, 1, 1)

    # Confirmation email scheduled after the response
    assert len(dispatcher.messages) == 1
    assert dispatcher.messages[0].unique_code == data["uniqueCode"]


@pytest.mark.asyncio
async def test_register_abstract_event_with_fallback(client: AsyncClient, session_factory):
    response = await client.post(
        "/api/v1/register",
        data=form_data(
            selectedEventIds='["paper-presentation"]',
            fallbackSelections='{"paper-presentation": "icon-iq"}',
            passId="general",
            foodPreference="NON_VEG",
        ),
        files=screenshot_file(),
    )

    assert response.status_code == 200
    assert response.json()["hasSubmissionEvents"] is True

    async with session_factory() as session:
        row = (
            await session.execute(
                select(EventRegistration).where(EventRegistration.event_id == "paper-presentation")
            )
        ).scalar_one()
    assert row.fallback_event_id == "icon-iq"


@pytest.mark.asyncio
async def test_register_unknown_event(client: AsyncClient, session_factory, dispatcher):
    response = await client.post(
        "/api/v1/register",
        data=form_data(selectedEventIds='["does-not-exist"]'),
        files=screenshot_file(),
    )

    assert response.status_code == 400
    assert "Invalid event id" in response.json()["error"]
    assert await count_all(session_factory) == (0, 0, 0)
    assert dispatcher.messages == []


@pytest.mark.asyncio
async def test_register_bad_mobile(client: AsyncClient, session_factory):
    response = await client.post(
        "/api/v1/register",
        data=form_data(mobile="12345"),
        files=screenshot_file(),
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Mobile must be 10 digits"}
    assert await count_all(session_factory) == (0, 0, 0)


@pytest.mark.asyncio
async def test_register_missing_fields_is_400_not_422(client: AsyncClient):
    """Absent form fields are reported by name, in order."""
    response = await client.post("/api/v1/register", data={"email": "a@x.com"})
    assert response.status_code == 400
    assert response.json() == {"error": "Name is required"}

    response = await client.post("/api/v1/register", data=form_data())
    assert response.status_code == 400
    assert response.json() == {"error": "Payment screenshot is required"}


@pytest.mark.asyncio
async def test_register_duplicate_is_409(client: AsyncClient, session_factory, dispatcher):
    first = await client.post("/api/v1/register", data=form_data(), files=screenshot_file())
    assert first.status_code == 200

    second = await client.post(
        "/api/v1/register",
        data=form_data(email="someone.else@x.com"),
        files=screenshot_file(),
    )
    assert second.status_code == 409
    assert second.json() == {"error": "Email or mobile already registered"}
    assert await count_all(session_factory) == (1, 1, 1)
    assert len(dispatcher.messages) == 1


@pytest.mark.asyncio
async def test_register_upload_failure_is_500(client: AsyncClient, catalog, session_factory, dispatcher):
    app.dependency_overrides[get_registration_service] = lambda: RegistrationService(
        catalog=catalog, blob_store=FailingBlobStore()
    )

    response = await client.post("/api/v1/register", data=form_data(), files=screenshot_file())

    assert response.status_code == 500
    data = response.json()
    assert data["error"] == "Registration failed."
    assert data["detail"].startswith("Payment screenshot upload failed")
    assert "bucket unavailable" in data["reason"]
    assert await count_all(session_factory) == (0, 0, 0)
    assert dispatcher.messages == []


@pytest.mark.asyncio
async def test_notification_failure_does_not_affect_response(client: AsyncClient, session_factory, dispatcher):
    """A sender blowing up after commit is invisible to the client."""

    class ExplodingSender:
        def send(self, message):
            raise NotificationError("smtp down")

    real_dispatcher = NotificationDispatcher(ExplodingSender(), max_workers=1)
    app.dependency_overrides[get_dispatcher] = lambda: real_dispatcher
    try:
        response = await client.post("/api/v1/register", data=form_data(), files=screenshot_file())
    finally:
        real_dispatcher.shutdown(wait=True)

    assert response.status_code == 200
    assert await count_all(session_factory) == (1, 1, 1)


@pytest.mark.asyncio
async def test_register_overlong_field_is_400_before_upload(client: AsyncClient, session_factory, blob_store):
    response = await client.post(
        "/api/v1/register",
        data=form_data(year="Second Year Undergraduate"),
        files=screenshot_file(),
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Year must be at most 20 characters"}
    assert blob_store.objects == {}
    assert await count_all(session_factory) == (0, 0, 0)
