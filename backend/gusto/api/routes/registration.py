"""
Registration endpoint: multipart submission with payment screenshot.
"""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from gusto.db.session import get_db
from gusto.schemas.registration import DependencyErrorResponse, ErrorResponse, RegistrationResponse
from gusto.services.notification_service import NotificationDispatcher
from gusto.services.registration_service import RegistrationPayload, RegistrationService
from gusto.services.strategy_factory import get_dispatcher, get_registration_service

router = APIRouter(tags=["Registration"])


@router.post(
    "/register",
    response_model=RegistrationResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid submission"},
        409: {"model": ErrorResponse, "description": "Email or mobile already registered"},
        500: {"model": DependencyErrorResponse, "description": "Storage or database failure"},
    },
)
async def register(
    background_tasks: BackgroundTasks,
    name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    mobile: Optional[str] = Form(None),
    college: Optional[str] = Form(None),
    year: Optional[str] = Form(None),
    selected_event_ids: Optional[str] = Form(None, alias="selectedEventIds"),
    fallback_selections: Optional[str] = Form(None, alias="fallbackSelections"),
    transaction_id: Optional[str] = Form(None, alias="transactionId"),
    food_preference: Optional[str] = Form(None, alias="foodPreference"),
    pass_id: Optional[str] = Form(None, alias="passId"),
    screenshot: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    service: RegistrationService = Depends(get_registration_service),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """
    Register a participant for their selected events.

    All fields are optional at the form level so that every missing or
    malformed field is reported as a 400 with a message naming it, in a
    fixed order. The confirmation email is scheduled after the response
    is sent and cannot affect it.
    """
    payload = RegistrationPayload(
        name=name,
        email=email,
        mobile=mobile,
        college=college,
        year=year,
        selected_event_ids=selected_event_ids,
        fallback_selections=fallback_selections,
        transaction_id=transaction_id,
        food_preference=food_preference,
        pass_id=pass_id,
    )
    if screenshot is not None:
        payload.screenshot = await screenshot.read()
        payload.screenshot_filename = screenshot.filename
        payload.screenshot_content_type = screenshot.content_type

    outcome = await service.submit(db, payload)
    background_tasks.add_task(dispatcher.dispatch, outcome.notification)

    return RegistrationResponse(
        unique_code=outcome.unique_code,
        events=outcome.event_titles,
        amount=outcome.amount,
        has_submission_events=outcome.has_submission_events,
    )
