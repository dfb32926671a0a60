"""
Registration service: admission control and atomic persistence.

CONSISTENCY STRATEGY: Pre-check + Unique Constraints
=====================================================

Problem:
  Two submissions with the same email arrive at once. Both look for an
  existing participant, both find none, both insert.
  Result: a duplicate participant with two payments.

Solution:
  users.email and users.mobile each carry a UNIQUE constraint. The
  SELECT ... WHERE email = :email OR mobile = :mobile pre-check is kept
  because it rejects the common case before the screenshot upload, but the
  constraint is what decides a race: the losing INSERT blocks on the unique
  index until the winner commits, then fails with a unique violation, which
  is reported as the same ConflictError as the pre-check.

  READ COMMITTED is sufficient: unique checks always see committed rows.

  unique_code is random, so its UNIQUE constraint can also fire. That
  collision is told apart from an email or mobile conflict by looking the
  code up after the rollback, and the whole transaction is retried with a
  fresh code.

Atomicity:
  The participant, its event registrations and its payment are written in
  one `async with session.begin()` block. Any exception inside the block,
  including cancellation when the client disconnects, rolls the
  transaction back before it propagates. Only the screenshot upload is
  outside the database's reach; an object uploaded by a transaction that
  later rolls back stays behind unreferenced.

Order inside the transaction:
  1. uniqueness pre-check
  2. participant id (the unique code is drawn before each attempt)
  3. screenshot upload
  4. participant row
  5. event registration rows (one multi-row INSERT)
  6. payment row
  7. commit
"""

import json
import re
import secrets
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from sqlalchemy import insert, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gusto.core.errors import ConflictError, DependencyError, FailureKind, RegistrationError, ValidationError
from gusto.core.logging import get_logger
from gusto.core.metrics import record_registration_attempt, registration_latency
from gusto.models.event_registration import EventRegistration
from gusto.models.participant import Participant
from gusto.models.payment import Payment
from gusto.schemas.catalog import AdmissionMode, Event, Pass
from gusto.services.catalog import Catalog
from gusto.services.interfaces.blob_store import BlobStore
from gusto.services.interfaces.noop_gate import NoopSubmissionGate
from gusto.services.interfaces.notification_sender import NotifiedEvent, RegistrationNotification
from gusto.services.interfaces.submission_gate import SubmissionGate
from gusto.services.selection_validator import check_fallback, check_selection

logger = get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MOBILE_PATTERN = re.compile(r"^[0-9]{10}$")
FOOD_PREFERENCES = ("VEG", "NON_VEG")
SCREENSHOT_CATEGORY = "payments"
UNIQUE_CODE_ATTEMPTS = 3


def _column_length(model, column: str) -> int:
    return model.__table__.c[column].type.length


# (payload attribute, label, column width)
REQUIRED_FIELDS = (
    ("name", "Name", _column_length(Participant, "name")),
    ("email", "Email", _column_length(Participant, "email")),
    ("mobile", "Mobile", _column_length(Participant, "mobile")),
    ("college", "College", _column_length(Participant, "college")),
    ("year", "Year", _column_length(Participant, "year")),
)
TRANSACTION_ID_LENGTH = _column_length(Payment, "transaction_id")


@dataclass
class RegistrationPayload:
    """Raw submission as received from the multipart form."""

    name: Optional[str] = None
    email: Optional[str] = None
    mobile: Optional[str] = None
    college: Optional[str] = None
    year: Optional[str] = None
    selected_event_ids: Union[str, list, None] = None
    fallback_selections: Union[str, dict, None] = None
    transaction_id: Optional[str] = None
    food_preference: Optional[str] = None
    pass_id: Optional[str] = None
    screenshot: Optional[bytes] = None
    screenshot_filename: Optional[str] = None
    screenshot_content_type: Optional[str] = None


@dataclass(frozen=True)
class ValidatedSubmission:
    name: str
    email: str
    mobile: str
    college: str
    year: str
    transaction_id: str
    food_preference: str
    pass_: Pass
    events: tuple[Event, ...]
    fallbacks: dict[str, str]
    screenshot: bytes
    screenshot_filename: str
    screenshot_content_type: str

    def fallback_for(self, event: Event) -> Optional[str]:
        if event.admission_mode != AdmissionMode.ABSTRACT:
            return None
        return self.fallbacks.get(event.id)


@dataclass(frozen=True)
class RegistrationOutcome:
    participant_id: uuid.UUID
    unique_code: str
    event_titles: list[str]
    amount: int
    has_submission_events: bool
    notification: RegistrationNotification = field(repr=False)


def generate_unique_code(prefix: str) -> str:
    """`<prefix>-XXXXXXXX`: 8 upper-case hex chars from a CSPRNG."""
    return f"{prefix}-{secrets.token_hex(4).upper()}"


def _clean(value: Optional[str]) -> str:
    return value.strip() if isinstance(value, str) else ""


def _parse_json(value: Any, expected: type, message: str) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            raise ValidationError(message)
    if not isinstance(value, expected):
        raise ValidationError(message)
    return value


class RegistrationService:
    def __init__(
        self,
        catalog: Catalog,
        blob_store: BlobStore,
        gate: Optional[SubmissionGate] = None,
        registration_price: int = 250,
        unique_code_prefix: str = "GUSTO26",
        max_screenshot_bytes: int = 5 * 1024 * 1024,
    ):
        self.catalog = catalog
        self.blob_store = blob_store
        self.gate = gate or NoopSubmissionGate()
        self.registration_price = registration_price
        self.unique_code_prefix = unique_code_prefix
        self.max_screenshot_bytes = max_screenshot_bytes

    # ------------------------------------------------------------------
    # Validation (no I/O, fail fast, first violation wins)
    # ------------------------------------------------------------------

    def validate(self, payload: RegistrationPayload) -> ValidatedSubmission:
        # 1. personal fields
        for attr, label, max_length in REQUIRED_FIELDS:
            value = _clean(getattr(payload, attr))
            if not value:
                raise ValidationError(f"{label} is required")
            if len(value) > max_length:
                raise ValidationError(f"{label} must be at most {max_length} characters")

        # 2. payment fields
        transaction_id = _clean(payload.transaction_id)
        if not transaction_id:
            raise ValidationError("Transaction ID is required")
        if len(transaction_id) > TRANSACTION_ID_LENGTH:
            raise ValidationError(f"Transaction ID must be at most {TRANSACTION_ID_LENGTH} characters")
        if not payload.screenshot:
            raise ValidationError("Payment screenshot is required")
        if len(payload.screenshot) > self.max_screenshot_bytes:
            limit_mb = self.max_screenshot_bytes / (1024 * 1024)
            raise ValidationError(f"Payment screenshot must be at most {limit_mb:g} MB")

        # 3. shapes
        email = _clean(payload.email).lower()
        if not EMAIL_PATTERN.match(email):
            raise ValidationError("Invalid email format")
        mobile = _clean(payload.mobile)
        if not MOBILE_PATTERN.match(mobile):
            raise ValidationError("Mobile must be 10 digits")
        food_preference = _clean(payload.food_preference).upper() or "VEG"
        if food_preference not in FOOD_PREFERENCES:
            raise ValidationError("Food preference must be VEG or NON_VEG")

        # 4. event ids and pass
        events = self._resolve_events(payload.selected_event_ids)
        pass_ = self._resolve_pass(payload.pass_id)

        # 5. capacity and conflicts, replayed server-side
        admission = check_selection(events, pass_)
        if not admission.ok:
            raise ValidationError(admission.reason)

        # 6. fallbacks for abstract events
        fallbacks = self._resolve_fallbacks(events, payload.fallback_selections)

        return ValidatedSubmission(
            name=_clean(payload.name),
            email=email,
            mobile=mobile,
            college=_clean(payload.college),
            year=_clean(payload.year),
            transaction_id=transaction_id,
            food_preference=food_preference,
            pass_=pass_,
            events=events,
            fallbacks=fallbacks,
            screenshot=payload.screenshot,
            screenshot_filename=payload.screenshot_filename or "payment.png",
            screenshot_content_type=payload.screenshot_content_type or "application/octet-stream",
        )

    def _resolve_events(self, raw: Union[str, list, None]) -> tuple[Event, ...]:
        ids = _parse_json(raw, list, "selectedEventIds must be a JSON array of event ids")
        if not ids:
            raise ValidationError("Select at least 1 event")
        if not all(isinstance(event_id, str) for event_id in ids):
            raise ValidationError("selectedEventIds must be a JSON array of event ids")

        duplicates = sorted({event_id for event_id in ids if ids.count(event_id) > 1})
        if duplicates:
            raise ValidationError(f"Duplicate event id(s): {', '.join(duplicates)}")

        events = [self.catalog.events.lookup_event(event_id) for event_id in ids]
        resolved = tuple(event for event in events if event is not None)
        if len(resolved) != len(ids):
            unknown = [event_id for event_id, event in zip(ids, events) if event is None]
            raise ValidationError(f"Invalid event id(s): {', '.join(unknown)}")
        return resolved

    def _resolve_pass(self, raw: Optional[str]) -> Pass:
        pass_id = _clean(raw)
        if not pass_id:
            return self.catalog.passes.default_pass
        pass_ = self.catalog.passes.lookup_pass(pass_id)
        if pass_ is None:
            raise ValidationError(f"Invalid pass id: {pass_id}")
        return pass_

    def _resolve_fallbacks(
        self,
        events: tuple[Event, ...],
        raw: Union[str, dict, None],
    ) -> dict[str, str]:
        mapping = _parse_json(raw, dict, "fallbackSelections must be a JSON object") or {}

        fallbacks: dict[str, str] = {}
        for event in events:
            if event.admission_mode != AdmissionMode.ABSTRACT:
                continue
            fallback_id = mapping.get(event.id)
            if not fallback_id or not isinstance(fallback_id, str):
                admission = check_fallback(events, event, None)
                raise ValidationError(admission.reason)

            fallback = self.catalog.events.lookup_event(fallback_id)
            if fallback is None:
                raise ValidationError(f'Invalid fallback event for "{event.title}"')
            admission = check_fallback(events, event, fallback)
            if not admission.ok:
                raise ValidationError(admission.reason)
            fallbacks[event.id] = fallback.id
        return fallbacks

    # ------------------------------------------------------------------
    # Transaction
    # ------------------------------------------------------------------

    async def submit(self, db: AsyncSession, payload: RegistrationPayload) -> RegistrationOutcome:
        """
        Validate and persist one registration.

        Raises ValidationError, ConflictError or DependencyError. On any
        error nothing has been committed.
        """
        start = time.perf_counter()
        try:
            submission = self.validate(payload)
            outcome = await self._admit(db, submission)
        except ValidationError as exc:
            record_registration_attempt("invalid")
            logger.info("registration_invalid", reason=exc.message)
            raise
        except ConflictError:
            record_registration_attempt("conflict")
            logger.info("registration_conflict")
            raise
        except DependencyError as exc:
            record_registration_attempt("error")
            logger.error(
                "registration_failed",
                kind=exc.kind.value,
                reason=exc.reason,
                error_type=type(exc.cause).__name__,
            )
            raise
        finally:
            registration_latency.observe(time.perf_counter() - start)

        record_registration_attempt("success")
        logger.info(
            "registration_created",
            participant_id=str(outcome.participant_id),
            unique_code=outcome.unique_code,
            events=[event.id for event in submission.events],
        )
        return outcome

    async def _admit(self, db: AsyncSession, submission: ValidatedSubmission) -> RegistrationOutcome:
        keys = [f"email:{submission.email}", f"mobile:{submission.mobile}"]
        token = await self.gate.acquire(keys)
        if token is None:
            raise ConflictError()
        try:
            return await self._persist(db, submission)
        finally:
            await self.gate.release(keys, token)

    async def _persist(self, db: AsyncSession, submission: ValidatedSubmission) -> RegistrationOutcome:
        """
        Run the transaction, drawing a fresh unique code whenever the
        participant insert collided on unique_code rather than on email or
        mobile. Each attempt is its own transaction.
        """
        collision: Optional[ConflictError] = None
        for attempt in range(1, UNIQUE_CODE_ATTEMPTS + 1):
            unique_code = generate_unique_code(self.unique_code_prefix)
            try:
                return await self._persist_once(db, submission, unique_code)
            except ConflictError as exc:
                if not await self._unique_code_taken(db, unique_code):
                    raise
                logger.warning("unique_code_collision", unique_code=unique_code, attempt=attempt)
                collision = exc

        raise DependencyError(FailureKind.DUPLICATE_KEY, cause=collision.__cause__)

    async def _unique_code_taken(self, db: AsyncSession, unique_code: str) -> bool:
        try:
            async with db.begin():
                result = await db.execute(
                    select(Participant.id).where(Participant.unique_code == unique_code).limit(1)
                )
                return result.first() is not None
        except Exception as exc:
            raise DependencyError.from_exception(exc) from exc

    async def _persist_once(
        self,
        db: AsyncSession,
        submission: ValidatedSubmission,
        unique_code: str,
    ) -> RegistrationOutcome:
        try:
            async with db.begin():
                await self._ensure_not_registered(db, submission)

                participant_id = uuid.uuid4()

                screenshot_url = await self.blob_store.store(
                    submission.screenshot,
                    submission.screenshot_filename,
                    submission.screenshot_content_type,
                    SCREENSHOT_CATEGORY,
                    str(participant_id),
                )

                await self._insert_participant(db, participant_id, unique_code, submission)
                # Independent of each other; one AsyncSession runs them back to back.
                await self._insert_event_registrations(db, participant_id, submission)
                await self._insert_payment(db, participant_id, screenshot_url, submission)
        except RegistrationError:
            raise
        except Exception as exc:
            raise DependencyError.from_exception(exc) from exc

        return self._build_outcome(participant_id, unique_code, submission)

    async def _ensure_not_registered(self, db: AsyncSession, submission: ValidatedSubmission) -> None:
        result = await db.execute(
            select(Participant.id)
            .where(
                or_(
                    Participant.email == submission.email,
                    Participant.mobile == submission.mobile,
                )
            )
            .limit(1)
        )
        if result.first() is not None:
            raise ConflictError()

    async def _insert_participant(
        self,
        db: AsyncSession,
        participant_id: uuid.UUID,
        unique_code: str,
        submission: ValidatedSubmission,
    ) -> None:
        db.add(
            Participant(
                id=participant_id,
                name=submission.name,
                email=submission.email,
                mobile=submission.mobile,
                college=submission.college,
                year=submission.year,
                unique_code=unique_code,
                food_preference=submission.food_preference,
            )
        )
        try:
            await db.flush()
        except IntegrityError as exc:
            # A concurrent submission committed the same email or mobile, or the
            # unique code is already taken; _persist tells the two apart.
            raise ConflictError() from exc

    async def _insert_event_registrations(
        self,
        db: AsyncSession,
        participant_id: uuid.UUID,
        submission: ValidatedSubmission,
    ) -> None:
        rows = [
            {
                "id": uuid.uuid4(),
                "user_id": participant_id,
                "event_id": event.id,
                "fallback_event_id": submission.fallback_for(event),
                "status": "CONFIRMED",
                "attendance_status": "NOT_REQUIRED" if event.is_online else "PENDING",
            }
            for event in submission.events
        ]
        await db.execute(insert(EventRegistration).values(rows))

    async def _insert_payment(
        self,
        db: AsyncSession,
        participant_id: uuid.UUID,
        screenshot_url: str,
        submission: ValidatedSubmission,
    ) -> None:
        db.add(
            Payment(
                user_id=participant_id,
                amount=self.registration_price,
                screenshot_url=screenshot_url,
                transaction_id=submission.transaction_id,
            )
        )
        await db.flush()

    def _build_outcome(
        self,
        participant_id: uuid.UUID,
        unique_code: str,
        submission: ValidatedSubmission,
    ) -> RegistrationOutcome:
        notification = RegistrationNotification(
            to=submission.email,
            name=submission.name,
            unique_code=unique_code,
            amount=self.registration_price,
            events=tuple(
                NotifiedEvent(
                    title=event.title,
                    category=event.category.value,
                    submission_email=event.submission_email,
                )
                for event in submission.events
            ),
        )
        return RegistrationOutcome(
            participant_id=participant_id,
            unique_code=unique_code,
            event_titles=[event.title for event in submission.events],
            amount=self.registration_price,
            has_submission_events=any(event.requires_submission for event in submission.events),
            notification=notification,
        )
