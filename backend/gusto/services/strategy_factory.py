"""
Adapter factory.
Configures which blob store, submission gate and notification sender to use.
"""

from typing import Optional

from gusto.core.config import get_settings
from gusto.infrastructure.redis_client import get_redis
from gusto.infrastructure.s3_client import get_s3
from gusto.services.admission_service import RedisSubmissionGate
from gusto.services.catalog import get_catalog
from gusto.services.interfaces.blob_store import BlobStore
from gusto.services.interfaces.noop_gate import NoopSubmissionGate
from gusto.services.interfaces.submission_gate import SubmissionGate
from gusto.services.notification_service import (
    NotificationDispatcher,
    SmtpNotificationSender,
    load_smtp_config,
)
from gusto.services.registration_service import RegistrationService
from gusto.services.storage_service import LocalBlobStore, S3BlobStore


def get_blob_store_strategy() -> BlobStore:
    """
    Blob store selection via BLOB_BACKEND:
    - s3: S3BlobStore (raises StorageError on upload if credentials are missing)
    - local: LocalBlobStore under LOCAL_BLOB_DIR
    """
    settings = get_settings()

    if settings.BLOB_BACKEND == "local":
        return LocalBlobStore(settings.LOCAL_BLOB_DIR, settings.LOCAL_BLOB_BASE_URL)
    return S3BlobStore(get_s3(), settings.S3_BUCKET_NAME, settings.AWS_REGION)


async def get_gate_strategy() -> SubmissionGate:
    """RedisSubmissionGate when Redis is enabled and reachable, else a no-op gate."""
    settings = get_settings()
    client = await get_redis()
    if client is None:
        return NoopSubmissionGate()
    return RedisSubmissionGate(client, ttl_seconds=settings.SUBMISSION_GATE_TTL)


# Singleton instances
_blob_store: Optional[BlobStore] = None
_gate: Optional[SubmissionGate] = None
_dispatcher: Optional[NotificationDispatcher] = None


def get_blob_store() -> BlobStore:
    global _blob_store
    if _blob_store is None:
        _blob_store = get_blob_store_strategy()
    return _blob_store


async def get_submission_gate() -> SubmissionGate:
    global _gate
    if _gate is None:
        _gate = await get_gate_strategy()
    return _gate


def get_dispatcher() -> NotificationDispatcher:
    global _dispatcher
    if _dispatcher is None:
        settings = get_settings()
        sender = SmtpNotificationSender(
            primary=load_smtp_config(settings, "SMTP_PRIMARY"),
            secondary=load_smtp_config(settings, "SMTP_SECONDARY"),
            timeout=settings.SMTP_TIMEOUT,
        )
        _dispatcher = NotificationDispatcher(
            sender,
            max_workers=settings.NOTIFICATION_WORKERS,
            enabled=settings.NOTIFICATIONS_ENABLED,
        )
    return _dispatcher


async def get_registration_service() -> RegistrationService:
    settings = get_settings()
    return RegistrationService(
        catalog=get_catalog(),
        blob_store=get_blob_store(),
        gate=await get_submission_gate(),
        registration_price=settings.REGISTRATION_PRICE,
        unique_code_prefix=settings.UNIQUE_CODE_PREFIX,
        max_screenshot_bytes=settings.MAX_SCREENSHOT_BYTES,
    )


def shutdown_dispatcher() -> None:
    global _dispatcher
    if _dispatcher is not None:
        _dispatcher.shutdown(wait=True)
        _dispatcher = None
