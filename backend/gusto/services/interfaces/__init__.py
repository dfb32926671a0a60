from gusto.services.interfaces.blob_store import BlobStore
from gusto.services.interfaces.submission_gate import SubmissionGate
from gusto.services.interfaces.noop_gate import NoopSubmissionGate
from gusto.services.interfaces.notification_sender import (
    NotificationSender,
    NotifiedEvent,
    RegistrationNotification,
)

__all__ = [
    "BlobStore",
    "SubmissionGate",
    "NoopSubmissionGate",
    "NotificationSender",
    "NotifiedEvent",
    "RegistrationNotification",
]
