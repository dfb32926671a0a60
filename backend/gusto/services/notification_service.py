"""
Confirmation notifications.

NOTIFICATION MODEL: fire-and-forget after commit
================================================

The registration route schedules `NotificationDispatcher.dispatch` as a
FastAPI background task, so it only runs once the response has been sent.
`dispatch` itself does not send anything: it hands the message to a
dedicated thread pool and returns. Consequences:

  - SMTP latency never delays the HTTP response
  - a client disconnect cannot cancel a send already handed to the pool
  - a failed send is logged and counted at the pool boundary; it never
    reaches the request path and never touches the committed registration

There is no retry. A durable outbox table polled by a worker would be the
next step if delivery guarantees are needed.
"""

import smtplib
import ssl
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional

from gusto.core.config import Settings
from gusto.core.errors import NotificationError
from gusto.core.logging import get_logger
from gusto.core.metrics import record_notification
from gusto.services.email_templates import build_registration_email
from gusto.services.interfaces.notification_sender import (
    NotificationSender,
    RegistrationNotification,
)

logger = get_logger(__name__)


@dataclass
class SMTPConfig:
    host: str
    port: int
    user: Optional[str]
    password: Optional[str]
    use_tls: bool
    use_ssl: bool
    sender: str


def load_smtp_config(settings: Settings, prefix: str) -> Optional[SMTPConfig]:
    host = getattr(settings, f"{prefix}_HOST")
    sender = getattr(settings, f"{prefix}_FROM")
    if not host or not sender:
        return None

    return SMTPConfig(
        host=host,
        port=getattr(settings, f"{prefix}_PORT"),
        user=getattr(settings, f"{prefix}_USER"),
        password=getattr(settings, f"{prefix}_PASS"),
        use_tls=getattr(settings, f"{prefix}_TLS"),
        use_ssl=getattr(settings, f"{prefix}_SSL"),
        sender=sender,
    )


class SmtpNotificationSender(NotificationSender):
    """Sends through the primary SMTP server, falling back to the secondary."""

    def __init__(
        self,
        primary: Optional[SMTPConfig],
        secondary: Optional[SMTPConfig] = None,
        timeout: int = 20,
    ):
        self.primary = primary
        self.secondary = secondary
        self.timeout = timeout

    def _send_via_config(self, config: SMTPConfig, message: EmailMessage) -> None:
        if config.use_ssl:
            context = ssl.create_default_context()
            with smtplib.SMTP_SSL(config.host, config.port, context=context, timeout=self.timeout) as server:
                if config.user and config.password:
                    server.login(config.user, config.password)
                server.send_message(message)
            return

        with smtplib.SMTP(config.host, config.port, timeout=self.timeout) as server:
            server.ehlo()
            if config.use_tls:
                context = ssl.create_default_context()
                server.starttls(context=context)
                server.ehlo()
            if config.user and config.password:
                server.login(config.user, config.password)
            server.send_message(message)

    def _build_message(self, config: SMTPConfig, notification: RegistrationNotification) -> EmailMessage:
        subject, html, text = build_registration_email(notification)
        message = EmailMessage()
        message["From"] = config.sender
        message["To"] = notification.to
        message["Subject"] = subject
        message.set_content(text)
        message.add_alternative(html, subtype="html")
        return message

    def send(self, message: RegistrationNotification) -> None:
        if not self.primary:
            raise NotificationError("SMTP_PRIMARY configuration missing")

        try:
            self._send_via_config(self.primary, self._build_message(self.primary, message))
            return
        except (smtplib.SMTPException, OSError) as exc:
            if not self.secondary:
                raise NotificationError(f"Primary SMTP failed: {exc}") from exc
            logger.warning("smtp_primary_failed", error=str(exc))

        try:
            self._send_via_config(self.secondary, self._build_message(self.secondary, message))
        except (smtplib.SMTPException, OSError) as exc:
            raise NotificationError(f"Primary and secondary SMTP failed: {exc}") from exc
        logger.info("smtp_sent_via_secondary", unique_code=message.unique_code)


class NotificationDispatcher:
    """Runs senders on a private thread pool and isolates their failures."""

    def __init__(self, sender: NotificationSender, max_workers: int = 2, enabled: bool = True):
        self.sender = sender
        self.enabled = enabled
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="notify"
        )

    def dispatch(self, message: RegistrationNotification) -> Optional[Future]:
        if not self.enabled:
            logger.info("notification_skipped", unique_code=message.unique_code)
            return None
        return self._executor.submit(self._deliver, message)

    def _deliver(self, message: RegistrationNotification) -> bool:
        # Task boundary: nothing raised by the sender escapes this method.
        try:
            self.sender.send(message)
        except Exception as exc:
            record_notification(sent=False)
            logger.error(
                "notification_failed",
                unique_code=message.unique_code,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return False

        record_notification(sent=True)
        logger.info("notification_sent", unique_code=message.unique_code)
        return True

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work; with wait=True, pending sends finish first."""
        self._executor.shutdown(wait=wait)
