"""
Notification sender interface.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class NotifiedEvent:
    title: str
    category: str
    submission_email: Optional[str] = None


@dataclass(frozen=True)
class RegistrationNotification:
    """Everything the confirmation email needs; built after commit."""

    to: str
    name: str
    unique_code: str
    amount: int
    events: tuple[NotifiedEvent, ...] = field(default_factory=tuple)


class NotificationSender(ABC):
    """
    Delivers a confirmation message. Blocking; always called off the event loop.

    Implementations must raise NotificationError when delivery fails.
    """

    @abstractmethod
    def send(self, message: RegistrationNotification) -> None:
        pass
