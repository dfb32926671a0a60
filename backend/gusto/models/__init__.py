from gusto.models.participant import Participant
from gusto.models.event_registration import EventRegistration
from gusto.models.payment import Payment

__all__ = ["Participant", "EventRegistration", "Payment"]
