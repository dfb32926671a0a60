from gusto.schemas.catalog import AdmissionMode, Category, Event, Pass, TimeSlot, Track
from gusto.schemas.registration import RegistrationResponse, ErrorResponse, DependencyErrorResponse
from gusto.schemas.selection import SelectionCounts, SelectionCheckRequest, SelectionCheckResponse

__all__ = [
    "AdmissionMode", "Category", "Event", "Pass", "TimeSlot", "Track",
    "RegistrationResponse", "ErrorResponse", "DependencyErrorResponse",
    "SelectionCounts", "SelectionCheckRequest", "SelectionCheckResponse",
]
