"""
Pydantic schemas for the static event and pass catalogs.

Catalog entries are frozen: they are loaded once at startup and shared by
every request without synchronization.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Category(str, Enum):
    TECHNICAL = "Technical"
    NON_TECHNICAL = "Non-Technical"


class AdmissionMode(str, Enum):
    DIRECT = "DIRECT"
    ABSTRACT = "ABSTRACT"  # needs an abstract and a fallback event
    SUBMISSION = "SUBMISSION"  # remote entries, no attendance


class Track(str, Enum):
    A = "A"
    B = "B"
    C = "C"


class TimeSlot(str, Enum):
    SLOT_1015 = "SLOT_1015"
    SLOT_1100 = "SLOT_1100"
    ONLINE = "ONLINE"


class Event(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, max_length=50)
    title: str
    category: Category
    admission_mode: AdmissionMode
    track: Track
    time_slot: TimeSlot
    venue: str = ""
    time: str = ""
    description: str = ""
    rules: tuple[str, ...] = ()
    submission_email: Optional[str] = None

    @property
    def is_online(self) -> bool:
        return self.time_slot == TimeSlot.ONLINE

    @property
    def requires_submission(self) -> bool:
        return self.admission_mode in (AdmissionMode.ABSTRACT, AdmissionMode.SUBMISSION)


class Pass(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    price: int = Field(..., ge=0)
    description: str = ""
    max_total: int = Field(..., ge=0)
    max_technical: int = Field(..., ge=0)
    max_non_technical: int = Field(..., ge=0)


class CatalogData(BaseModel):
    """On-disk shape of a catalog file."""

    default_pass_id: str
    passes: list[Pass]
    events: list[Event]
