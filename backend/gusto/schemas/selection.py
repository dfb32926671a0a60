"""
Pydantic schemas for selection checks exposed to the registration wizard.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from gusto.schemas.catalog import Event


class SelectionCounts(BaseModel):
    model_config = ConfigDict(frozen=True)

    tech: int
    non_tech: int
    total: int
    max_tech: int
    max_non_tech: int
    max_total: int


class SelectionCheckRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    pass_id: Optional[str] = Field(None, alias="passId")
    selected_event_ids: list[str] = Field(default_factory=list, alias="selectedEventIds")
    candidate_id: str = Field(..., alias="candidateId")


class SelectionCheckResponse(BaseModel):
    ok: bool
    reason: Optional[str] = None
    counts: SelectionCounts


class FallbackListResponse(BaseModel):
    event_id: str
    fallbacks: list[Event]
