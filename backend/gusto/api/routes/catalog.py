"""
Catalog endpoints: events, passes and fallback candidates.
The catalog is immutable and served from memory.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from gusto.schemas.catalog import AdmissionMode, Event, Pass
from gusto.schemas.selection import FallbackListResponse
from gusto.services.catalog import Catalog, get_catalog
from gusto.services.selection_validator import fallbacks_for

router = APIRouter(tags=["Catalog"])


@router.get("/events", response_model=list[Event])
async def list_events_endpoint(catalog: Catalog = Depends(get_catalog)):
    return list(catalog.events.list_events())


@router.get("/passes", response_model=list[Pass])
async def list_passes_endpoint(catalog: Catalog = Depends(get_catalog)):
    return list(catalog.passes.list_passes())


@router.get("/events/{event_id}", response_model=Event)
async def get_event_endpoint(event_id: str, catalog: Catalog = Depends(get_catalog)):
    event = catalog.events.lookup_event(event_id)
    if event is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Event {event_id} not found",
        )
    return event


@router.get("/events/{event_id}/fallbacks", response_model=FallbackListResponse)
async def list_fallbacks_endpoint(
    event_id: str,
    selected: list[str] = Query([]),
    catalog: Catalog = Depends(get_catalog),
):
    """
    Events the participant may pick as fallback for an abstract event,
    given the rest of their current selection.
    """
    abstract_event = catalog.events.lookup_event(event_id)
    if abstract_event is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Event {event_id} not found",
        )
    if abstract_event.admission_mode != AdmissionMode.ABSTRACT:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Event {event_id} does not take a fallback",
        )

    selection = [catalog.events.lookup_event(selected_id) for selected_id in selected]
    unknown = [selected_id for selected_id, event in zip(selected, selection) if event is None]
    if unknown:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid event id(s): {', '.join(unknown)}",
        )

    return FallbackListResponse(
        event_id=event_id,
        fallbacks=fallbacks_for(selection, abstract_event, catalog.events.list_events()),
    )
