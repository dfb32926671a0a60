"""
Selection check endpoint used by the registration wizard on every click.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from gusto.schemas.selection import SelectionCheckRequest, SelectionCheckResponse
from gusto.services.catalog import Catalog, get_catalog
from gusto.services.selection_validator import can_add, count_selection

router = APIRouter(prefix="/selection", tags=["Selection"])


@router.post("/check", response_model=SelectionCheckResponse)
async def check_selection_endpoint(
    request: SelectionCheckRequest,
    catalog: Catalog = Depends(get_catalog),
):
    """Would adding `candidateId` to the current selection be admissible under the pass?"""
    if request.pass_id:
        pass_ = catalog.passes.lookup_pass(request.pass_id)
        if pass_ is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid pass id: {request.pass_id}",
            )
    else:
        pass_ = catalog.passes.default_pass

    selection = []
    for event_id in request.selected_event_ids:
        event = catalog.events.lookup_event(event_id)
        if event is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid event id(s): {event_id}",
            )
        if event not in selection:
            selection.append(event)

    candidate = catalog.events.lookup_event(request.candidate_id)
    if candidate is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Event {request.candidate_id} not found",
        )

    admission = can_add(selection, pass_, candidate)
    return SelectionCheckResponse(
        ok=admission.ok,
        reason=admission.reason,
        counts=count_selection(selection, pass_),
    )
