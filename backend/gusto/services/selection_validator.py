"""
Selection admissibility rules.

All functions here are pure: they take catalog entries and a pass and return
a decision, never touching storage. The registration wizard calls them one
event at a time through the API; the registration service replays them over
a complete submission, so both paths reach the same verdict and the same
message.

Check order in can_add is significant, it decides which message the user
sees when several rules are violated at once:

  1. already selected   -> admissible (the caller treats it as a no-op)
  2. track + time slot  -> conflict, unless either side is ONLINE
  3. total              -> len(selection) >= pass.max_total
  4. category           -> counts of the hypothetical new selection
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from gusto.schemas.catalog import AdmissionMode, Category, Event, Pass, TimeSlot
from gusto.schemas.selection import SelectionCounts


@dataclass(frozen=True)
class Admission:
    ok: bool
    reason: Optional[str] = None


ADMITTED = Admission(ok=True)


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def _count_by_category(events: Iterable[Event]) -> tuple[int, int]:
    tech = 0
    non_tech = 0
    for event in events:
        if event.category == Category.TECHNICAL:
            tech += 1
        else:
            non_tech += 1
    return tech, non_tech


def events_conflict(a: Event, b: Event) -> bool:
    """Same physical track at the same time. ONLINE never conflicts."""
    if a.time_slot == TimeSlot.ONLINE or b.time_slot == TimeSlot.ONLINE:
        return False
    return a.track == b.track and a.time_slot == b.time_slot


def find_conflict(selection: Iterable[Event], candidate: Event) -> Optional[Event]:
    for event in selection:
        if event.id != candidate.id and events_conflict(event, candidate):
            return event
    return None


def can_add(selection: Sequence[Event], pass_: Pass, candidate: Event) -> Admission:
    if any(event.id == candidate.id for event in selection):
        return ADMITTED

    conflict = find_conflict(selection, candidate)
    if conflict is not None:
        return Admission(ok=False, reason=f'Time conflict with "{conflict.title}"')

    if len(selection) >= pass_.max_total:
        return Admission(
            ok=False,
            reason=f"Max {_plural(pass_.max_total, 'event')} for {pass_.name}",
        )

    tech, non_tech = _count_by_category([*selection, candidate])
    if tech > pass_.max_technical:
        return Admission(
            ok=False,
            reason=f"Max {_plural(pass_.max_technical, 'Technical event')}",
        )
    if non_tech > pass_.max_non_technical:
        return Admission(
            ok=False,
            reason=f"Max {_plural(pass_.max_non_technical, 'Non-Technical event')}",
        )

    return ADMITTED


def count_selection(selection: Sequence[Event], pass_: Pass) -> SelectionCounts:
    tech, non_tech = _count_by_category(selection)
    return SelectionCounts(
        tech=tech,
        non_tech=non_tech,
        total=tech + non_tech,
        max_tech=pass_.max_technical,
        max_non_tech=pass_.max_non_technical,
        max_total=pass_.max_total,
    )


def check_selection(events: Sequence[Event], pass_: Pass) -> Admission:
    """Replay can_add over a complete selection, in submission order."""
    if not events:
        return Admission(ok=False, reason="Select at least 1 event")

    chosen: list[Event] = []
    for event in events:
        admission = can_add(chosen, pass_, event)
        if not admission.ok:
            return admission
        chosen.append(event)
    return ADMITTED


def fallbacks_for(
    selection: Sequence[Event],
    abstract_event: Event,
    all_events: Iterable[Event],
) -> list[Event]:
    """Events a participant may fall back to if `abstract_event` is not shortlisted."""
    selected_ids = {event.id for event in selection}
    others = [event for event in selection if event.id != abstract_event.id]
    return [
        event
        for event in all_events
        if event.admission_mode != AdmissionMode.ABSTRACT
        and event.id not in selected_ids
        and find_conflict(others, event) is None
    ]


def check_fallback(
    selection: Sequence[Event],
    abstract_event: Event,
    fallback: Optional[Event],
) -> Admission:
    if fallback is None:
        return Admission(ok=False, reason=f'Select a fallback event for "{abstract_event.title}"')
    if fallback.admission_mode == AdmissionMode.ABSTRACT:
        return Admission(
            ok=False,
            reason=f'Fallback for "{abstract_event.title}" cannot be an abstract event',
        )
    if any(event.id == fallback.id for event in selection):
        return Admission(
            ok=False,
            reason=f'Fallback for "{abstract_event.title}" is already selected',
        )

    others = [event for event in selection if event.id != abstract_event.id]
    conflict = find_conflict(others, fallback)
    if conflict is not None:
        return Admission(
            ok=False,
            reason=f'Fallback for "{abstract_event.title}" conflicts with "{conflict.title}"',
        )
    return ADMITTED
