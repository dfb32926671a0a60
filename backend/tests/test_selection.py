"""
Tests for the pure selection rules: capacity, category limits, time-slot
conflicts and fallback eligibility.
"""

import pytest

from gusto.services.selection_validator import (
    can_add,
    check_fallback,
    check_selection,
    count_selection,
    events_conflict,
    fallbacks_for,
)
from conftest import events, find_event


def _event(event_id, category="Technical", mode="DIRECT", track="A", slot="SLOT_1015"):
    return {
        "id": event_id,
        "title": event_id.title(),
        "category": category,
        "admission_mode": mode,
        "track": track,
        "time_slot": slot,
    }


def test_already_selected_is_admitted_even_when_full(catalog):
    """Re-adding a selected event is a no-op, never a capacity error."""
    selection = events(catalog, "code-debugging", "icon-iq", "meme-contest")
    admission = can_add(selection, catalog.passes.default_pass, find_event(catalog, "icon-iq"))
    assert admission.ok
    assert admission.reason is None


def test_conflict_reported_before_capacity(catalog):
    """A full selection that also conflicts reports the conflict."""
    selection = events(catalog, "code-debugging", "icon-iq", "meme-contest")
    admission = can_add(selection, catalog.passes.default_pass, find_event(catalog, "blind-coding"))
    assert not admission.ok
    # code-debugging is track A; blind-coding is track B, so this is capacity
    assert admission.reason == "Max 3 events for General Pass"

    selection = events(catalog, "blind-coding", "icon-iq", "meme-contest")
    admission = can_add(selection, catalog.passes.default_pass, find_event(catalog, "hunt-mods"))
    assert admission.reason == 'Time conflict with "Blind Coding"'


def test_total_limit(catalog):
    selection = events(catalog, "code-debugging", "icon-iq", "meme-contest")
    admission = can_add(selection, catalog.passes.default_pass, find_event(catalog, "photography"))
    assert not admission.ok
    assert admission.reason == "Max 3 events for General Pass"


def test_technical_limit(catalog):
    selection = events(catalog, "paper-presentation", "code-debugging")
    admission = can_add(selection, catalog.passes.default_pass, find_event(catalog, "blind-coding"))
    assert not admission.ok
    assert admission.reason == "Max 2 Technical events"


def test_non_technical_limit(catalog):
    selection = events(catalog, "icon-iq", "meme-contest")
    admission = can_add(selection, catalog.passes.default_pass, find_event(catalog, "photography"))
    assert not admission.ok
    assert admission.reason == "Max 2 Non-Technical events"


def test_singular_message(make_catalog):
    catalog = make_catalog([_event("one"), _event("two", track="B")], max_total=1, max_technical=1)
    admission = can_add(events(catalog, "one"), catalog.passes.default_pass, find_event(catalog, "two"))
    assert admission.reason == "Max 1 event for Test Pass"


def test_zero_capacity_pass_rejects_everything(make_catalog):
    catalog = make_catalog([_event("solo")], max_total=0)
    admission = can_add([], catalog.passes.default_pass, find_event(catalog, "solo"))
    assert not admission.ok
    assert admission.reason == "Max 0 events for Test Pass"


def test_online_events_never_conflict(catalog):
    meme = find_event(catalog, "meme-contest")
    photo = find_event(catalog, "photography")
    assert meme.track == photo.track
    assert not events_conflict(meme, photo)
    assert can_add([meme], catalog.passes.default_pass, photo).ok


def test_same_track_different_slot_does_not_conflict(catalog):
    assert not events_conflict(find_event(catalog, "icon-iq"), find_event(catalog, "connexions"))


def test_same_slot_different_track_does_not_conflict(catalog):
    assert not events_conflict(find_event(catalog, "code-debugging"), find_event(catalog, "blind-coding"))


def test_admitted_selection_never_exceeds_limits(catalog):
    """Greedily adding every catalog event never breaks the pass limits."""
    pass_ = catalog.passes.default_pass
    chosen = []
    for event in catalog.events.list_events():
        if can_add(chosen, pass_, event).ok:
            chosen.append(event)

    counts = count_selection(chosen, pass_)
    assert counts.total <= pass_.max_total
    assert counts.tech <= pass_.max_technical
    assert counts.non_tech <= pass_.max_non_technical
    for i, a in enumerate(chosen):
        for b in chosen[i + 1:]:
            assert not events_conflict(a, b)


def test_count_selection(catalog):
    counts = count_selection(events(catalog, "code-debugging", "icon-iq"), catalog.passes.default_pass)
    assert counts.tech == 1
    assert counts.non_tech == 1
    assert counts.total == 2
    assert (counts.max_tech, counts.max_non_tech, counts.max_total) == (2, 2, 3)


def test_check_selection_empty(catalog):
    admission = check_selection([], catalog.passes.default_pass)
    assert admission.reason == "Select at least 1 event"


def test_check_selection_replays_in_order(catalog):
    admission = check_selection(
        events(catalog, "blind-coding", "hunt-mods"),
        catalog.passes.default_pass,
    )
    assert admission.reason == 'Time conflict with "Blind Coding"'


@pytest.mark.parametrize(
    "fallback_id, reason",
    [
        (None, 'Select a fallback event for "Paper Presentation"'),
        ("project-presentation", 'Fallback for "Paper Presentation" cannot be an abstract event'),
        ("icon-iq", 'Fallback for "Paper Presentation" is already selected'),
        ("hunt-mods", 'Fallback for "Paper Presentation" conflicts with "Blind Coding"'),
    ],
)
def test_check_fallback_rejections(catalog, fallback_id, reason):
    selection = events(catalog, "paper-presentation", "icon-iq", "blind-coding")
    fallback = find_event(catalog, fallback_id) if fallback_id else None
    admission = check_fallback(selection, find_event(catalog, "paper-presentation"), fallback)
    assert not admission.ok
    assert admission.reason == reason


def test_fallback_may_share_slot_with_its_abstract_event(catalog):
    """The abstract event itself is not counted when looking for conflicts."""
    selection = events(catalog, "paper-presentation")
    fallback = find_event(catalog, "code-debugging")
    assert check_fallback(selection, selection[0], fallback).ok


def test_fallbacks_for_excludes_abstract_selected_and_conflicting(catalog):
    selection = events(catalog, "paper-presentation", "blind-coding")
    candidates = {
        event.id
        for event in fallbacks_for(selection, selection[0], catalog.events.list_events())
    }
    assert "project-presentation" not in candidates
    assert "blind-coding" not in candidates
    assert "hunt-mods" not in candidates
    assert {"code-debugging", "icon-iq", "connexions", "meme-contest"} <= candidates

    for event_id in candidates:
        assert check_fallback(selection, selection[0], find_event(catalog, event_id)).ok
