"""
Event and pass catalogs.

Both registries are immutable and loaded once per process from a JSON file
(the bundled gusto/data/catalog.json unless CATALOG_PATH points elsewhere).
Consumers receive a Catalog instance instead of importing module-level
constants, so tests can substitute fixture catalogs.
"""

import json
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Optional, Union

from gusto.core.config import get_settings
from gusto.core.logging import get_logger
from gusto.schemas.catalog import CatalogData, Event, Pass

logger = get_logger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent.parent / "data" / "catalog.json"


class EventCatalog:
    """Read-only registry of events, in catalog order."""

    def __init__(self, events: Iterable[Event]):
        self._events: dict[str, Event] = {}
        for event in events:
            if event.id in self._events:
                raise ValueError(f"Duplicate event id in catalog: {event.id}")
            self._events[event.id] = event

    def lookup_event(self, event_id: str) -> Optional[Event]:
        return self._events.get(event_id)

    def list_events(self) -> tuple[Event, ...]:
        return tuple(self._events.values())

    def __contains__(self, event_id: object) -> bool:
        return event_id in self._events

    def __len__(self) -> int:
        return len(self._events)


class PassCatalog:
    """Read-only registry of passes with a designated default."""

    def __init__(self, passes: Iterable[Pass], default_pass_id: str):
        self._passes: dict[str, Pass] = {}
        for pass_ in passes:
            if pass_.id in self._passes:
                raise ValueError(f"Duplicate pass id in catalog: {pass_.id}")
            self._passes[pass_.id] = pass_
        if default_pass_id not in self._passes:
            raise ValueError(f"Default pass {default_pass_id!r} is not in the catalog")
        self._default_pass_id = default_pass_id

    def lookup_pass(self, pass_id: str) -> Optional[Pass]:
        return self._passes.get(pass_id)

    def list_passes(self) -> tuple[Pass, ...]:
        return tuple(self._passes.values())

    @property
    def default_pass(self) -> Pass:
        return self._passes[self._default_pass_id]


@dataclass(frozen=True)
class Catalog:
    events: EventCatalog
    passes: PassCatalog

    @classmethod
    def from_data(cls, data: CatalogData) -> "Catalog":
        return cls(
            events=EventCatalog(data.events),
            passes=PassCatalog(data.passes, data.default_pass_id),
        )


def load_catalog(path: Optional[Union[str, Path]] = None) -> Catalog:
    """Parse and validate a catalog file. Raises on malformed data."""
    catalog_path = Path(path) if path else DEFAULT_CATALOG_PATH
    with open(catalog_path, "r", encoding="utf-8") as f:
        raw = json.load(f)

    catalog = Catalog.from_data(CatalogData.model_validate(raw))
    logger.info(
        "catalog_loaded",
        path=str(catalog_path),
        events=len(catalog.events),
        passes=len(catalog.passes.list_passes()),
    )
    return catalog


@lru_cache()
def get_catalog() -> Catalog:
    return load_catalog(get_settings().CATALOG_PATH)
