"""
In-memory Event Catalog

Stand-in for the external event catalog. Events are seeded by the caller
(tests, demo fixtures); mark_cancelled replaces the stored snapshot.
"""

from typing import Dict, Iterable

import attrs

from src.platform.logging.loguru_io import Logger
from src.service.cancellation.app.interface.i_event_catalog import IEventCatalog
from src.service.cancellation.domain.entity.event_entity import Event
from src.service.cancellation.domain.errors import EventNotFoundError
from src.service.cancellation.domain.value_object.identifiers import EventId


class InMemoryEventCatalogImpl(IEventCatalog):
    def __init__(self, *, events: Iterable[Event] = ()) -> None:
        self._events: Dict[EventId, Event] = {event.id: event for event in events}

    def add_event(self, event: Event) -> None:
        self._events[event.id] = event

    async def get_event(self, *, event_id: EventId) -> Event | None:
        return self._events.get(event_id)

    async def mark_cancelled(self, *, event_id: EventId) -> None:
        event = self._events.get(event_id)
        if event is None:
            raise EventNotFoundError()
        self._events[event_id] = attrs.evolve(event, is_cancelled=True)
        Logger.base.info(f'🚫 [CATALOG] Event {event_id} marked cancelled')
