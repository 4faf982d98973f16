"""
Event Catalog Interface

Read access to events owned by the external catalog. The cancellation
workflow never writes to an Event except through mark_cancelled, which the
catalog applies as its own operation.
"""

from abc import ABC, abstractmethod

from src.service.cancellation.domain.entity.event_entity import Event
from src.service.cancellation.domain.value_object.identifiers import EventId


class IEventCatalog(ABC):
    @abstractmethod
    async def get_event(self, *, event_id: EventId) -> Event | None:
        """
        Get event by ID.

        Returns:
            Event entity or None if not found
        """
        pass

    @abstractmethod
    async def mark_cancelled(self, *, event_id: EventId) -> None:
        """
        Flag the event as cancelled in the catalog.
        Called once a cancellation completes.
        """
        pass
