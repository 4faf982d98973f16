"""
Cancellation Repository Interface

Persistence contract for the EventCancellation aggregate.

Optimistic concurrency:
- Every saved snapshot carries a version
- save() only succeeds when the stored version equals expected_version,
  then stores the aggregate with version + 1
"""

from abc import ABC, abstractmethod

from src.service.cancellation.domain.aggregate.event_cancellation_aggregate import (
    EventCancellation,
)
from src.service.cancellation.domain.value_object.identifiers import (
    CancellationId,
    EventId,
    UserId,
)


class ICancellationRepo(ABC):
    @abstractmethod
    async def create(self, *, cancellation: EventCancellation) -> EventCancellation:
        """
        Persist a new pending cancellation.

        Returns:
            Stored aggregate (version 1)

        Raises:
            PersistenceError: id already stored or storage unavailable
        """
        pass

    @abstractmethod
    async def get(self, *, cancellation_id: CancellationId) -> EventCancellation | None:
        pass

    @abstractmethod
    async def get_by_event(self, *, event_id: EventId) -> EventCancellation | None:
        """Latest cancellation of an event, or None"""
        pass

    @abstractmethod
    async def list_by_organizer(self, *, organizer_id: UserId) -> list[EventCancellation]:
        """Cancellations of an organizer's events, newest first"""
        pass

    @abstractmethod
    async def save(
        self, *, cancellation: EventCancellation, expected_version: int
    ) -> EventCancellation:
        """
        Compare-and-set update.

        Args:
            cancellation: New snapshot
            expected_version: Version the caller loaded

        Returns:
            Stored aggregate with its version bumped

        Raises:
            ConcurrentModificationError: stored version differs
            CancellationNotFoundError: nothing stored under that id
        """
        pass

    @abstractmethod
    async def delete(self, *, cancellation_id: CancellationId, expected_version: int) -> None:
        """
        Remove a draft cancellation.

        Raises:
            ConcurrentModificationError: stored version differs
        """
        pass
