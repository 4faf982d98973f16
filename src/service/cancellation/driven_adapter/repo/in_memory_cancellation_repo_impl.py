"""
In-memory Cancellation Repository

Stores aggregate snapshots keyed by cancellation id, with an event index.
Check-and-set on version runs under one anyio.Lock, so two writers holding
the same version cannot both win.
"""

from typing import Dict

import anyio
import attrs

from src.platform.logging.loguru_io import Logger
from src.service.cancellation.app.interface.i_cancellation_repo import ICancellationRepo
from src.service.cancellation.domain.aggregate.event_cancellation_aggregate import (
    EventCancellation,
)
from src.service.cancellation.domain.errors import (
    CancellationInProgressError,
    CancellationNotFoundError,
    ConcurrentModificationError,
    PersistenceError,
)
from src.service.cancellation.domain.value_object.identifiers import (
    CancellationId,
    EventId,
    UserId,
)


class InMemoryCancellationRepoImpl(ICancellationRepo):
    def __init__(self) -> None:
        self._cancellations: Dict[CancellationId, EventCancellation] = {}
        self._by_event: Dict[EventId, CancellationId] = {}
        self._lock = anyio.Lock()

    @Logger.io
    async def create(self, *, cancellation: EventCancellation) -> EventCancellation:
        async with self._lock:
            if cancellation.id in self._cancellations:
                raise PersistenceError(f'cancellation {cancellation.id} already exists')
            if cancellation.event_id in self._by_event:
                raise CancellationInProgressError()
            stored = attrs.evolve(cancellation, version=1)
            self._cancellations[stored.id] = stored
            self._by_event[stored.event_id] = stored.id
        return stored

    async def get(self, *, cancellation_id: CancellationId) -> EventCancellation | None:
        return self._cancellations.get(cancellation_id)

    async def get_by_event(self, *, event_id: EventId) -> EventCancellation | None:
        cancellation_id = self._by_event.get(event_id)
        return self._cancellations.get(cancellation_id) if cancellation_id else None

    async def list_by_organizer(self, *, organizer_id: UserId) -> list[EventCancellation]:
        return sorted(
            (c for c in self._cancellations.values() if c.organizer_id == organizer_id),
            key=lambda c: c.created_at,
            reverse=True,
        )

    @Logger.io
    async def save(
        self, *, cancellation: EventCancellation, expected_version: int
    ) -> EventCancellation:
        async with self._lock:
            current = self._cancellations.get(cancellation.id)
            if current is None:
                raise CancellationNotFoundError()
            if current.version != expected_version:
                raise ConcurrentModificationError()
            stored = attrs.evolve(cancellation, version=expected_version + 1)
            self._cancellations[stored.id] = stored
        return stored

    @Logger.io
    async def delete(self, *, cancellation_id: CancellationId, expected_version: int) -> None:
        async with self._lock:
            current = self._cancellations.get(cancellation_id)
            if current is None:
                raise CancellationNotFoundError()
            if current.version != expected_version:
                raise ConcurrentModificationError()
            del self._cancellations[cancellation_id]
            if self._by_event.get(current.event_id) == cancellation_id:
                del self._by_event[current.event_id]
