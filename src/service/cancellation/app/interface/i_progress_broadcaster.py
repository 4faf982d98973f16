"""
Progress Broadcaster Interface

Fans CancellationProgress out to SSE subscribers of one cancellation.
"""

from typing import Protocol

from anyio.streams.memory import MemoryObjectReceiveStream

from src.service.cancellation.domain.value_object.cancellation_progress import (
    CancellationProgress,
)
from src.service.cancellation.domain.value_object.identifiers import CancellationId


class IProgressBroadcaster(Protocol):
    async def subscribe(
        self, *, cancellation_id: CancellationId
    ) -> MemoryObjectReceiveStream[CancellationProgress]:
        """Register a subscriber; the stream ends when the cancellation run closes"""
        ...

    async def unsubscribe(
        self,
        *,
        cancellation_id: CancellationId,
        stream: MemoryObjectReceiveStream[CancellationProgress],
    ) -> None: ...

    async def broadcast(self, *, progress: CancellationProgress) -> None:
        """Deliver in order; a subscriber whose buffer is full misses the event"""
        ...

    async def close(self, *, cancellation_id: CancellationId) -> None:
        """End every subscriber stream of a cancellation; nothing is sent afterwards"""
        ...

    def subscriber_count(self, *, cancellation_id: CancellationId) -> int: ...
