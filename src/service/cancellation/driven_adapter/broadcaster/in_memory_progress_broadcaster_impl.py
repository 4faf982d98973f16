"""
In-memory Progress Broadcaster Implementation

Distributes CancellationProgress from the processor to SSE endpoints
within one process.
"""

from typing import Dict, List

from anyio import BrokenResourceError, ClosedResourceError, WouldBlock, create_memory_object_stream
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream

from src.platform.logging.loguru_io import Logger
from src.service.cancellation.domain.value_object.cancellation_progress import (
    CancellationProgress,
)
from src.service.cancellation.domain.value_object.identifiers import CancellationId


_Pair = tuple[
    MemoryObjectSendStream[CancellationProgress], MemoryObjectReceiveStream[CancellationProgress]
]


class InMemoryProgressBroadcasterImpl:
    """
    In-memory pub/sub for cancellation progress

    Architecture:
    - Processor -> broadcast() -> SSE Endpoint
    - Each cancellation_id has a list of subscriber stream pairs
    - Single event loop, so sends for one cancellation keep their order

    Memory Management:
    - Stream max buffer: PROGRESS_STREAM_BUFFER_SIZE events
    - Drop policy: drop for a subscriber whose buffer is full (WouldBlock)
    - close(): ends every stream of a finished run, no event after it
    """

    def __init__(self, *, buffer_size: int = 256):
        self._buffer_size = buffer_size
        self._subscribers: Dict[CancellationId, List[_Pair]] = {}

    async def subscribe(
        self, *, cancellation_id: CancellationId
    ) -> MemoryObjectReceiveStream[CancellationProgress]:
        send_stream, receive_stream = create_memory_object_stream[CancellationProgress](
            max_buffer_size=self._buffer_size
        )
        self._subscribers.setdefault(cancellation_id, []).append((send_stream, receive_stream))

        Logger.base.debug(
            f'📡 [PROGRESS] Subscribed to cancellation {cancellation_id} '
            f'(total subscribers: {len(self._subscribers[cancellation_id])})'
        )
        return receive_stream

    async def broadcast(self, *, progress: CancellationProgress) -> None:
        subscribers = self._subscribers.get(progress.cancellation_id)
        if not subscribers:
            return

        delivered = 0
        for pair in list(subscribers):
            send_stream, _ = pair
            try:
                send_stream.send_nowait(progress)
                delivered += 1
            except WouldBlock:
                Logger.base.warning(
                    f'⚠️ [PROGRESS] Stream full for cancellation {progress.cancellation_id}, '
                    f'dropping {progress.phase.value} {progress.current_step}/{progress.total_steps}'
                )
            except (BrokenResourceError, ClosedResourceError):
                # Subscriber went away without unsubscribing
                subscribers.remove(pair)

        Logger.base.debug(
            f'📡 [PROGRESS] {progress.cancellation_id} {progress.phase.value} '
            f'{progress.progress:.0%} delivered={delivered}'
        )

    async def unsubscribe(
        self,
        *,
        cancellation_id: CancellationId,
        stream: MemoryObjectReceiveStream[CancellationProgress],
    ) -> None:
        subscribers = self._subscribers.get(cancellation_id)
        if subscribers is None:
            return

        for i, (send_stream, receive_stream) in enumerate(subscribers):
            if receive_stream is stream:
                await send_stream.aclose()
                await receive_stream.aclose()
                subscribers.pop(i)
                break

        if not subscribers:
            del self._subscribers[cancellation_id]

    async def close(self, *, cancellation_id: CancellationId) -> None:
        subscribers = self._subscribers.pop(cancellation_id, [])
        for send_stream, _ in subscribers:
            await send_stream.aclose()
        if subscribers:
            Logger.base.info(
                f'🔚 [PROGRESS] Closed {len(subscribers)} stream(s) for cancellation {cancellation_id}'
            )

    def subscriber_count(self, *, cancellation_id: CancellationId) -> int:
        return len(self._subscribers.get(cancellation_id, []))
