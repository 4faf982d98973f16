from typing import Optional, Self

from fastapi import Depends

from src.platform.logging.loguru_io import Logger
from src.service.cancellation.app.command.process_cancellation_use_case import (
    ProcessCancellationUseCase,
    ProgressCallback,
)
from src.service.cancellation.domain.aggregate.event_cancellation_aggregate import (
    EventCancellation,
)
from src.service.cancellation.domain.value_object.identifiers import CancellationId


class RetryFailedRefundsUseCase:
    """
    Re-attempt the refunds and notices that failed in a completed run.

    Settled tickets and notified attendees are skipped by the processor, so a
    retry only touches what failed.
    """

    def __init__(self, *, process_cancellation: ProcessCancellationUseCase) -> None:
        self.process_cancellation = process_cancellation

    @classmethod
    def depends(
        cls,
        process_cancellation: ProcessCancellationUseCase = Depends(
            ProcessCancellationUseCase.depends
        ),
    ) -> Self:
        return cls(process_cancellation=process_cancellation)

    @Logger.io
    async def execute(
        self,
        *,
        cancellation_id: CancellationId,
        on_progress: Optional[ProgressCallback] = None,
    ) -> EventCancellation:
        Logger.base.info(f'🔁 [RETRY] Retrying failed items of cancellation {cancellation_id}')
        return await self.process_cancellation.execute(
            cancellation_id=cancellation_id, retry_failed=True, on_progress=on_progress
        )
