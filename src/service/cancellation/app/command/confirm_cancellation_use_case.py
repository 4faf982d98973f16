from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.cancellation_metrics import CancellationMetrics
from src.service.cancellation.app.interface.i_cancellation_repo import ICancellationRepo
from src.service.cancellation.domain.aggregate.event_cancellation_aggregate import (
    EventCancellation,
)
from src.service.cancellation.domain.confirmation_guard import ensure_confirmation_code
from src.service.cancellation.domain.errors import (
    CancellationNotFoundError,
    ConcurrentModificationError,
)
from src.service.cancellation.domain.value_object.identifiers import CancellationId, UserId


class ConfirmCancellationUseCase:
    def __init__(
        self, *, cancellation_repo: ICancellationRepo, metrics: CancellationMetrics
    ) -> None:
        self.cancellation_repo = cancellation_repo
        self.metrics = metrics

    @classmethod
    @inject
    def depends(
        cls,
        cancellation_repo: ICancellationRepo = Depends(Provide[Container.cancellation_repo]),
        metrics: CancellationMetrics = Depends(Provide[Container.cancellation_metrics]),
    ) -> Self:
        return cls(cancellation_repo=cancellation_repo, metrics=metrics)

    @Logger.io
    async def execute(
        self, *, cancellation_id: CancellationId, confirmation_code: str, confirmed_by: UserId
    ) -> EventCancellation:
        # Rejected before the lookup; the aggregate checks again
        ensure_confirmation_code(confirmation_code)

        cancellation = await self.cancellation_repo.get(cancellation_id=cancellation_id)
        if not cancellation:
            raise CancellationNotFoundError()

        confirmed = cancellation.confirm(
            confirmation_code=confirmation_code, confirmed_by=confirmed_by
        )
        try:
            stored = await self.cancellation_repo.save(
                cancellation=confirmed, expected_version=cancellation.version
            )
        except ConcurrentModificationError:
            self.metrics.record_conflict()
            raise

        self.metrics.record_transition(status=stored.status.value)
        Logger.base.info(f'✅ [CANCEL] Cancellation {cancellation_id} confirmed by {confirmed_by}')
        return stored
