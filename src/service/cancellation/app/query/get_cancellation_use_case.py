from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.cancellation.app.interface.i_cancellation_repo import ICancellationRepo
from src.service.cancellation.domain.aggregate.event_cancellation_aggregate import (
    EventCancellation,
)
from src.service.cancellation.domain.errors import CancellationNotFoundError
from src.service.cancellation.domain.value_object.identifiers import (
    CancellationId,
    EventId,
    UserId,
)


class GetCancellationUseCase:
    def __init__(self, *, cancellation_repo: ICancellationRepo) -> None:
        self.cancellation_repo = cancellation_repo

    @classmethod
    @inject
    def depends(
        cls,
        cancellation_repo: ICancellationRepo = Depends(Provide[Container.cancellation_repo]),
    ) -> Self:
        return cls(cancellation_repo=cancellation_repo)

    @Logger.io
    async def get_cancellation(self, *, cancellation_id: CancellationId) -> EventCancellation:
        cancellation = await self.cancellation_repo.get(cancellation_id=cancellation_id)
        if not cancellation:
            raise CancellationNotFoundError()
        return cancellation

    @Logger.io
    async def get_cancellation_for_event(self, *, event_id: EventId) -> EventCancellation:
        cancellation = await self.cancellation_repo.get_by_event(event_id=event_id)
        if not cancellation:
            raise CancellationNotFoundError()
        return cancellation

    @Logger.io
    async def list_organizer_cancellations(
        self, *, organizer_id: UserId
    ) -> list[EventCancellation]:
        return await self.cancellation_repo.list_by_organizer(organizer_id=organizer_id)
