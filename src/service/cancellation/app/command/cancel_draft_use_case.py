from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.cancellation.app.interface.i_cancellation_repo import ICancellationRepo
from src.service.cancellation.domain.errors import (
    CancellationNotFoundError,
    CancellationNotReversibleError,
)
from src.service.cancellation.domain.value_object.identifiers import CancellationId


class CancelDraftUseCase:
    """Discard a cancellation the organizer has not confirmed yet"""

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
    async def execute(self, *, cancellation_id: CancellationId) -> None:
        cancellation = await self.cancellation_repo.get(cancellation_id=cancellation_id)
        if not cancellation:
            raise CancellationNotFoundError()
        if not cancellation.is_reversible:
            raise CancellationNotReversibleError()

        await self.cancellation_repo.delete(
            cancellation_id=cancellation_id, expected_version=cancellation.version
        )
        Logger.base.info(f'🗑️ [CANCEL] Draft cancellation {cancellation_id} discarded')
