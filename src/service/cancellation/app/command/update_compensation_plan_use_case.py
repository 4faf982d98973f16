from decimal import Decimal
from typing import Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.cancellation.app.interface.i_cancellation_repo import ICancellationRepo
from src.service.cancellation.domain.aggregate.event_cancellation_aggregate import (
    EventCancellation,
)
from src.service.cancellation.domain.compensation_planner import build_plan
from src.service.cancellation.domain.enum.compensation_type import (
    CompensationType,
    ProcessingMethod,
)
from src.service.cancellation.domain.errors import CancellationNotFoundError
from src.service.cancellation.domain.value_object.compensation_plan import (
    DEFAULT_NOTIFICATION_TEMPLATE,
    CompensationPlan,
)
from src.service.cancellation.domain.value_object.identifiers import CancellationId


class UpdateCompensationPlanUseCase:
    def __init__(self, *, cancellation_repo: ICancellationRepo) -> None:
        self.cancellation_repo = cancellation_repo

    @classmethod
    @inject
    def depends(
        cls,
        cancellation_repo: ICancellationRepo = Depends(Provide[Container.cancellation_repo]),
    ) -> Self:
        return cls(cancellation_repo=cancellation_repo)

    async def _load(self, cancellation_id: CancellationId) -> EventCancellation:
        cancellation = await self.cancellation_repo.get(cancellation_id=cancellation_id)
        if not cancellation:
            raise CancellationNotFoundError()
        return cancellation

    @Logger.io
    async def execute(
        self, *, cancellation_id: CancellationId, plan: CompensationPlan
    ) -> EventCancellation:
        """
        Attach a finalized plan.

        Raises:
            PlanAlreadyFinalizedError: cancellation is past pending
            ConcurrentModificationError: someone saved in between
        """
        cancellation = await self._load(cancellation_id)
        updated = cancellation.with_compensation_plan(plan)
        return await self.cancellation_repo.save(
            cancellation=updated, expected_version=cancellation.version
        )

    @Logger.io
    async def build_and_apply(
        self,
        *,
        cancellation_id: CancellationId,
        compensation_type: CompensationType,
        processing_method: ProcessingMethod,
        refund_percentage: Optional[Decimal] = None,
        credit_multiplier: Optional[Decimal] = None,
        organizer_note: Optional[str] = None,
        notification_template: str = DEFAULT_NOTIFICATION_TEMPLATE,
    ) -> EventCancellation:
        cancellation = await self._load(cancellation_id)
        plan = build_plan(
            event_id=cancellation.event_id,
            impact=cancellation.impact,
            compensation_type=compensation_type,
            processing_method=processing_method,
            refund_percentage=refund_percentage,
            credit_multiplier=credit_multiplier,
            organizer_note=organizer_note,
            notification_template=notification_template,
        )
        return await self.execute(cancellation_id=cancellation_id, plan=plan)
