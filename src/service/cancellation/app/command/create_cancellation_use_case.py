from typing import Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.exception.exceptions import ForbiddenError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.cancellation_metrics import CancellationMetrics
from src.service.cancellation.app.interface.i_cancellation_repo import ICancellationRepo
from src.service.cancellation.app.query.calculate_impact_use_case import CalculateImpactUseCase
from src.service.cancellation.domain.aggregate.event_cancellation_aggregate import (
    EventCancellation,
)
from src.service.cancellation.domain.compensation_planner import build_plan
from src.service.cancellation.domain.enum.cancellation_reason import CancellationReason
from src.service.cancellation.domain.enum.cancellation_status import CancellationStatus
from src.service.cancellation.domain.enum.compensation_type import (
    CompensationType,
    ProcessingMethod,
)
from src.service.cancellation.domain.errors import (
    CancellationInProgressError,
    EventAlreadyCancelledError,
    ReasonRequiredError,
)
from src.service.cancellation.domain.value_object.identifiers import EventId, UserId


class CreateCancellationUseCase:
    """
    Open a pending cancellation for an event.

    Flow:
    1. Validate reason and who is cancelling
    2. Reject if the event already has a cancellation (completed or not)
    3. Compute the impact snapshot
    4. Persist the aggregate with a default full-refund plan
    """

    def __init__(
        self,
        *,
        calculate_impact: CalculateImpactUseCase,
        cancellation_repo: ICancellationRepo,
        metrics: CancellationMetrics,
    ) -> None:
        self.calculate_impact = calculate_impact
        self.cancellation_repo = cancellation_repo
        self.metrics = metrics
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        calculate_impact: CalculateImpactUseCase = Depends(CalculateImpactUseCase.depends),
        cancellation_repo: ICancellationRepo = Depends(Provide[Container.cancellation_repo]),
        metrics: CancellationMetrics = Depends(Provide[Container.cancellation_metrics]),
    ) -> Self:
        return cls(
            calculate_impact=calculate_impact,
            cancellation_repo=cancellation_repo,
            metrics=metrics,
        )

    @Logger.io
    async def execute(
        self,
        *,
        event_id: EventId,
        reason: Optional[CancellationReason],
        initiated_by: UserId,
        reason_note: Optional[str] = None,
        is_admin: bool = False,
    ) -> EventCancellation:
        if reason is None:
            raise ReasonRequiredError()

        with self.tracer.start_as_current_span(
            'use_case.create_cancellation',
            attributes={'event.id': str(event_id), 'cancellation.reason': reason.value},
        ):
            event = await self.calculate_impact.load_event(event_id=event_id)
            if reason.is_admin_only and not is_admin:
                raise ForbiddenError('Only platform administrators can use this reason')
            if not is_admin and event.organizer_id != initiated_by:
                raise ForbiddenError('Only the event organizer can cancel this event')

            existing = await self.cancellation_repo.get_by_event(event_id=event_id)
            if existing is not None:
                if existing.status is CancellationStatus.COMPLETED:
                    raise EventAlreadyCancelledError()
                raise CancellationInProgressError()

            impact = await self.calculate_impact.execute(event_id=event_id)
            cancellation = EventCancellation.create(
                event=event,
                reason=reason,
                impact=impact,
                compensation_plan=build_plan(
                    event_id=event_id,
                    impact=impact,
                    compensation_type=CompensationType.FULL_REFUND,
                    processing_method=ProcessingMethod.AUTOMATIC,
                ),
                initiated_by=initiated_by,
                reason_note=(reason_note or '').strip() or None,
            )
            stored = await self.cancellation_repo.create(cancellation=cancellation)

            self.metrics.record_transition(status=stored.status.value)
            Logger.base.info(
                f'📝 [CANCEL] Created cancellation {stored.id} for event {event_id} '
                f'(reason={reason.value}, tickets={impact.tickets_sold})'
            )
            return stored
