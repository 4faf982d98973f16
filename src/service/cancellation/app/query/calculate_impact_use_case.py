from datetime import datetime, timezone
from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.cancellation.app.interface.i_cancellation_repo import ICancellationRepo
from src.service.cancellation.app.interface.i_event_catalog import IEventCatalog
from src.service.cancellation.app.interface.i_payment_ledger import IPaymentLedger
from src.service.cancellation.domain.entity.event_entity import Event
from src.service.cancellation.domain.enum.cancellation_status import CancellationStatus
from src.service.cancellation.domain.errors import EventAlreadyCancelledError, EventNotFoundError
from src.service.cancellation.domain.impact_calculator import calculate_impact
from src.service.cancellation.domain.value_object.cancellation_impact import CancellationImpact
from src.service.cancellation.domain.value_object.cancellation_policy import CancellationPolicy
from src.service.cancellation.domain.value_object.identifiers import EventId


class CalculateImpactUseCase:
    """
    Compute what cancelling an event would cost.

    Reads the event from the catalog and the paid tickets from the ledger,
    then hands both to the pure impact calculator. Nothing is written.
    """

    def __init__(
        self,
        *,
        event_catalog: IEventCatalog,
        payment_ledger: IPaymentLedger,
        cancellation_repo: ICancellationRepo,
        cancellation_policy: CancellationPolicy,
    ) -> None:
        self.event_catalog = event_catalog
        self.payment_ledger = payment_ledger
        self.cancellation_repo = cancellation_repo
        self.cancellation_policy = cancellation_policy
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        event_catalog: IEventCatalog = Depends(Provide[Container.event_catalog]),
        payment_ledger: IPaymentLedger = Depends(Provide[Container.payment_ledger]),
        cancellation_repo: ICancellationRepo = Depends(Provide[Container.cancellation_repo]),
        cancellation_policy: CancellationPolicy = Depends(
            Provide[Container.cancellation_policy]
        ),
    ) -> Self:
        return cls(
            event_catalog=event_catalog,
            payment_ledger=payment_ledger,
            cancellation_repo=cancellation_repo,
            cancellation_policy=cancellation_policy,
        )

    async def load_event(self, *, event_id: EventId) -> Event:
        event = await self.event_catalog.get_event(event_id=event_id)
        if not event:
            raise EventNotFoundError()
        return event

    @Logger.io
    async def execute(self, *, event_id: EventId) -> CancellationImpact:
        """
        Raises:
            EventNotFoundError: unknown event
            EventAlreadyCancelledError: event already cancelled, or a completed
                cancellation exists for it
            ImpactReconciliationError: ledger and catalog disagree on tickets sold
        """
        with self.tracer.start_as_current_span(
            'use_case.calculate_impact', attributes={'event.id': str(event_id)}
        ):
            event = await self.load_event(event_id=event_id)
            existing = await self.cancellation_repo.get_by_event(event_id=event_id)
            if event.is_cancelled or (
                existing is not None and existing.status is CancellationStatus.COMPLETED
            ):
                raise EventAlreadyCancelledError()

            sold_tickets = await self.payment_ledger.list_sold_tickets(event_id=event_id)
            impact = calculate_impact(
                event=event,
                sold_tickets=sold_tickets,
                policy=self.cancellation_policy,
                calculated_at=datetime.now(timezone.utc),
            )

            Logger.base.info(
                f'🧮 [IMPACT] event={event_id} sold={impact.tickets_sold} '
                f'gross={impact.formatted_gross_revenue} refund={impact.formatted_refund_total} '
                f'warnings={len(impact.warnings)}'
            )
            return impact
