from datetime import datetime
from decimal import Decimal
from typing import Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.core_setting import Settings
from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.cancellation.app.interface.i_cancellation_repo import ICancellationRepo
from src.service.cancellation.app.interface.i_payment_ledger import IPaymentLedger
from src.service.cancellation.app.query.calculate_impact_use_case import CalculateImpactUseCase
from src.service.cancellation.domain.compensation_planner import build_plan
from src.service.cancellation.domain.enum.cancellation_reason import CancellationReason
from src.service.cancellation.domain.enum.compensation_type import (
    CompensationType,
    ProcessingMethod,
)
from src.service.cancellation.domain.errors import CancellationNotFoundError
from src.service.cancellation.domain.notification_previewer import preview, render_preview
from src.service.cancellation.domain.value_object.cancellation_impact import CancellationImpact
from src.service.cancellation.domain.value_object.compensation_plan import (
    DEFAULT_NOTIFICATION_TEMPLATE,
    CompensationPlan,
)
from src.service.cancellation.domain.value_object.identifiers import CancellationId, EventId
from src.service.cancellation.domain.value_object.notification import NotificationPreview


class PreviewNotificationUseCase:
    """
    Render the attendee notification before anything is sent.

    Three entry points share the same pure previewer:
    - execute: a stored cancellation
    - execute_draft: raw form input, impact and plan computed on the fly
    - render_for: impact and plan the caller already holds (workflow)
    """

    def __init__(
        self,
        *,
        calculate_impact: CalculateImpactUseCase,
        cancellation_repo: ICancellationRepo,
        payment_ledger: IPaymentLedger,
        settings: Settings,
    ) -> None:
        self.calculate_impact = calculate_impact
        self.cancellation_repo = cancellation_repo
        self.payment_ledger = payment_ledger
        self.sample_size = settings.NOTIFICATION_SAMPLE_RECIPIENTS

    @classmethod
    @inject
    def depends(
        cls,
        calculate_impact: CalculateImpactUseCase = Depends(CalculateImpactUseCase.depends),
        cancellation_repo: ICancellationRepo = Depends(Provide[Container.cancellation_repo]),
        payment_ledger: IPaymentLedger = Depends(Provide[Container.payment_ledger]),
        settings: Settings = Depends(Provide[Container.config_service]),
    ) -> Self:
        return cls(
            calculate_impact=calculate_impact,
            cancellation_repo=cancellation_repo,
            payment_ledger=payment_ledger,
            settings=settings,
        )

    async def _sample_recipients(self, *, event_id: EventId) -> list[str]:
        samples: list[str] = []
        for ticket in await self.payment_ledger.list_sold_tickets(event_id=event_id):
            if ticket.holder_email not in samples:
                samples.append(ticket.holder_email)
            if len(samples) >= self.sample_size:
                break
        return samples

    @Logger.io
    async def execute(self, *, cancellation_id: CancellationId) -> NotificationPreview:
        cancellation = await self.cancellation_repo.get(cancellation_id=cancellation_id)
        if not cancellation:
            raise CancellationNotFoundError()
        return preview(
            cancellation,
            sample_recipients=await self._sample_recipients(event_id=cancellation.event_id),
        )

    @Logger.io
    async def render_for(
        self,
        *,
        event_id: EventId,
        event_title: str,
        event_date: datetime,
        reason: CancellationReason,
        impact: CancellationImpact,
        plan: CompensationPlan,
    ) -> NotificationPreview:
        return render_preview(
            event_title=event_title,
            event_date=event_date,
            reason=reason,
            impact=impact,
            plan=plan,
            sample_recipients=await self._sample_recipients(event_id=event_id),
        )

    @Logger.io
    async def execute_draft(
        self,
        *,
        event_id: EventId,
        reason: CancellationReason,
        compensation_type: CompensationType = CompensationType.FULL_REFUND,
        processing_method: ProcessingMethod = ProcessingMethod.AUTOMATIC,
        refund_percentage: Optional[Decimal] = None,
        credit_multiplier: Optional[Decimal] = None,
        custom_message: Optional[str] = None,
        notification_template: str = DEFAULT_NOTIFICATION_TEMPLATE,
    ) -> NotificationPreview:
        event = await self.calculate_impact.load_event(event_id=event_id)
        impact = await self.calculate_impact.execute(event_id=event_id)
        plan = build_plan(
            event_id=event_id,
            impact=impact,
            compensation_type=compensation_type,
            processing_method=processing_method,
            refund_percentage=refund_percentage,
            credit_multiplier=credit_multiplier,
            organizer_note=custom_message,
            notification_template=notification_template,
        )
        return await self.render_for(
            event_id=event_id,
            event_title=event.title,
            event_date=event.start_date,
            reason=reason,
            impact=impact,
            plan=plan,
        )
