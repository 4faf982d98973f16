"""
Process Cancellation Use Case - refunds and notifications for a confirmed cancellation

[Phases, always in this order]
1. calculating: load paid tickets, work out per-ticket amounts, skip settled work
2. notifying:  one notice per attendee not yet notified
3. refunding:  one refund/credit per ticket not yet settled
4. finalizing: record outcomes, complete, tell the catalog

[Failure model]
- A declined refund or rejected notice is recorded on the aggregate and counted;
  the run still completes (has_errors tells the caller)
- PaymentProcessorUnavailableError aborts the batch: outcomes so far are kept,
  status becomes FAILED and the error is re-raised. Rerunning skips settled tickets.

[Concurrency]
- Items run in an anyio task group bounded by a CapacityLimiter
  (CANCELLATION_WORKER_CONCURRENCY) to respect payment-processor rate limits
- Once the PROCESSING snapshot is saved the run is shielded from cancellation
- Progress is published under a lock so subscribers see current_step in order,
  and the stream is closed before the result is returned
"""

import time
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Self

import anyio
import attrs
from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.core_setting import Settings
from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.cancellation_metrics import CancellationMetrics
from src.service.cancellation.app.dto.delivery_result_dto import RefundResult
from src.service.cancellation.app.interface.i_cancellation_repo import ICancellationRepo
from src.service.cancellation.app.interface.i_event_catalog import IEventCatalog
from src.service.cancellation.app.interface.i_messaging_provider import IMessagingProvider
from src.service.cancellation.app.interface.i_payment_ledger import IPaymentLedger
from src.service.cancellation.app.interface.i_progress_broadcaster import IProgressBroadcaster
from src.service.cancellation.domain.aggregate.event_cancellation_aggregate import (
    EventCancellation,
    ProcessingError,
    ProcessingErrorType,
    RefundRecord,
)
from src.service.cancellation.domain.entity.sold_ticket_entity import SoldTicket
from src.service.cancellation.domain.enum.compensation_type import (
    CompensationType,
    ProcessingMethod,
)
from src.service.cancellation.domain.enum.processing_phase import ProcessingPhase
from src.service.cancellation.domain.enum.refund_status import RefundStatus
from src.service.cancellation.domain.errors import (
    CancellationNotFoundError,
    ConcurrentModificationError,
    PaymentProcessorUnavailableError,
)
from src.service.cancellation.domain.notification_previewer import preview
from src.service.cancellation.domain.value_object.cancellation_progress import (
    CancellationProgress,
)
from src.service.cancellation.domain.value_object.identifiers import (
    CancellationId,
    TicketId,
    UserId,
)
from src.service.cancellation.domain.value_object.money import ZERO, minor_unit, truncate
from src.service.cancellation.domain.value_object.notification import NotificationPreview


ProgressCallback = Callable[[CancellationProgress], None]


def _now() -> datetime:
    return datetime.now(timezone.utc)


class _ProgressReporter:
    """Serializes progress so current_step and phase only move forward"""

    def __init__(
        self,
        *,
        cancellation_id: CancellationId,
        total_steps: int,
        broadcaster: IProgressBroadcaster,
        on_progress: Optional[ProgressCallback],
    ) -> None:
        self.cancellation_id = cancellation_id
        self.total_steps = total_steps
        self.current_step = 0
        self.broadcaster = broadcaster
        self.on_progress = on_progress
        self._lock = anyio.Lock()

    async def step(self, *, phase: ProcessingPhase, message: str, advance: int = 1) -> None:
        async with self._lock:
            self.current_step = min(self.current_step + advance, self.total_steps)
            progress = CancellationProgress(
                cancellation_id=self.cancellation_id,
                phase=phase,
                current_step=self.current_step,
                total_steps=self.total_steps,
                message=message,
            )
            await self.broadcaster.broadcast(progress=progress)
            if self.on_progress:
                self.on_progress(progress)


@attrs.define
class _RunOutcome:
    """Mutable scratchpad shared by the workers of one run"""

    refund_records: Dict[TicketId, RefundRecord] = attrs.field(factory=dict)
    notified: set[UserId] = attrs.field(factory=set)
    failed_recipients: set[UserId] = attrs.field(factory=set)
    errors: List[ProcessingError] = attrs.field(factory=list)
    abort: Optional[PaymentProcessorUnavailableError] = None


class ProcessCancellationUseCase:
    def __init__(
        self,
        *,
        cancellation_repo: ICancellationRepo,
        event_catalog: IEventCatalog,
        payment_ledger: IPaymentLedger,
        messaging_provider: IMessagingProvider,
        progress_broadcaster: IProgressBroadcaster,
        settings: Settings,
        metrics: CancellationMetrics,
    ) -> None:
        self.cancellation_repo = cancellation_repo
        self.event_catalog = event_catalog
        self.payment_ledger = payment_ledger
        self.messaging_provider = messaging_provider
        self.progress_broadcaster = progress_broadcaster
        self.concurrency = settings.CANCELLATION_WORKER_CONCURRENCY
        self.metrics = metrics
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        cancellation_repo: ICancellationRepo = Depends(Provide[Container.cancellation_repo]),
        event_catalog: IEventCatalog = Depends(Provide[Container.event_catalog]),
        payment_ledger: IPaymentLedger = Depends(Provide[Container.payment_ledger]),
        messaging_provider: IMessagingProvider = Depends(Provide[Container.messaging_provider]),
        progress_broadcaster: IProgressBroadcaster = Depends(
            Provide[Container.progress_broadcaster]
        ),
        settings: Settings = Depends(Provide[Container.config_service]),
        metrics: CancellationMetrics = Depends(Provide[Container.cancellation_metrics]),
    ) -> Self:
        return cls(
            cancellation_repo=cancellation_repo,
            event_catalog=event_catalog,
            payment_ledger=payment_ledger,
            messaging_provider=messaging_provider,
            progress_broadcaster=progress_broadcaster,
            settings=settings,
            metrics=metrics,
        )

    @Logger.io
    async def execute(
        self,
        *,
        cancellation_id: CancellationId,
        retry_failed: bool = False,
        on_progress: Optional[ProgressCallback] = None,
    ) -> EventCancellation:
        """
        Run (or rerun) the refund and notification batch.

        Args:
            cancellation_id: Cancellation to process
            retry_failed: Reopen a COMPLETED cancellation that still has failures
            on_progress: Called synchronously with every progress value, in order

        Returns:
            The COMPLETED aggregate, possibly with has_errors

        Raises:
            InvalidCancellationStateError: not confirmed, or nothing left to retry
            PaymentProcessorUnavailableError: batch aborted, aggregate saved as FAILED
        """
        loaded = await self.cancellation_repo.get(cancellation_id=cancellation_id)
        if not loaded:
            raise CancellationNotFoundError()
        processing = loaded.start_processing(retry_failed=retry_failed)

        with self.tracer.start_as_current_span(
            'use_case.process_cancellation',
            attributes={
                'cancellation.id': str(cancellation_id),
                'cancellation.retry': retry_failed,
                'cancellation.processing_method': processing.compensation_plan.processing_method.value,
            },
        ):
            # Refund attempts are not resumable mid-flight: run to the end once started
            with anyio.CancelScope(shield=True):
                try:
                    processing = await self.cancellation_repo.save(
                        cancellation=processing, expected_version=loaded.version
                    )
                except ConcurrentModificationError:
                    # another runner started first
                    self.metrics.record_conflict()
                    raise
                self.metrics.record_transition(status=processing.status.value)
                self.metrics.cancellations_in_progress.inc()
                started = time.perf_counter()
                result = 'failed'
                try:
                    completed = await self._run(processing, on_progress=on_progress)
                    result = 'completed_with_errors' if completed.has_errors else 'completed'
                    return completed
                finally:
                    await self.progress_broadcaster.close(cancellation_id=cancellation_id)
                    self.metrics.cancellations_in_progress.dec()
                    self.metrics.record_processing_run(
                        processing_method=processing.compensation_plan.processing_method.value,
                        result=result,
                        duration=time.perf_counter() - started,
                    )

    async def _run(
        self, cancellation: EventCancellation, *, on_progress: Optional[ProgressCallback]
    ) -> EventCancellation:
        # ---------------------------------------------------------- calculating
        sold_tickets = await self.payment_ledger.list_sold_tickets(event_id=cancellation.event_id)
        amounts = self._ticket_amounts(cancellation, sold_tickets)
        to_refund = [t for t in sold_tickets if not cancellation.is_refund_settled(t.id)]
        recipients: Dict[UserId, str] = {}
        for ticket in sold_tickets:
            if ticket.holder_id not in cancellation.notified_recipients:
                recipients.setdefault(ticket.holder_id, ticket.holder_email)

        reporter = _ProgressReporter(
            cancellation_id=cancellation.id,
            total_steps=len(recipients) + len(to_refund) + 2,
            broadcaster=self.progress_broadcaster,
            on_progress=on_progress,
        )
        await reporter.step(
            phase=ProcessingPhase.CALCULATING,
            message=f'Preparing {len(to_refund)} refunds and {len(recipients)} notifications',
        )
        Logger.base.info(
            f'⚙️ [PROCESS] {cancellation.id}: {len(to_refund)} refunds, '
            f'{len(recipients)} notifications, method={cancellation.compensation_plan.processing_method.value}'
        )

        outcome = _RunOutcome()
        limiter = anyio.CapacityLimiter(self.concurrency)

        # ------------------------------------------------------------ notifying
        notice = preview(cancellation)
        async with anyio.create_task_group() as tg:
            for recipient_id, email in recipients.items():
                tg.start_soon(
                    self._notify_one, recipient_id, email, notice, outcome, limiter, reporter
                )

        # ------------------------------------------------------------ refunding
        async with anyio.create_task_group() as tg:
            for ticket in to_refund:
                tg.start_soon(
                    self._refund_one,
                    cancellation,
                    ticket,
                    amounts[ticket.id],
                    outcome,
                    limiter,
                    reporter,
                    tg.cancel_scope,
                )

        recorded = cancellation.record_outcomes(
            refund_records=outcome.refund_records,
            notified=frozenset(outcome.notified),
            failed_recipients=frozenset(outcome.failed_recipients),
            errors=outcome.errors,
        )

        # ----------------------------------------------------------- finalizing
        if outcome.abort is not None:
            failed = recorded.mark_failed(message=str(outcome.abort))
            await self.cancellation_repo.save(cancellation=failed, expected_version=cancellation.version)
            self.metrics.record_transition(status=failed.status.value)
            await reporter.step(
                phase=ProcessingPhase.FINALIZING,
                message=f'Processing aborted: {outcome.abort}',
                advance=0,
            )
            Logger.base.error(
                f'💥 [PROCESS] {cancellation.id} aborted after '
                f'{len(outcome.refund_records)} refund attempts: {outcome.abort}'
            )
            raise outcome.abort

        completed = await self.cancellation_repo.save(
            cancellation=recorded.complete(), expected_version=cancellation.version
        )
        self.metrics.record_transition(status=completed.status.value)
        await self.event_catalog.mark_cancelled(event_id=completed.event_id)

        summary = (
            f'{completed.refunds_processed} refunded, {completed.refunds_failed} failed, '
            f'{completed.refunds_manual} manual, {completed.notifications_sent} notified'
        )
        await reporter.step(phase=ProcessingPhase.FINALIZING, message=f'Completed: {summary}')
        Logger.base.info(f'🏁 [PROCESS] {completed.id} completed ({summary})')
        return completed

    @staticmethod
    def _ticket_amounts(
        cancellation: EventCancellation, sold_tickets: List[SoldTicket]
    ) -> Dict[TicketId, Decimal]:
        """
        Each ticket gets its share of the plan total, pro rata to what it paid.

        Shares are truncated to the currency's minor unit and the leftover units
        go one each to the largest remainders (ties keep ledger order), so the
        amounts add up to the plan total. The ledger order is stable, so a rerun
        computes the same amount for every ticket.
        """
        gross = cancellation.impact.gross_revenue
        if gross == ZERO or not sold_tickets:
            return {ticket.id: ZERO for ticket in sold_tickets}
        total = cancellation.compensation_plan.total_refund_amount
        places = cancellation.impact.decimal_places
        unit = minor_unit(places)

        exact = {ticket.id: ticket.amount_paid * total / gross for ticket in sold_tickets}
        amounts = {ticket_id: truncate(share, places=places) for ticket_id, share in exact.items()}

        leftover_units = int((total - sum(amounts.values(), ZERO)) / unit)
        by_remainder = sorted(
            amounts, key=lambda ticket_id: exact[ticket_id] - amounts[ticket_id], reverse=True
        )
        for ticket_id in by_remainder[: max(leftover_units, 0)]:
            amounts[ticket_id] += unit
        return amounts

    async def _notify_one(
        self,
        recipient_id: UserId,
        email: str,
        notice: NotificationPreview,
        outcome: _RunOutcome,
        limiter: anyio.CapacityLimiter,
        reporter: _ProgressReporter,
    ) -> None:
        async with limiter:
            try:
                delivery = await self.messaging_provider.send(
                    recipient_id=recipient_id,
                    recipient_email=email,
                    subject=notice.subject,
                    body=notice.body,
                )
                error_message = delivery.error_message
                sent = delivery.success
            except Exception as e:
                # counted as a failed notification
                Logger.base.warning(f'✉️ [PROCESS] Notification to {recipient_id} raised: {e}')
                error_message, sent = str(e), False

        if sent:
            outcome.notified.add(recipient_id)
            self.metrics.record_notification(result='sent')
        else:
            outcome.failed_recipients.add(recipient_id)
            outcome.errors.append(
                ProcessingError(
                    error_type=ProcessingErrorType.NOTIFICATION_FAILED,
                    message=error_message or 'Notification failed',
                    occurred_at=_now(),
                    recipient_id=recipient_id,
                )
            )
            self.metrics.record_notification(result='failed')
        await reporter.step(
            phase=ProcessingPhase.NOTIFYING,
            message=f'Notifying attendees ({len(outcome.notified)} sent)',
        )

    async def _refund_one(
        self,
        cancellation: EventCancellation,
        ticket: SoldTicket,
        amount: Decimal,
        outcome: _RunOutcome,
        limiter: anyio.CapacityLimiter,
        reporter: _ProgressReporter,
        batch_scope: anyio.CancelScope,
    ) -> None:
        plan = cancellation.compensation_plan
        if plan.processing_method is ProcessingMethod.MANUAL:
            record = RefundRecord(
                ticket_id=ticket.id, amount=amount, status=RefundStatus.MANUAL_REQUIRED
            )
        else:
            payout = (
                self.payment_ledger.issue_credit
                if plan.compensation_type is CompensationType.EVENT_CREDIT
                else self.payment_ledger.refund
            )
            async with limiter:
                try:
                    refund = await payout(
                        cancellation_id=cancellation.id, ticket_id=ticket.id, amount=amount
                    )
                except PaymentProcessorUnavailableError as e:
                    if outcome.abort is None:
                        outcome.abort = e
                    batch_scope.cancel()
                    return
                except Exception as e:
                    Logger.base.warning(f'💳 [PROCESS] Refund for ticket {ticket.id} raised: {e}')
                    refund = RefundResult(success=False, error_message=str(e))

            if refund.success:
                record = RefundRecord(
                    ticket_id=ticket.id,
                    amount=amount,
                    status=RefundStatus.SUCCEEDED,
                    reference=refund.reference,
                )
            else:
                record = RefundRecord(
                    ticket_id=ticket.id,
                    amount=amount,
                    status=RefundStatus.FAILED,
                    error=refund.error_message,
                )
                outcome.errors.append(
                    ProcessingError(
                        error_type=ProcessingErrorType.REFUND_FAILED,
                        message=refund.error_message or 'Refund failed',
                        occurred_at=_now(),
                        ticket_id=ticket.id,
                        requires_manual_action=plan.processing_method is ProcessingMethod.HYBRID,
                    )
                )

        outcome.refund_records[ticket.id] = record
        self.metrics.record_refund(
            compensation_type=plan.compensation_type.value, result=record.status.value
        )
        await reporter.step(
            phase=ProcessingPhase.REFUNDING,
            message=f'Processing refunds ({len(outcome.refund_records)} handled)',
        )
