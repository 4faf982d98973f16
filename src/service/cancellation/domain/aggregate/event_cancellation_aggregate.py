"""
Event Cancellation Aggregate - Aggregate Root of the cancellation workflow

[DDD Design Principles]
- EventCancellation is the single source of truth for one cancellation
- Every transition returns a new snapshot (attrs.evolve), nothing mutates in place
- The referenced Event is never written; the catalog applies the status change itself

[Business Invariants]
- Status only moves pending -> confirmed -> processing -> completed | failed
- The compensation plan is frozen once the cancellation leaves pending
- A ticket refund that succeeded (or was handed to the organizer) is never attempted again
- Counters are derived from per-ticket records, so retries cannot double count
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import StrEnum
from typing import Dict, FrozenSet, List, Mapping, Optional

import attrs

from src.platform.logging.loguru_io import Logger
from src.service.cancellation.domain.confirmation_guard import ensure_confirmation_code
from src.service.cancellation.domain.entity.event_entity import Event
from src.service.cancellation.domain.enum.cancellation_reason import CancellationReason
from src.service.cancellation.domain.enum.cancellation_status import CancellationStatus
from src.service.cancellation.domain.enum.refund_status import RefundStatus
from src.service.cancellation.domain.errors import (
    InvalidCancellationStateError,
    PlanAlreadyFinalizedError,
)
from src.service.cancellation.domain.value_object.cancellation_impact import CancellationImpact
from src.service.cancellation.domain.value_object.compensation_plan import CompensationPlan
from src.service.cancellation.domain.value_object.identifiers import (
    CancellationId,
    EventId,
    TicketId,
    UserId,
    new_cancellation_id,
)


class ProcessingErrorType(StrEnum):
    REFUND_FAILED = 'refund_failed'
    NOTIFICATION_FAILED = 'notification_failed'
    PROCESSOR_UNAVAILABLE = 'processor_unavailable'


@attrs.frozen
class RefundRecord:
    ticket_id: TicketId
    amount: Decimal
    status: RefundStatus
    attempts: int = 1
    reference: Optional[str] = None
    error: Optional[str] = None


@attrs.frozen
class ProcessingError:
    error_type: ProcessingErrorType
    message: str
    occurred_at: datetime
    ticket_id: Optional[TicketId] = None
    recipient_id: Optional[UserId] = None
    requires_manual_action: bool = False
    resolved: bool = False


def _now() -> datetime:
    return datetime.now(timezone.utc)


@attrs.define
class EventCancellation:
    id: CancellationId
    event_id: EventId
    event_title: str
    event_start_date: datetime
    organizer_id: UserId
    reason: CancellationReason
    impact: CancellationImpact
    compensation_plan: CompensationPlan
    initiated_by: UserId
    reason_note: Optional[str] = None
    status: CancellationStatus = CancellationStatus.PENDING

    created_at: datetime = attrs.field(factory=_now)
    confirmed_at: Optional[datetime] = None
    processing_started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    confirmed_by: Optional[UserId] = None
    confirmation_code: Optional[str] = None

    refund_records: Dict[TicketId, RefundRecord] = attrs.field(factory=dict)
    notified_recipients: FrozenSet[UserId] = frozenset()
    failed_recipients: FrozenSet[UserId] = frozenset()
    processing_errors: List[ProcessingError] = attrs.field(factory=list)

    version: int = 0

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        event: Event,
        reason: CancellationReason,
        impact: CancellationImpact,
        compensation_plan: CompensationPlan,
        initiated_by: UserId,
        reason_note: Optional[str] = None,
    ) -> 'EventCancellation':
        return cls(
            id=new_cancellation_id(),
            event_id=event.id,
            event_title=event.title,
            event_start_date=event.start_date,
            organizer_id=event.organizer_id,
            reason=reason,
            reason_note=reason_note or None,
            impact=impact,
            compensation_plan=compensation_plan,
            initiated_by=initiated_by,
        )

    # ------------------------------------------------------------------ derived

    @property
    def refunds_processed(self) -> int:
        return self._count_refunds(RefundStatus.SUCCEEDED)

    @property
    def refunds_failed(self) -> int:
        return self._count_refunds(RefundStatus.FAILED)

    @property
    def refunds_manual(self) -> int:
        return self._count_refunds(RefundStatus.MANUAL_REQUIRED)

    @property
    def refund_requests_created(self) -> int:
        return len(self.refund_records)

    @property
    def refunded_amount(self) -> Decimal:
        return sum(
            (r.amount for r in self.refund_records.values() if r.status is RefundStatus.SUCCEEDED),
            Decimal(0),
        )

    @property
    def notifications_sent(self) -> int:
        return len(self.notified_recipients)

    @property
    def notifications_failed(self) -> int:
        return len(self.failed_recipients)

    @property
    def has_errors(self) -> bool:
        return self.refunds_failed > 0 or self.notifications_failed > 0

    @property
    def is_reversible(self) -> bool:
        return self.status.is_reversible

    @property
    def processing_progress(self) -> float:
        if self.impact.tickets_sold == 0:
            return 1.0
        settled = self.refunds_processed + self.refunds_manual
        return settled / self.impact.tickets_sold

    def is_refund_settled(self, ticket_id: TicketId) -> bool:
        record = self.refund_records.get(ticket_id)
        return record is not None and record.status.is_settled

    def _count_refunds(self, status: RefundStatus) -> int:
        return sum(1 for record in self.refund_records.values() if record.status is status)

    # -------------------------------------------------------------- transitions

    @Logger.io
    def with_compensation_plan(self, plan: CompensationPlan) -> 'EventCancellation':
        if self.status is not CancellationStatus.PENDING:
            raise PlanAlreadyFinalizedError()
        if plan.event_id != self.event_id:
            raise InvalidCancellationStateError('compensation plan belongs to another event')
        return attrs.evolve(self, compensation_plan=plan)

    @Logger.io
    def confirm(self, *, confirmation_code: str, confirmed_by: UserId) -> 'EventCancellation':
        ensure_confirmation_code(confirmation_code)
        if self.status is not CancellationStatus.PENDING:
            raise InvalidCancellationStateError(
                f'cannot confirm a cancellation that is {self.status.value}'
            )
        return attrs.evolve(
            self,
            status=CancellationStatus.CONFIRMED,
            confirmed_at=_now(),
            confirmed_by=confirmed_by,
            confirmation_code=confirmation_code,
        )

    @Logger.io
    def start_processing(self, *, retry_failed: bool = False) -> 'EventCancellation':
        """
        Enter PROCESSING.

        CONFIRMED and FAILED (catastrophic abort) always qualify. A COMPLETED
        cancellation is reopened only through retry_failed, and only while it
        still has failed refunds or notifications.
        """
        reopen = retry_failed and self.status is CancellationStatus.COMPLETED and self.has_errors
        if not (self.status.is_processable or reopen):
            if self.status is CancellationStatus.COMPLETED:
                raise InvalidCancellationStateError('No failed refunds to retry')
            raise InvalidCancellationStateError(
                f'cancellation must be confirmed before processing (status={self.status.value})'
            )
        return attrs.evolve(
            self,
            status=CancellationStatus.PROCESSING,
            processing_started_at=self.processing_started_at or _now(),
        )

    @Logger.io
    def record_outcomes(
        self,
        *,
        refund_records: Mapping[TicketId, RefundRecord],
        notified: FrozenSet[UserId],
        failed_recipients: FrozenSet[UserId],
        errors: List[ProcessingError],
    ) -> 'EventCancellation':
        if self.status is not CancellationStatus.PROCESSING:
            raise InvalidCancellationStateError('outcomes can only be recorded while processing')

        merged: Dict[TicketId, RefundRecord] = dict(self.refund_records)
        for ticket_id, record in refund_records.items():
            previous = merged.get(ticket_id)
            attempts = previous.attempts + 1 if previous else record.attempts
            merged[ticket_id] = attrs.evolve(record, attempts=attempts)

        all_notified = self.notified_recipients | notified

        def _is_resolved(error: ProcessingError) -> bool:
            if error.ticket_id is not None:
                record = merged.get(error.ticket_id)
                return record is not None and record.status.is_settled
            return error.recipient_id is not None and error.recipient_id in all_notified

        resolved_errors = [
            attrs.evolve(error, resolved=True)
            if not error.resolved and _is_resolved(error)
            else error
            for error in self.processing_errors
        ]
        return attrs.evolve(
            self,
            refund_records=merged,
            notified_recipients=all_notified,
            failed_recipients=(self.failed_recipients | failed_recipients) - all_notified,
            processing_errors=resolved_errors + list(errors),
        )

    @Logger.io
    def complete(self) -> 'EventCancellation':
        if self.status is not CancellationStatus.PROCESSING:
            raise InvalidCancellationStateError('only a processing cancellation can complete')
        # Completed even with failed items: has_errors carries the partial failure
        return attrs.evolve(self, status=CancellationStatus.COMPLETED, completed_at=_now())

    @Logger.io
    def mark_failed(self, *, message: str) -> 'EventCancellation':
        if self.status is not CancellationStatus.PROCESSING:
            raise InvalidCancellationStateError('only a processing cancellation can fail')
        error = ProcessingError(
            error_type=ProcessingErrorType.PROCESSOR_UNAVAILABLE,
            message=message,
            occurred_at=_now(),
        )
        return attrs.evolve(
            self,
            status=CancellationStatus.FAILED,
            processing_errors=[*self.processing_errors, error],
        )
