"""
Cancellation Workflow State

Immutable snapshot of the organizer's progress through the six steps:

    reason -> impact -> compensation -> notification -> financial -> confirm

Gate per step (can_proceed):
- reason:        a reason is selected
- impact:        impact has been computed
- compensation:  always
- notification:  always
- financial:     the financial impact is acknowledged
- confirm:       the confirmation text reads CONFIRM

Fields can only be edited on the step that owns them.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, FrozenSet, Optional

import attrs

from src.service.cancellation.domain.aggregate.event_cancellation_aggregate import (
    EventCancellation,
)
from src.service.cancellation.domain.confirmation_guard import is_valid_confirmation_code
from src.service.cancellation.domain.enum.cancellation_reason import CancellationReason
from src.service.cancellation.domain.enum.cancellation_step import CancellationStep
from src.service.cancellation.domain.enum.compensation_type import (
    CompensationType,
    ProcessingMethod,
)
from src.service.cancellation.domain.errors import InvalidCancellationStateError
from src.service.cancellation.domain.value_object.cancellation_impact import CancellationImpact
from src.service.cancellation.domain.value_object.compensation_plan import (
    DEFAULT_NOTIFICATION_TEMPLATE,
    CompensationPlan,
)
from src.service.cancellation.domain.value_object.identifiers import (
    CancellationId,
    EventId,
    UserId,
)
from src.service.cancellation.domain.value_object.notification import NotificationPreview


_COMPENSATION_FIELDS = frozenset(
    {'compensation_type', 'refund_percentage', 'credit_multiplier', 'processing_method'}
)

EDITABLE_FIELDS: Dict[CancellationStep, FrozenSet[str]] = {
    CancellationStep.REASON: frozenset({'reason', 'reason_note'}),
    CancellationStep.IMPACT: frozenset(),
    CancellationStep.COMPENSATION: _COMPENSATION_FIELDS,
    # plan stays editable here; every edit re-renders the preview
    CancellationStep.NOTIFICATION: _COMPENSATION_FIELDS
    | {'custom_message', 'notification_template'},
    CancellationStep.FINANCIAL: frozenset({'acknowledged_financial_impact'}),
    CancellationStep.CONFIRM: frozenset({'confirmation_text'}),
}


@attrs.frozen
class CancellationWorkflowState:
    event_id: EventId
    initiated_by: UserId
    current_step: CancellationStep = CancellationStep.REASON

    # reason
    reason: Optional[CancellationReason] = None
    reason_note: str = ''

    # impact
    event_title: Optional[str] = None
    event_start_date: Optional[datetime] = None
    impact: Optional[CancellationImpact] = None

    # compensation
    compensation_type: CompensationType = CompensationType.FULL_REFUND
    refund_percentage: Decimal = Decimal('1.0')
    credit_multiplier: Decimal = Decimal('1.0')
    processing_method: ProcessingMethod = ProcessingMethod.AUTOMATIC
    plan: Optional[CompensationPlan] = None

    # notification
    custom_message: str = ''
    notification_template: str = DEFAULT_NOTIFICATION_TEMPLATE
    preview: Optional[NotificationPreview] = None

    # financial / confirm
    acknowledged_financial_impact: bool = False
    confirmation_text: str = ''

    # submission
    cancellation_id: Optional[CancellationId] = None
    result: Optional[EventCancellation] = None
    error_message: Optional[str] = None

    @property
    def can_proceed(self) -> bool:
        match self.current_step:
            case CancellationStep.REASON:
                return self.reason is not None
            case CancellationStep.IMPACT:
                return self.impact is not None
            case CancellationStep.COMPENSATION | CancellationStep.NOTIFICATION:
                return True
            case CancellationStep.FINANCIAL:
                return self.acknowledged_financial_impact
            case CancellationStep.CONFIRM:
                return is_valid_confirmation_code(self.confirmation_text)
        return False

    @property
    def progress(self) -> float:
        return self.current_step / CancellationStep.CONFIRM

    @property
    def is_submitted(self) -> bool:
        return self.result is not None

    def edit(self, **changes: Any) -> 'CancellationWorkflowState':
        allowed = EDITABLE_FIELDS[self.current_step]
        rejected = sorted(set(changes) - allowed)
        if rejected:
            raise InvalidCancellationStateError(
                f'{", ".join(rejected)} cannot be edited on the {self.current_step.title} step'
            )
        return attrs.evolve(self, error_message=None, **changes)

    def move_to(self, step: CancellationStep, **changes: Any) -> 'CancellationWorkflowState':
        return attrs.evolve(self, current_step=step, error_message=None, **changes)

    def with_error(self, message: str) -> 'CancellationWorkflowState':
        return attrs.evolve(self, error_message=message)

    def selected_refund_percentage(self) -> Optional[Decimal]:
        if self.compensation_type is CompensationType.PARTIAL_REFUND:
            return self.refund_percentage
        return None

    def selected_credit_multiplier(self) -> Optional[Decimal]:
        if self.compensation_type is CompensationType.EVENT_CREDIT:
            return self.credit_multiplier
        return None
