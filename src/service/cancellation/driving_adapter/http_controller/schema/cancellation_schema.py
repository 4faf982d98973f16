from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from src.platform.types import UtilsUUID7
from src.service.cancellation.domain.aggregate.event_cancellation_aggregate import (
    EventCancellation,
)
from src.service.cancellation.domain.enum.cancellation_reason import CancellationReason
from src.service.cancellation.domain.enum.compensation_type import (
    CompensationType,
    ProcessingMethod,
)
from src.service.cancellation.domain.value_object.cancellation_impact import CancellationImpact
from src.service.cancellation.domain.value_object.compensation_plan import (
    DEFAULT_NOTIFICATION_TEMPLATE,
    CompensationPlan,
)
from src.service.cancellation.domain.value_object.notification import NotificationPreview


# ============================ Requests ============================


class CancellationCreateRequest(BaseModel):
    event_id: UtilsUUID7
    reason: CancellationReason
    reason_note: Optional[str] = None
    initiated_by: UtilsUUID7

    class Config:
        json_schema_extra = {
            'example': {
                'event_id': '01234567-89ab-7def-0123-456789abcdef',
                'reason': 'venue_issue',
                'reason_note': 'Venue flooded after heavy rain',
                'initiated_by': '01234567-89ab-7def-0123-456789abcde0',
            }
        }


class CompensationPlanRequest(BaseModel):
    compensation_type: CompensationType = CompensationType.FULL_REFUND
    processing_method: ProcessingMethod = ProcessingMethod.AUTOMATIC
    refund_percentage: Optional[Decimal] = None  # partial_refund: 0.1 - 1.0
    credit_multiplier: Optional[Decimal] = None  # event_credit: 1.0 - 1.5
    organizer_note: Optional[str] = None
    notification_template: str = DEFAULT_NOTIFICATION_TEMPLATE

    class Config:
        json_schema_extra = {
            'example': {
                'compensation_type': 'partial_refund',
                'processing_method': 'hybrid',
                'refund_percentage': '0.5',
                'organizer_note': 'We are sorry, see you next season.',
            }
        }


class NotificationPreviewRequest(CompensationPlanRequest):
    event_id: UtilsUUID7
    reason: CancellationReason


class ConfirmCancellationRequest(BaseModel):
    confirmation_code: str
    confirmed_by: UtilsUUID7

    class Config:
        json_schema_extra = {
            'example': {
                'confirmation_code': 'CONFIRM',
                'confirmed_by': '01234567-89ab-7def-0123-456789abcde0',
            }
        }


class ConfirmAndProcessRequest(ConfirmCancellationRequest):
    plan: Optional[CompensationPlanRequest] = None


# ============================ Responses ============================


class TicketTypeImpactResponse(BaseModel):
    ticket_type_id: UtilsUUID7
    name: str
    tickets_sold: int
    revenue: Decimal
    refund_amount: Decimal


class PaymentMethodImpactResponse(BaseModel):
    payment_method: str
    ticket_count: int
    refund_amount: Decimal
    estimated_processing_time: str


class CancellationWarningResponse(BaseModel):
    code: str
    severity: str
    title: str
    description: str


class CancellationImpactResponse(BaseModel):
    event_id: UtilsUUID7
    calculated_at: datetime
    currency: str
    tickets_sold: int
    attendees_count: int
    vip_tickets: int
    regular_tickets: int
    checked_in_tickets: int
    transferred_tickets: int
    gross_revenue: Decimal
    platform_fees_retained: Decimal
    refund_total: Decimal
    processing_fees_estimate: Decimal
    net_refund_amount: Decimal
    organizer_payout_adjustment: Decimal
    formatted_refund_total: str
    ticket_type_breakdown: List[TicketTypeImpactResponse]
    payment_method_breakdown: List[PaymentMethodImpactResponse]
    warnings: List[CancellationWarningResponse]


class CompensationPlanResponse(BaseModel):
    compensation_type: str
    processing_method: str
    total_refund_amount: Decimal
    refund_percentage: Optional[Decimal] = None
    credit_multiplier: Optional[Decimal] = None
    organizer_note: Optional[str] = None
    notification_template: str


class NotificationPreviewResponse(BaseModel):
    subject: str
    body: str
    recipient_count: int
    sample_recipients: List[str]


class ProcessingErrorResponse(BaseModel):
    error_type: str
    message: str
    occurred_at: datetime
    ticket_id: Optional[UtilsUUID7] = None
    recipient_id: Optional[UtilsUUID7] = None
    requires_manual_action: bool
    resolved: bool


class CancellationResponse(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            'example': {
                'id': '01234567-89ab-7def-0123-456789abcdef',
                'event_id': '01234567-89ab-7def-0123-456789abcde1',
                'event_title': 'Nyege Nyege Festival',
                'status': 'completed',
                'refunds_processed': 7,
                'refunds_failed': 3,
                'has_errors': True,
            }
        }
    )

    id: UtilsUUID7
    event_id: UtilsUUID7
    event_title: str
    organizer_id: UtilsUUID7
    reason: str
    reason_display_name: str
    reason_note: Optional[str] = None
    status: str
    impact: CancellationImpactResponse
    compensation_plan: CompensationPlanResponse
    initiated_by: UtilsUUID7
    confirmed_by: Optional[UtilsUUID7] = None
    created_at: datetime
    confirmed_at: Optional[datetime] = None
    processing_started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    refunds_processed: int
    refunds_failed: int
    refunds_manual: int
    refunded_amount: Decimal
    notifications_sent: int
    notifications_failed: int
    has_errors: bool
    processing_progress: float
    processing_errors: List[ProcessingErrorResponse]
    version: int


# ============================ Mapping ============================


def impact_response(impact: CancellationImpact) -> CancellationImpactResponse:
    return CancellationImpactResponse(
        event_id=impact.event_id,
        calculated_at=impact.calculated_at,
        currency=impact.currency,
        tickets_sold=impact.tickets_sold,
        attendees_count=impact.attendees_count,
        vip_tickets=impact.vip_tickets,
        regular_tickets=impact.regular_tickets,
        checked_in_tickets=impact.checked_in_tickets,
        transferred_tickets=impact.transferred_tickets,
        gross_revenue=impact.gross_revenue,
        platform_fees_retained=impact.platform_fees_retained,
        refund_total=impact.refund_total,
        processing_fees_estimate=impact.processing_fees_estimate,
        net_refund_amount=impact.net_refund_amount,
        organizer_payout_adjustment=impact.organizer_payout_adjustment,
        formatted_refund_total=impact.formatted_refund_total,
        ticket_type_breakdown=[
            TicketTypeImpactResponse(
                ticket_type_id=t.ticket_type_id,
                name=t.name,
                tickets_sold=t.tickets_sold,
                revenue=t.revenue,
                refund_amount=t.refund_amount,
            )
            for t in impact.ticket_type_breakdown
        ],
        payment_method_breakdown=[
            PaymentMethodImpactResponse(
                payment_method=m.payment_method.value,
                ticket_count=m.ticket_count,
                refund_amount=m.refund_amount,
                estimated_processing_time=m.estimated_processing_time,
            )
            for m in impact.payment_method_breakdown
        ],
        warnings=[
            CancellationWarningResponse(
                code=w.code, severity=w.severity.value, title=w.title, description=w.description
            )
            for w in impact.warnings
        ],
    )


def plan_response(plan: CompensationPlan) -> CompensationPlanResponse:
    return CompensationPlanResponse(
        compensation_type=plan.compensation_type.value,
        processing_method=plan.processing_method.value,
        total_refund_amount=plan.total_refund_amount,
        refund_percentage=plan.refund_percentage,
        credit_multiplier=plan.credit_multiplier,
        organizer_note=plan.organizer_note,
        notification_template=plan.notification_template,
    )


def preview_response(preview: NotificationPreview) -> NotificationPreviewResponse:
    return NotificationPreviewResponse(
        subject=preview.subject,
        body=preview.body,
        recipient_count=preview.recipient_count,
        sample_recipients=preview.sample_recipients,
    )


def cancellation_response(cancellation: EventCancellation) -> CancellationResponse:
    return CancellationResponse(
        id=cancellation.id,
        event_id=cancellation.event_id,
        event_title=cancellation.event_title,
        organizer_id=cancellation.organizer_id,
        reason=cancellation.reason.value,
        reason_display_name=cancellation.reason.display_name,
        reason_note=cancellation.reason_note,
        status=cancellation.status.value,
        impact=impact_response(cancellation.impact),
        compensation_plan=plan_response(cancellation.compensation_plan),
        initiated_by=cancellation.initiated_by,
        confirmed_by=cancellation.confirmed_by,
        created_at=cancellation.created_at,
        confirmed_at=cancellation.confirmed_at,
        processing_started_at=cancellation.processing_started_at,
        completed_at=cancellation.completed_at,
        refunds_processed=cancellation.refunds_processed,
        refunds_failed=cancellation.refunds_failed,
        refunds_manual=cancellation.refunds_manual,
        refunded_amount=cancellation.refunded_amount,
        notifications_sent=cancellation.notifications_sent,
        notifications_failed=cancellation.notifications_failed,
        has_errors=cancellation.has_errors,
        processing_progress=cancellation.processing_progress,
        processing_errors=[
            ProcessingErrorResponse(
                error_type=e.error_type.value,
                message=e.message,
                occurred_at=e.occurred_at,
                ticket_id=e.ticket_id,
                recipient_id=e.recipient_id,
                requires_manual_action=e.requires_manual_action,
                resolved=e.resolved,
            )
            for e in cancellation.processing_errors
        ],
        version=cancellation.version,
    )
