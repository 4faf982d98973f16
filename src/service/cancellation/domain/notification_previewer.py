"""
Notification Previewer

Renders the attendee notification for a cancellation from its template.
Pure: the same reason, impact and plan always render the same text.
"""

from datetime import datetime
from decimal import Decimal
from string import Template
from typing import Optional, Sequence

from src.platform.logging.loguru_io import Logger
from src.service.cancellation.domain.aggregate.event_cancellation_aggregate import (
    EventCancellation,
)
from src.service.cancellation.domain.enum.cancellation_reason import CancellationReason
from src.service.cancellation.domain.enum.compensation_type import (
    CompensationType,
    ProcessingMethod,
)
from src.service.cancellation.domain.errors import InvalidCompensationParametersError
from src.service.cancellation.domain.value_object.cancellation_impact import CancellationImpact
from src.service.cancellation.domain.value_object.compensation_plan import CompensationPlan
from src.service.cancellation.domain.value_object.notification import (
    NOTIFICATION_TEMPLATES,
    NotificationPreview,
    NotificationTemplate,
)


ORGANIZER_MESSAGE_HEADER = 'Message from the organizer:'


def _percent(value: Decimal) -> str:
    return f'{(value * 100).normalize():f}%'


def _format_event_date(event_date: datetime) -> str:
    return event_date.strftime('%A, %d %B %Y at %H:%M')


def compensation_summary(plan: CompensationPlan) -> str:
    if plan.compensation_type is CompensationType.PARTIAL_REFUND:
        summary = f'You will receive a {_percent(plan.payout_factor)} refund of your ticket price.'
    elif plan.compensation_type is CompensationType.EVENT_CREDIT:
        summary = (
            f'You will receive event credit worth {_percent(plan.payout_factor)} of your '
            'ticket price, usable on any future event.'
        )
    else:
        summary = 'You will receive a full refund of your ticket price.'

    if plan.processing_method is ProcessingMethod.MANUAL:
        summary += ' The organizer will contact you to arrange your refund.'
    return summary


def _refund_method(plan: CompensationPlan) -> str:
    if plan.compensation_type is CompensationType.EVENT_CREDIT:
        return 'Event credit on your account'
    return 'Original payment method'


def _refund_timeline(impact: CancellationImpact) -> str:
    timelines = [
        f'{breakdown.payment_method.value.replace("_", " ").title()}: '
        f'{breakdown.estimated_processing_time}'
        for breakdown in impact.payment_method_breakdown
    ]
    return '; '.join(timelines) or 'Not applicable'


def _template_for(plan: CompensationPlan) -> NotificationTemplate:
    try:
        return NOTIFICATION_TEMPLATES[plan.notification_template]
    except KeyError:
        raise InvalidCompensationParametersError(
            f'unknown notification template {plan.notification_template!r}'
        ) from None


@Logger.io(truncate_content=True)
def render_preview(
    *,
    event_title: str,
    event_date: datetime,
    reason: CancellationReason,
    impact: CancellationImpact,
    plan: CompensationPlan,
    sample_recipients: Sequence[str] = (),
) -> NotificationPreview:
    template = _template_for(plan)
    values = {
        'event_name': event_title,
        'event_date': _format_event_date(event_date),
        'reason': reason.display_name,
        'compensation_summary': compensation_summary(plan),
        'refund_amount': _percent(plan.payout_factor) + ' of the amount you paid',
        'refund_method': _refund_method(plan),
        'refund_timeline': _refund_timeline(impact),
    }
    values['refund_details'] = (
        Template(template.refund_details).substitute(values) if template.include_refund_details else ''
    )

    body = Template(template.body).substitute(values)
    # Organizer's own words always come last
    if plan.organizer_note:
        body = f'{body}\n\n{ORGANIZER_MESSAGE_HEADER}\n{plan.organizer_note}'

    return NotificationPreview(
        subject=Template(template.subject).substitute(values),
        body=body,
        recipient_count=impact.attendees_count,
        sample_recipients=list(sample_recipients),
    )


def preview(
    cancellation: EventCancellation, *, sample_recipients: Optional[Sequence[str]] = None
) -> NotificationPreview:
    return render_preview(
        event_title=cancellation.event_title,
        event_date=cancellation.event_start_date,
        reason=cancellation.reason,
        impact=cancellation.impact,
        plan=cancellation.compensation_plan,
        sample_recipients=sample_recipients or (),
    )
