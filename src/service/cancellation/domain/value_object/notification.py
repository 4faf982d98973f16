from typing import Dict, List

import attrs


@attrs.frozen
class NotificationTemplate:
    key: str
    subject: str
    body: str
    include_refund_details: bool = True
    refund_details: str = ''


@attrs.frozen
class NotificationPreview:
    subject: str
    body: str
    recipient_count: int
    sample_recipients: List[str] = attrs.field(factory=list)


DEFAULT_CANCELLATION_TEMPLATE = NotificationTemplate(
    key='default_cancellation',
    subject='Event Cancelled: ${event_name}',
    body=(
        'We regret to inform you that ${event_name} scheduled for ${event_date} '
        'has been cancelled.\n\n'
        'Reason: ${reason}\n\n'
        '${compensation_summary}\n'
        '${refund_details}\n'
        'We apologize for any inconvenience. If you have questions, please contact our '
        'support team.'
    ),
    refund_details=(
        'Refund Details:\n'
        'Amount: ${refund_amount}\n'
        'Method: ${refund_method}\n'
        'Timeline: ${refund_timeline}\n'
    ),
)

BRIEF_CANCELLATION_TEMPLATE = NotificationTemplate(
    key='brief_cancellation',
    subject='${event_name} has been cancelled',
    body='${event_name} on ${event_date} is cancelled (${reason}).\n${compensation_summary}\n',
    include_refund_details=False,
)

NOTIFICATION_TEMPLATES: Dict[str, NotificationTemplate] = {
    template.key: template
    for template in (DEFAULT_CANCELLATION_TEMPLATE, BRIEF_CANCELLATION_TEMPLATE)
}
