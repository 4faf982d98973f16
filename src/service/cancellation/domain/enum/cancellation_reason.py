from enum import StrEnum


class CancellationReason(StrEnum):
    ORGANIZER_DECISION = 'organizer_decision'
    VENUE_ISSUE = 'venue_issue'
    FORCE_MAJEURE = 'force_majeure'
    REGULATION = 'regulation'
    LOW_SALES = 'low_sales'
    DUPLICATE = 'duplicate'
    SAFETY_CONCERN = 'safety_concern'
    ADMIN_ACTION = 'admin_action'

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]

    @property
    def is_admin_only(self) -> bool:
        return self is CancellationReason.ADMIN_ACTION

    @classmethod
    def organizer_reasons(cls) -> list['CancellationReason']:
        return [reason for reason in cls if not reason.is_admin_only]


_DISPLAY_NAMES = {
    CancellationReason.ORGANIZER_DECISION: 'Organizer Decision',
    CancellationReason.VENUE_ISSUE: 'Venue Issue',
    CancellationReason.FORCE_MAJEURE: 'Force Majeure',
    CancellationReason.REGULATION: 'Government Regulation',
    CancellationReason.LOW_SALES: 'Low Ticket Sales',
    CancellationReason.DUPLICATE: 'Duplicate Event',
    CancellationReason.SAFETY_CONCERN: 'Safety Concern',
    CancellationReason.ADMIN_ACTION: 'Platform Action',
}

_DESCRIPTIONS = {
    CancellationReason.ORGANIZER_DECISION: 'The organizer has decided to cancel this event',
    CancellationReason.VENUE_ISSUE: 'The venue is no longer available or suitable',
    CancellationReason.FORCE_MAJEURE: 'Unforeseeable circumstances (natural disaster, pandemic, etc.)',
    CancellationReason.REGULATION: 'Government restrictions or regulatory requirements',
    CancellationReason.LOW_SALES: 'Insufficient ticket sales to proceed',
    CancellationReason.DUPLICATE: 'This event was created in error (duplicate)',
    CancellationReason.SAFETY_CONCERN: 'The event cannot be held safely',
    CancellationReason.ADMIN_ACTION: 'Platform administrative action',
}
