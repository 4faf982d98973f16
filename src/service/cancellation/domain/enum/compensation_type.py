from enum import StrEnum


class CompensationType(StrEnum):
    FULL_REFUND = 'full_refund'
    PARTIAL_REFUND = 'partial_refund'
    EVENT_CREDIT = 'event_credit'

    @property
    def display_name(self) -> str:
        return self.value.replace('_', ' ').title()


class ProcessingMethod(StrEnum):
    AUTOMATIC = 'automatic'  # system executes every refund
    MANUAL = 'manual'  # organizer settles refunds outside the platform
    HYBRID = 'hybrid'  # system executes, failures handed to the organizer
