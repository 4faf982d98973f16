from enum import StrEnum


class CancellationStatus(StrEnum):
    """Lifecycle of an EventCancellation aggregate"""

    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    PROCESSING = 'processing'
    COMPLETED = 'completed'
    FAILED = 'failed'

    @property
    def is_reversible(self) -> bool:
        return self is CancellationStatus.PENDING

    @property
    def is_processable(self) -> bool:
        # FAILED re-enters processing from the top of the refund step
        return self in (CancellationStatus.CONFIRMED, CancellationStatus.FAILED)
