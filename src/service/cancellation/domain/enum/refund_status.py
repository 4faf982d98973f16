from enum import StrEnum


class RefundStatus(StrEnum):
    SUCCEEDED = 'succeeded'
    FAILED = 'failed'
    MANUAL_REQUIRED = 'manual_required'

    @property
    def is_settled(self) -> bool:
        """Settled refunds are never attempted again by the processor"""
        return self is not RefundStatus.FAILED
