"""Cancellation Domain Enums"""

from src.service.cancellation.domain.enum.cancellation_reason import CancellationReason
from src.service.cancellation.domain.enum.cancellation_status import CancellationStatus
from src.service.cancellation.domain.enum.cancellation_step import CancellationStep
from src.service.cancellation.domain.enum.compensation_type import (
    CompensationType,
    ProcessingMethod,
)
from src.service.cancellation.domain.enum.payment_method import PaymentMethod
from src.service.cancellation.domain.enum.processing_phase import ProcessingPhase
from src.service.cancellation.domain.enum.refund_status import RefundStatus
from src.service.cancellation.domain.enum.warning_severity import WarningSeverity

__all__ = [
    'CancellationReason',
    'CancellationStatus',
    'CancellationStep',
    'CompensationType',
    'PaymentMethod',
    'ProcessingMethod',
    'ProcessingPhase',
    'RefundStatus',
    'WarningSeverity',
]
