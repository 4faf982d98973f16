"""Cancellation Application DTOs"""

from src.service.cancellation.app.dto.cancellation_draft_dto import CancellationDraft
from src.service.cancellation.app.dto.delivery_result_dto import (
    NotificationDeliveryResult,
    RefundResult,
)


__all__ = [
    'CancellationDraft',
    'NotificationDeliveryResult',
    'RefundResult',
]
