from decimal import Decimal
from typing import Optional

import attrs

from src.service.cancellation.domain.enum.compensation_type import (
    CompensationType,
    ProcessingMethod,
)
from src.service.cancellation.domain.value_object.identifiers import EventId


DEFAULT_NOTIFICATION_TEMPLATE = 'default_cancellation'


@attrs.frozen
class CompensationPlan:
    event_id: EventId
    compensation_type: CompensationType
    processing_method: ProcessingMethod
    total_refund_amount: Decimal
    refund_percentage: Optional[Decimal] = None  # partial refund only
    credit_multiplier: Optional[Decimal] = None  # event credit only
    organizer_note: Optional[str] = None
    notification_template: str = DEFAULT_NOTIFICATION_TEMPLATE

    @property
    def payout_factor(self) -> Decimal:
        """Multiplier applied on top of the impact refund total"""
        if self.compensation_type is CompensationType.PARTIAL_REFUND:
            return self.refund_percentage or Decimal(1)
        if self.compensation_type is CompensationType.EVENT_CREDIT:
            return self.credit_multiplier or Decimal(1)
        return Decimal(1)
