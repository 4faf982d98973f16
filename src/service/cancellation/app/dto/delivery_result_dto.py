"""
Delivery Result DTOs

What a collaborator reports back for a single refund or notification.
A failed item is a value, not an exception: the processor counts it and moves on.
"""

from typing import Optional

import attrs


@attrs.define
class RefundResult:
    """Outcome of one refund or credit issued by the payment ledger"""

    success: bool
    reference: Optional[str] = None  # ledger transaction id
    error_message: Optional[str] = None


@attrs.define
class NotificationDeliveryResult:
    success: bool
    error_message: Optional[str] = None
