from decimal import Decimal

import attrs

from src.service.cancellation.domain.enum.payment_method import PaymentMethod
from src.service.cancellation.domain.value_object.identifiers import (
    EventId,
    TicketId,
    TicketTypeId,
    UserId,
)


@attrs.frozen
class SoldTicket:
    """A paid ticket as recorded by the payment ledger"""

    id: TicketId
    event_id: EventId
    ticket_type_id: TicketTypeId
    holder_id: UserId
    holder_email: str
    amount_paid: Decimal
    payment_method: PaymentMethod
    checked_in: bool = False
    transferred: bool = False
