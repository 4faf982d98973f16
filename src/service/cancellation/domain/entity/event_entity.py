"""
Event catalog entities

Read-only input to the cancellation workflow. The catalog owns them; a
cancellation never writes back into an Event.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

import attrs

from src.service.cancellation.domain.value_object.identifiers import (
    EventId,
    TicketTypeId,
    UserId,
)


@attrs.frozen
class TicketType:
    id: TicketTypeId
    name: str
    price: Decimal
    quantity: int
    sold: int = 0
    is_unlimited: bool = False

    @property
    def revenue(self) -> Decimal:
        return self.price * self.sold

    @property
    def is_sold_out(self) -> bool:
        return not self.is_unlimited and self.quantity > 0 and self.sold >= self.quantity


@attrs.frozen
class Event:
    id: EventId
    title: str
    organizer_id: UserId
    start_date: datetime
    end_date: datetime
    venue: str
    ticket_types: List[TicketType] = attrs.field(factory=list)
    is_cancelled: bool = False
    description: Optional[str] = None

    @property
    def tickets_sold(self) -> int:
        return sum(ticket_type.sold for ticket_type in self.ticket_types)
