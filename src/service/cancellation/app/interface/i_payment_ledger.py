"""
Payment Ledger Interface

Source of truth for paid tickets and the rails refunds are sent through.

Failure contract:
- A single refund that is declined returns RefundResult(success=False)
- Rails that cannot be reached at all raise PaymentProcessorUnavailableError
"""

from abc import ABC, abstractmethod
from decimal import Decimal

from src.service.cancellation.app.dto.delivery_result_dto import RefundResult
from src.service.cancellation.domain.entity.sold_ticket_entity import SoldTicket
from src.service.cancellation.domain.value_object.identifiers import (
    CancellationId,
    EventId,
    TicketId,
)


class IPaymentLedger(ABC):
    @abstractmethod
    async def list_sold_tickets(self, *, event_id: EventId) -> list[SoldTicket]:
        """
        List every paid ticket of an event, in a stable order.

        Args:
            event_id: Event ID

        Returns:
            List of sold tickets (empty if nothing was sold)
        """
        pass

    @abstractmethod
    async def refund(
        self, *, cancellation_id: CancellationId, ticket_id: TicketId, amount: Decimal
    ) -> RefundResult:
        """
        Send money back to the ticket holder through the original payment method.

        Args:
            cancellation_id: Cancellation the refund belongs to (idempotency key scope)
            ticket_id: Ticket being refunded
            amount: Amount to refund, in currency units

        Raises:
            PaymentProcessorUnavailableError: rails unreachable
        """
        pass

    @abstractmethod
    async def issue_credit(
        self, *, cancellation_id: CancellationId, ticket_id: TicketId, amount: Decimal
    ) -> RefundResult:
        """
        Credit the ticket holder's platform wallet instead of refunding.

        Raises:
            PaymentProcessorUnavailableError: rails unreachable
        """
        pass
