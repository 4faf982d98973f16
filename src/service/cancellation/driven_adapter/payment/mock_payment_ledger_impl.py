"""
Mock Payment Ledger

Deterministic stand-in for the payment rails:
- Sold tickets are seeded per event
- Tickets listed in failing_ticket_ids are declined (per-item failure)
- unavailable=True, or unavailable_after reached, raises
  PaymentProcessorUnavailableError (whole batch aborts)
- A (cancellation, ticket) pair is paid at most once; repeating the call
  returns the original reference
"""

from collections import Counter
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Set

from anyio.lowlevel import checkpoint

from src.platform.logging.loguru_io import Logger
from src.service.cancellation.app.dto.delivery_result_dto import RefundResult
from src.service.cancellation.app.interface.i_payment_ledger import IPaymentLedger
from src.service.cancellation.domain.entity.sold_ticket_entity import SoldTicket
from src.service.cancellation.domain.errors import PaymentProcessorUnavailableError
from src.service.cancellation.domain.value_object.identifiers import (
    CancellationId,
    EventId,
    TicketId,
)


class MockPaymentLedgerImpl(IPaymentLedger):
    def __init__(
        self,
        *,
        tickets: Iterable[SoldTicket] = (),
        failing_ticket_ids: Iterable[TicketId] = (),
        unavailable: bool = False,
        unavailable_after: Optional[int] = None,
    ) -> None:
        self._tickets: Dict[EventId, List[SoldTicket]] = {}
        for ticket in tickets:
            self.add_ticket(ticket)
        self.failing_ticket_ids: Set[TicketId] = set(failing_ticket_ids)
        self.unavailable = unavailable
        self.unavailable_after = unavailable_after
        self.attempts: Counter[TicketId] = Counter()
        self.payouts: Dict[tuple[CancellationId, TicketId], str] = {}

    def add_ticket(self, ticket: SoldTicket) -> None:
        self._tickets.setdefault(ticket.event_id, []).append(ticket)

    async def list_sold_tickets(self, *, event_id: EventId) -> list[SoldTicket]:
        return list(self._tickets.get(event_id, []))

    async def refund(
        self, *, cancellation_id: CancellationId, ticket_id: TicketId, amount: Decimal
    ) -> RefundResult:
        return await self._pay_out(
            cancellation_id=cancellation_id, ticket_id=ticket_id, amount=amount, prefix='RF'
        )

    async def issue_credit(
        self, *, cancellation_id: CancellationId, ticket_id: TicketId, amount: Decimal
    ) -> RefundResult:
        return await self._pay_out(
            cancellation_id=cancellation_id, ticket_id=ticket_id, amount=amount, prefix='CR'
        )

    async def _pay_out(
        self, *, cancellation_id: CancellationId, ticket_id: TicketId, amount: Decimal, prefix: str
    ) -> RefundResult:
        await checkpoint()

        if self.unavailable or (
            self.unavailable_after is not None
            and sum(self.attempts.values()) >= self.unavailable_after
        ):
            raise PaymentProcessorUnavailableError('payment gateway unreachable')

        self.attempts[ticket_id] += 1
        key = (cancellation_id, ticket_id)
        if key in self.payouts:
            return RefundResult(success=True, reference=self.payouts[key])

        if ticket_id in self.failing_ticket_ids:
            Logger.base.warning(f'💳 [LEDGER] Declined {prefix} for ticket {ticket_id}')
            return RefundResult(success=False, error_message='Refund declined by payment provider')

        reference = f'{prefix}-{str(ticket_id)[-12:]}'
        self.payouts[key] = reference
        Logger.base.debug(f'💳 [LEDGER] {reference} amount={amount}')
        return RefundResult(success=True, reference=reference)
