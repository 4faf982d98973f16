from datetime import datetime
from decimal import Decimal
from typing import List

import attrs

from src.service.cancellation.domain.enum.payment_method import PaymentMethod
from src.service.cancellation.domain.enum.warning_severity import WarningSeverity
from src.service.cancellation.domain.value_object.identifiers import EventId, TicketTypeId
from src.service.cancellation.domain.value_object.money import format_money


@attrs.frozen
class TicketTypeImpact:
    ticket_type_id: TicketTypeId
    name: str
    tickets_sold: int
    revenue: Decimal
    refund_amount: Decimal


@attrs.frozen
class PaymentMethodImpact:
    payment_method: PaymentMethod
    ticket_count: int
    refund_amount: Decimal
    estimated_processing_time: str


@attrs.frozen
class CancellationWarning:
    code: str
    severity: WarningSeverity
    title: str
    description: str


@attrs.frozen
class CancellationImpact:
    """Snapshot of what cancelling an event costs, computed once per attempt"""

    event_id: EventId
    calculated_at: datetime = attrs.field(eq=False)  # not part of equality
    currency: str
    decimal_places: int

    tickets_sold: int
    attendees_count: int
    vip_tickets: int
    regular_tickets: int
    checked_in_tickets: int
    transferred_tickets: int

    gross_revenue: Decimal
    platform_fees_retained: Decimal
    refund_total: Decimal
    processing_fees_estimate: Decimal
    net_refund_amount: Decimal
    organizer_payout_adjustment: Decimal

    ticket_type_breakdown: List[TicketTypeImpact] = attrs.field(factory=list)
    payment_method_breakdown: List[PaymentMethodImpact] = attrs.field(factory=list)
    warnings: List[CancellationWarning] = attrs.field(factory=list)

    @property
    def formatted_refund_total(self) -> str:
        return format_money(self.refund_total, currency=self.currency, places=self.decimal_places)

    @property
    def formatted_gross_revenue(self) -> str:
        return format_money(self.gross_revenue, currency=self.currency, places=self.decimal_places)

    def is_reconciled(self) -> bool:
        return (
            sum((t.revenue for t in self.ticket_type_breakdown), Decimal(0)) == self.gross_revenue
            and sum(m.ticket_count for m in self.payment_method_breakdown) == self.tickets_sold
            and self.net_refund_amount
            == self.gross_revenue - self.platform_fees_retained - self.processing_fees_estimate
        )
