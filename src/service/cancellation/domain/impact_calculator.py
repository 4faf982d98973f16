"""
Impact Calculator - what does cancelling this event cost?

Pure function of the event (catalog), the sold tickets (payment ledger) and
the cancellation policy. No I/O, so the same inputs always give an equal
CancellationImpact.
"""

from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Sequence

from src.platform.logging.loguru_io import Logger
from src.service.cancellation.domain.entity.event_entity import Event
from src.service.cancellation.domain.entity.sold_ticket_entity import SoldTicket
from src.service.cancellation.domain.enum.payment_method import PaymentMethod
from src.service.cancellation.domain.enum.warning_severity import WarningSeverity
from src.service.cancellation.domain.errors import ImpactReconciliationError
from src.service.cancellation.domain.value_object.cancellation_impact import (
    CancellationImpact,
    CancellationWarning,
    PaymentMethodImpact,
    TicketTypeImpact,
)
from src.service.cancellation.domain.value_object.cancellation_policy import CancellationPolicy
from src.service.cancellation.domain.value_object.money import ZERO, quantize


def _plural(count: int, noun: str) -> str:
    return f'{count} {noun}{"" if count == 1 else "s"}'


def _build_warnings(
    *,
    event: Event,
    tickets_sold: int,
    vip_tickets: int,
    checked_in: int,
    transferred: int,
    policy: CancellationPolicy,
) -> List[CancellationWarning]:
    warnings: List[CancellationWarning] = []

    if tickets_sold and Decimal(vip_tickets) / tickets_sold > policy.vip_share_warning_threshold:
        warnings.append(
            CancellationWarning(
                code='vip_concentration',
                severity=WarningSeverity.WARNING,
                title=f'{_plural(vip_tickets, "VIP Ticket")} Sold',
                description='VIP tickets will be hardest to refund and carry the largest payouts.',
            )
        )

    sold_out = [ticket_type.name for ticket_type in event.ticket_types if ticket_type.is_sold_out]
    if sold_out:
        warnings.append(
            CancellationWarning(
                code='sold_out_ticket_types',
                severity=WarningSeverity.INFO,
                title=f'{_plural(len(sold_out), "Sold-out Ticket Type")}',
                description=(
                    f'{", ".join(sold_out)} sold out. Expect the most manual refund requests here.'
                ),
            )
        )

    if checked_in:
        warnings.append(
            CancellationWarning(
                code='checked_in',
                severity=WarningSeverity.INFO,
                title=f'{_plural(checked_in, "Attendee")} Already Checked In',
                description='These attendees have already used their tickets. They will still receive refunds.',
            )
        )

    if transferred:
        warnings.append(
            CancellationWarning(
                code='transferred',
                severity=WarningSeverity.INFO,
                title=f'{_plural(transferred, "Transferred Ticket")}',
                description='Tickets transferred to new owners. Refunds go to current ticket holders.',
            )
        )

    return warnings


@Logger.io(truncate_content=True)
def calculate_impact(
    *,
    event: Event,
    sold_tickets: Sequence[SoldTicket],
    policy: CancellationPolicy,
    calculated_at: datetime,
) -> CancellationImpact:
    tickets_sold = event.tickets_sold
    if len(sold_tickets) != tickets_sold:
        raise ImpactReconciliationError(catalog_sold=tickets_sold, ledger_sold=len(sold_tickets))

    places = policy.decimal_places
    refund_ratio = Decimal(1) if policy.waive_platform_fee else Decimal(1) - policy.platform_fee_rate

    ticket_type_breakdown = []
    vip_tickets = 0
    for ticket_type in event.ticket_types:
        revenue = quantize(ticket_type.revenue, places=places)
        ticket_type_breakdown.append(
            TicketTypeImpact(
                ticket_type_id=ticket_type.id,
                name=ticket_type.name,
                tickets_sold=ticket_type.sold,
                revenue=revenue,
                refund_amount=quantize(revenue * refund_ratio, places=places),
            )
        )
        if policy.is_vip(ticket_type.name):
            vip_tickets += ticket_type.sold

    gross_revenue = sum((t.revenue for t in ticket_type_breakdown), ZERO)
    platform_fees_retained = (
        ZERO
        if policy.waive_platform_fee
        else quantize(gross_revenue * policy.platform_fee_rate, places=places)
    )
    refund_total = gross_revenue - platform_fees_retained
    processing_fees_estimate = quantize(gross_revenue * policy.processing_fee_rate, places=places)

    by_method: Dict[PaymentMethod, List[SoldTicket]] = defaultdict(list)
    for ticket in sold_tickets:
        by_method[ticket.payment_method].append(ticket)
    payment_method_breakdown = [
        PaymentMethodImpact(
            payment_method=method,
            ticket_count=len(by_method[method]),
            refund_amount=quantize(
                sum((t.amount_paid for t in by_method[method]), ZERO) * refund_ratio,
                places=places,
            ),
            estimated_processing_time=policy.processing_time_for(method),
        )
        for method in PaymentMethod  # declaration order keeps the output stable
        if by_method.get(method)
    ]

    checked_in = sum(1 for ticket in sold_tickets if ticket.checked_in)
    transferred = sum(1 for ticket in sold_tickets if ticket.transferred)

    return CancellationImpact(
        event_id=event.id,
        calculated_at=calculated_at,
        currency=policy.currency,
        decimal_places=places,
        tickets_sold=tickets_sold,
        attendees_count=len({ticket.holder_id for ticket in sold_tickets}),
        vip_tickets=vip_tickets,
        regular_tickets=tickets_sold - vip_tickets,
        checked_in_tickets=checked_in,
        transferred_tickets=transferred,
        gross_revenue=gross_revenue,
        platform_fees_retained=platform_fees_retained,
        refund_total=refund_total,
        processing_fees_estimate=processing_fees_estimate,
        net_refund_amount=gross_revenue - platform_fees_retained - processing_fees_estimate,
        organizer_payout_adjustment=-refund_total,
        ticket_type_breakdown=ticket_type_breakdown,
        payment_method_breakdown=payment_method_breakdown,
        warnings=_build_warnings(
            event=event,
            tickets_sold=tickets_sold,
            vip_tickets=vip_tickets,
            checked_in=checked_in,
            transferred=transferred,
            policy=policy,
        ),
    )
