"""
Unit tests for the in-memory driven adapters

Repository versioning, the mock payment ledger's failure modes and the
logging messaging provider.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest
import uuid_utils

from src.service.cancellation.domain.aggregate.event_cancellation_aggregate import (
    EventCancellation,
)
from src.service.cancellation.domain.compensation_planner import build_plan
from src.service.cancellation.domain.enum.cancellation_reason import CancellationReason
from src.service.cancellation.domain.enum.cancellation_status import CancellationStatus
from src.service.cancellation.domain.enum.compensation_type import (
    CompensationType,
    ProcessingMethod,
)
from src.service.cancellation.domain.errors import (
    CancellationInProgressError,
    CancellationNotFoundError,
    ConcurrentModificationError,
    EventNotFoundError,
    PaymentProcessorUnavailableError,
)
from src.service.cancellation.domain.impact_calculator import calculate_impact
from src.service.cancellation.domain.value_object.identifiers import (
    CancellationId,
    EventId,
    UserId,
)


@pytest.fixture
def cancellation(scenario, policy) -> EventCancellation:
    impact = calculate_impact(
        event=scenario.event,
        sold_tickets=scenario.tickets,
        policy=policy,
        calculated_at=datetime.now(timezone.utc),
    )
    return EventCancellation.create(
        event=scenario.event,
        reason=CancellationReason.FORCE_MAJEURE,
        impact=impact,
        compensation_plan=build_plan(
            event_id=scenario.event_id,
            impact=impact,
            compensation_type=CompensationType.FULL_REFUND,
            processing_method=ProcessingMethod.AUTOMATIC,
        ),
        initiated_by=scenario.organizer_id,
    )


class TestInMemoryCancellationRepo:
    @pytest.mark.asyncio
    async def test_create_starts_at_version_one(self, cancellation_repo, cancellation):
        stored = await cancellation_repo.create(cancellation=cancellation)

        assert stored.version == 1
        assert await cancellation_repo.get(cancellation_id=stored.id) == stored
        assert await cancellation_repo.get_by_event(event_id=stored.event_id) == stored

    @pytest.mark.asyncio
    async def test_second_cancellation_for_event_rejected(
        self, cancellation_repo, cancellation, scenario
    ):
        await cancellation_repo.create(cancellation=cancellation)
        other = EventCancellation.create(
            event=scenario.event,
            reason=CancellationReason.DUPLICATE,
            impact=cancellation.impact,
            compensation_plan=cancellation.compensation_plan,
            initiated_by=scenario.organizer_id,
        )

        with pytest.raises(CancellationInProgressError):
            await cancellation_repo.create(cancellation=other)

    @pytest.mark.asyncio
    async def test_save_bumps_version(self, cancellation_repo, cancellation, scenario):
        stored = await cancellation_repo.create(cancellation=cancellation)
        confirmed = stored.confirm(confirmation_code='CONFIRM', confirmed_by=scenario.organizer_id)

        saved = await cancellation_repo.save(cancellation=confirmed, expected_version=stored.version)

        assert saved.version == 2
        assert saved.status is CancellationStatus.CONFIRMED

    @pytest.mark.asyncio
    async def test_stale_version_rejected(self, cancellation_repo, cancellation, scenario):
        stored = await cancellation_repo.create(cancellation=cancellation)
        confirmed = stored.confirm(confirmation_code='CONFIRM', confirmed_by=scenario.organizer_id)
        await cancellation_repo.save(cancellation=confirmed, expected_version=stored.version)

        with pytest.raises(ConcurrentModificationError):
            await cancellation_repo.save(cancellation=confirmed, expected_version=stored.version)

        current = await cancellation_repo.get(cancellation_id=stored.id)
        assert current.version == 2

    @pytest.mark.asyncio
    async def test_save_unknown(self, cancellation_repo, cancellation):
        with pytest.raises(CancellationNotFoundError):
            await cancellation_repo.save(cancellation=cancellation, expected_version=0)

    @pytest.mark.asyncio
    async def test_delete_frees_the_event(self, cancellation_repo, cancellation):
        stored = await cancellation_repo.create(cancellation=cancellation)

        await cancellation_repo.delete(cancellation_id=stored.id, expected_version=stored.version)

        assert await cancellation_repo.get(cancellation_id=stored.id) is None
        assert await cancellation_repo.get_by_event(event_id=stored.event_id) is None

    @pytest.mark.asyncio
    async def test_delete_with_stale_version(self, cancellation_repo, cancellation):
        stored = await cancellation_repo.create(cancellation=cancellation)

        with pytest.raises(ConcurrentModificationError):
            await cancellation_repo.delete(cancellation_id=stored.id, expected_version=0)

    @pytest.mark.asyncio
    async def test_list_by_organizer_filters(self, cancellation_repo, cancellation):
        await cancellation_repo.create(cancellation=cancellation)

        mine = await cancellation_repo.list_by_organizer(organizer_id=cancellation.organizer_id)
        theirs = await cancellation_repo.list_by_organizer(organizer_id=UserId(uuid_utils.uuid7()))

        assert [c.id for c in mine] == [cancellation.id]
        assert theirs == []


class TestMockPaymentLedger:
    @pytest.fixture
    def cancellation_id(self) -> CancellationId:
        return CancellationId(uuid_utils.uuid7())

    @pytest.mark.asyncio
    async def test_lists_only_the_event_tickets(self, payment_ledger, scenario):
        assert len(await payment_ledger.list_sold_tickets(event_id=scenario.event_id)) == 110
        assert await payment_ledger.list_sold_tickets(event_id=EventId(uuid_utils.uuid7())) == []

    @pytest.mark.asyncio
    async def test_refund_is_paid_once(self, payment_ledger, scenario, cancellation_id):
        ticket = scenario.tickets[0]

        first = await payment_ledger.refund(
            cancellation_id=cancellation_id, ticket_id=ticket.id, amount=Decimal(50_000)
        )
        second = await payment_ledger.refund(
            cancellation_id=cancellation_id, ticket_id=ticket.id, amount=Decimal(50_000)
        )

        assert first.success
        assert first.reference.startswith('RF-')
        assert second.reference == first.reference
        assert len(payment_ledger.payouts) == 1

    @pytest.mark.asyncio
    async def test_credit_reference(self, payment_ledger, scenario, cancellation_id):
        result = await payment_ledger.issue_credit(
            cancellation_id=cancellation_id, ticket_id=scenario.tickets[0].id, amount=Decimal(1)
        )

        assert result.reference.startswith('CR-')

    @pytest.mark.asyncio
    async def test_declined_ticket(self, payment_ledger, scenario, cancellation_id):
        ticket = scenario.tickets[0]
        payment_ledger.failing_ticket_ids.add(ticket.id)

        result = await payment_ledger.refund(
            cancellation_id=cancellation_id, ticket_id=ticket.id, amount=Decimal(50_000)
        )

        assert not result.success
        assert result.error_message == 'Refund declined by payment provider'

    @pytest.mark.asyncio
    async def test_unavailable_after_n_attempts(self, payment_ledger, scenario, cancellation_id):
        payment_ledger.unavailable_after = 1
        first, second = scenario.tickets[:2]
        await payment_ledger.refund(cancellation_id=cancellation_id, ticket_id=first.id, amount=Decimal(1))

        with pytest.raises(PaymentProcessorUnavailableError):
            await payment_ledger.refund(
                cancellation_id=cancellation_id, ticket_id=second.id, amount=Decimal(1)
            )


class TestCatalogAndMessaging:
    @pytest.mark.asyncio
    async def test_mark_cancelled(self, event_catalog, scenario):
        await event_catalog.mark_cancelled(event_id=scenario.event_id)

        event = await event_catalog.get_event(event_id=scenario.event_id)
        assert event.is_cancelled

    @pytest.mark.asyncio
    async def test_mark_unknown_event(self, event_catalog):
        with pytest.raises(EventNotFoundError):
            await event_catalog.mark_cancelled(event_id=EventId(uuid_utils.uuid7()))

    @pytest.mark.asyncio
    async def test_rejected_recipient(self, messaging_provider):
        good, bad = UserId(uuid_utils.uuid7()), UserId(uuid_utils.uuid7())
        messaging_provider.failing_recipient_ids.add(bad)

        ok = await messaging_provider.send(
            recipient_id=good, recipient_email='a@example.com', subject='s', body='b'
        )
        rejected = await messaging_provider.send(
            recipient_id=bad, recipient_email='b@example.com', subject='s', body='b'
        )

        assert ok.success
        assert not rejected.success
        assert messaging_provider.sent == [good]
