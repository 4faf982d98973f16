"""
Cancellation fixtures

Every test gets fresh in-memory adapters seeded with one event:
- General: 100 sold of 100 @ 50,000 (sold out)
- VIP:     10 sold of 20 @ 200,000

Gross revenue 7,000,000 over 110 tickets, one holder per ticket.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from itertools import cycle
from typing import Callable, List, Optional, Sequence, Tuple
from unittest.mock import MagicMock

import attrs
import pytest
import uuid_utils

from src.platform.config.core_setting import Settings
from src.service.cancellation.app.command.cancel_draft_use_case import CancelDraftUseCase
from src.service.cancellation.app.command.confirm_and_process_use_case import (
    ConfirmAndProcessUseCase,
)
from src.service.cancellation.app.command.confirm_cancellation_use_case import (
    ConfirmCancellationUseCase,
)
from src.service.cancellation.app.command.create_cancellation_use_case import (
    CreateCancellationUseCase,
)
from src.service.cancellation.app.command.process_cancellation_use_case import (
    ProcessCancellationUseCase,
)
from src.service.cancellation.app.command.retry_failed_refunds_use_case import (
    RetryFailedRefundsUseCase,
)
from src.service.cancellation.app.command.update_compensation_plan_use_case import (
    UpdateCompensationPlanUseCase,
)
from src.service.cancellation.app.query.calculate_impact_use_case import CalculateImpactUseCase
from src.service.cancellation.app.query.get_cancellation_use_case import GetCancellationUseCase
from src.service.cancellation.app.query.preview_notification_use_case import (
    PreviewNotificationUseCase,
)
from src.service.cancellation.app.workflow.cancellation_workflow_use_case import (
    CancellationWorkflowUseCase,
)
from src.service.cancellation.domain.entity.event_entity import Event, TicketType
from src.service.cancellation.domain.entity.sold_ticket_entity import SoldTicket
from src.service.cancellation.domain.enum.payment_method import PaymentMethod
from src.service.cancellation.domain.value_object.cancellation_policy import CancellationPolicy
from src.service.cancellation.domain.value_object.identifiers import (
    EventId,
    TicketId,
    TicketTypeId,
    UserId,
)
from src.service.cancellation.driven_adapter.broadcaster.in_memory_progress_broadcaster_impl import (
    InMemoryProgressBroadcasterImpl,
)
from src.service.cancellation.driven_adapter.catalog.in_memory_event_catalog_impl import (
    InMemoryEventCatalogImpl,
)
from src.service.cancellation.driven_adapter.messaging.logging_messaging_provider_impl import (
    LoggingMessagingProviderImpl,
)
from src.service.cancellation.driven_adapter.payment.mock_payment_ledger_impl import (
    MockPaymentLedgerImpl,
)
from src.service.cancellation.driven_adapter.repo.in_memory_cancellation_repo_impl import (
    InMemoryCancellationRepoImpl,
)


# (name, price, sold, quantity)
TicketTypeSpec = Tuple[str, Decimal, int, int]

DEFAULT_TICKET_TYPES: Sequence[TicketTypeSpec] = (
    ('General', Decimal(50_000), 100, 100),
    ('VIP', Decimal(200_000), 10, 20),
)


@attrs.frozen
class EventScenario:
    event: Event
    tickets: List[SoldTicket]

    @property
    def event_id(self) -> EventId:
        return self.event.id

    @property
    def organizer_id(self) -> UserId:
        return self.event.organizer_id


def build_scenario(
    *,
    ticket_types: Sequence[TicketTypeSpec] = DEFAULT_TICKET_TYPES,
    payment_methods: Sequence[PaymentMethod] = (PaymentMethod.MTN_MOBILE_MONEY,),
    organizer_id: Optional[UserId] = None,
    title: str = 'Kampala Jazz Night',
) -> EventScenario:
    event_id = EventId(uuid_utils.uuid7())
    types = [
        TicketType(
            id=TicketTypeId(uuid_utils.uuid7()),
            name=name,
            price=price,
            quantity=quantity,
            sold=sold,
        )
        for name, price, sold, quantity in ticket_types
    ]
    methods = cycle(payment_methods)
    tickets = [
        SoldTicket(
            id=TicketId(uuid_utils.uuid7()),
            event_id=event_id,
            ticket_type_id=ticket_type.id,
            holder_id=UserId(uuid_utils.uuid7()),
            holder_email=f'{ticket_type.name.lower()}-{i}@example.com',
            amount_paid=ticket_type.price,
            payment_method=next(methods),
        )
        for ticket_type in types
        for i in range(ticket_type.sold)
    ]
    start = datetime(2026, 12, 12, 19, 0, tzinfo=timezone.utc)
    event = Event(
        id=event_id,
        title=title,
        organizer_id=organizer_id or UserId(uuid_utils.uuid7()),
        start_date=start,
        end_date=start + timedelta(hours=4),
        venue='Lugogo Cricket Oval',
        ticket_types=types,
    )
    return EventScenario(event=event, tickets=tickets)


@pytest.fixture
def make_scenario() -> Callable[..., EventScenario]:
    return build_scenario


@pytest.fixture
def scenario() -> EventScenario:
    return build_scenario()


@pytest.fixture
def policy() -> CancellationPolicy:
    return CancellationPolicy(
        currency='UGX',
        platform_fee_rate=Decimal('0.05'),
        waive_platform_fee=True,
        processing_fee_rate=Decimal('0.01'),
        vip_keywords=('vip',),
        processing_times={
            'mtn_mobile_money': '1-24 hours',
            'card': '3-5 business days',
        },
    )


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def metrics() -> MagicMock:
    return MagicMock()


# =============================================================================
# Adapters
# =============================================================================


@pytest.fixture
def event_catalog(scenario: EventScenario) -> InMemoryEventCatalogImpl:
    return InMemoryEventCatalogImpl(events=[scenario.event])


@pytest.fixture
def payment_ledger(scenario: EventScenario) -> MockPaymentLedgerImpl:
    return MockPaymentLedgerImpl(tickets=scenario.tickets)


@pytest.fixture
def messaging_provider() -> LoggingMessagingProviderImpl:
    return LoggingMessagingProviderImpl()


@pytest.fixture
def cancellation_repo() -> InMemoryCancellationRepoImpl:
    return InMemoryCancellationRepoImpl()


@pytest.fixture
def progress_broadcaster() -> InMemoryProgressBroadcasterImpl:
    return InMemoryProgressBroadcasterImpl(buffer_size=1024)


# =============================================================================
# Use cases
# =============================================================================


@pytest.fixture
def calculate_impact_use_case(
    event_catalog: InMemoryEventCatalogImpl,
    payment_ledger: MockPaymentLedgerImpl,
    cancellation_repo: InMemoryCancellationRepoImpl,
    policy: CancellationPolicy,
) -> CalculateImpactUseCase:
    return CalculateImpactUseCase(
        event_catalog=event_catalog,
        payment_ledger=payment_ledger,
        cancellation_repo=cancellation_repo,
        cancellation_policy=policy,
    )


@pytest.fixture
def get_cancellation_use_case(
    cancellation_repo: InMemoryCancellationRepoImpl,
) -> GetCancellationUseCase:
    return GetCancellationUseCase(cancellation_repo=cancellation_repo)


@pytest.fixture
def preview_notification_use_case(
    calculate_impact_use_case: CalculateImpactUseCase,
    cancellation_repo: InMemoryCancellationRepoImpl,
    payment_ledger: MockPaymentLedgerImpl,
    settings: Settings,
) -> PreviewNotificationUseCase:
    return PreviewNotificationUseCase(
        calculate_impact=calculate_impact_use_case,
        cancellation_repo=cancellation_repo,
        payment_ledger=payment_ledger,
        settings=settings,
    )


@pytest.fixture
def create_cancellation_use_case(
    calculate_impact_use_case: CalculateImpactUseCase,
    cancellation_repo: InMemoryCancellationRepoImpl,
    metrics: MagicMock,
) -> CreateCancellationUseCase:
    return CreateCancellationUseCase(
        calculate_impact=calculate_impact_use_case,
        cancellation_repo=cancellation_repo,
        metrics=metrics,
    )


@pytest.fixture
def update_compensation_plan_use_case(
    cancellation_repo: InMemoryCancellationRepoImpl,
) -> UpdateCompensationPlanUseCase:
    return UpdateCompensationPlanUseCase(cancellation_repo=cancellation_repo)


@pytest.fixture
def confirm_cancellation_use_case(
    cancellation_repo: InMemoryCancellationRepoImpl, metrics: MagicMock
) -> ConfirmCancellationUseCase:
    return ConfirmCancellationUseCase(cancellation_repo=cancellation_repo, metrics=metrics)


@pytest.fixture
def cancel_draft_use_case(cancellation_repo: InMemoryCancellationRepoImpl) -> CancelDraftUseCase:
    return CancelDraftUseCase(cancellation_repo=cancellation_repo)


@pytest.fixture
def process_cancellation_use_case(
    cancellation_repo: InMemoryCancellationRepoImpl,
    event_catalog: InMemoryEventCatalogImpl,
    payment_ledger: MockPaymentLedgerImpl,
    messaging_provider: LoggingMessagingProviderImpl,
    progress_broadcaster: InMemoryProgressBroadcasterImpl,
    settings: Settings,
    metrics: MagicMock,
) -> ProcessCancellationUseCase:
    return ProcessCancellationUseCase(
        cancellation_repo=cancellation_repo,
        event_catalog=event_catalog,
        payment_ledger=payment_ledger,
        messaging_provider=messaging_provider,
        progress_broadcaster=progress_broadcaster,
        settings=settings,
        metrics=metrics,
    )


@pytest.fixture
def retry_failed_refunds_use_case(
    process_cancellation_use_case: ProcessCancellationUseCase,
) -> RetryFailedRefundsUseCase:
    return RetryFailedRefundsUseCase(process_cancellation=process_cancellation_use_case)


@pytest.fixture
def confirm_and_process_use_case(
    create_cancellation_use_case: CreateCancellationUseCase,
    update_compensation_plan_use_case: UpdateCompensationPlanUseCase,
    confirm_cancellation_use_case: ConfirmCancellationUseCase,
    process_cancellation_use_case: ProcessCancellationUseCase,
    get_cancellation_use_case: GetCancellationUseCase,
) -> ConfirmAndProcessUseCase:
    return ConfirmAndProcessUseCase(
        create_cancellation=create_cancellation_use_case,
        update_compensation_plan=update_compensation_plan_use_case,
        confirm_cancellation=confirm_cancellation_use_case,
        process_cancellation=process_cancellation_use_case,
        get_cancellation=get_cancellation_use_case,
    )


@pytest.fixture
def workflow_use_case(
    calculate_impact_use_case: CalculateImpactUseCase,
    preview_notification_use_case: PreviewNotificationUseCase,
    create_cancellation_use_case: CreateCancellationUseCase,
    confirm_and_process_use_case: ConfirmAndProcessUseCase,
) -> CancellationWorkflowUseCase:
    return CancellationWorkflowUseCase(
        calculate_impact=calculate_impact_use_case,
        preview_notification=preview_notification_use_case,
        create_cancellation=create_cancellation_use_case,
        confirm_and_process=confirm_and_process_use_case,
    )
