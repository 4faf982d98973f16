"""
https://python-dependency-injector.ets-labs.org/index.html
https://python-dependency-injector.ets-labs.org/examples/fastapi.html
"""

from dependency_injector import containers, providers

from src.platform.config.core_setting import Settings
from src.platform.metrics.cancellation_metrics import metrics
from src.service.cancellation.domain.value_object.cancellation_policy import CancellationPolicy
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


class Container(containers.DeclarativeContainer):
    # Configuration
    config_service = providers.Singleton(Settings)

    # Business rules (fee rates, VIP keywords, settlement estimates) from settings
    cancellation_policy = providers.Singleton(CancellationPolicy.from_settings, config_service)

    # Metrics (process-wide prometheus collectors)
    cancellation_metrics = providers.Object(metrics)

    # External collaborators (in-memory until real integrations are wired)
    event_catalog = providers.Singleton(InMemoryEventCatalogImpl)
    payment_ledger = providers.Singleton(MockPaymentLedgerImpl)
    messaging_provider = providers.Singleton(LoggingMessagingProviderImpl)

    # Repositories
    cancellation_repo = providers.Singleton(InMemoryCancellationRepoImpl)

    # SSE progress fan-out
    progress_broadcaster = providers.Singleton(
        InMemoryProgressBroadcasterImpl,
        buffer_size=config_service.provided.PROGRESS_STREAM_BUFFER_SIZE,
    )


container = Container()


def setup() -> None:
    container.config_service()
    container.cancellation_policy()


def cleanup() -> None:
    container.reset_singletons()
