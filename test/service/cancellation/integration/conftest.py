from typing import Any, AsyncGenerator, Generator

from dependency_injector import providers
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
import pytest
import pytest_asyncio
from sse_starlette.sse import AppStatus

from src.main import app
from src.platform.config.di import container, setup
from src.platform.config.wire_modules import WIRE_MODULES


@pytest.fixture(autouse=True)
def reset_sse_exit_event() -> None:
    # sse-starlette keeps its exit event on the class; every test runs its own loop
    AppStatus.should_exit_event = None


@pytest.fixture
def override_adapters(
    event_catalog, payment_ledger, messaging_provider, cancellation_repo, progress_broadcaster
) -> Generator[None, None, None]:
    """Point the container at the same seeded in-memory adapters the unit fixtures build"""
    container.event_catalog.override(providers.Object(event_catalog))
    container.payment_ledger.override(providers.Object(payment_ledger))
    container.messaging_provider.override(providers.Object(messaging_provider))
    container.cancellation_repo.override(providers.Object(cancellation_repo))
    container.progress_broadcaster.override(providers.Object(progress_broadcaster))
    try:
        yield
    finally:
        container.reset_override()


@pytest.fixture
def client(override_adapters) -> Generator[Any, None, None]:
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


@pytest_asyncio.fixture
async def async_client(override_adapters) -> AsyncGenerator[AsyncClient, None]:
    """Requests can overlap (an SSE subscriber while /process runs); no lifespan, so wire here"""
    setup()
    container.wire(modules=WIRE_MODULES)
    try:
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url='http://test') as test_client:
            yield test_client
    finally:
        container.unwire()
