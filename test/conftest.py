"""
Test Configuration

Environment setup runs before any application import, since settings and the
loguru sinks are built at import time.

Architecture:
- Unit tests (test/**/unit/): pure domain and use cases over in-memory adapters
- Integration tests (test/**/integration/): the FastAPI app through TestClient
"""

import os
from pathlib import Path


def _early_setup_test_environment() -> None:
    test_log_dir = Path(__file__).parent / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)
    os.environ.setdefault('LOG_TO_FILE', 'false')

    # Fee policy is pinned so money assertions do not depend on a local .env
    os.environ['CURRENCY'] = 'UGX'
    os.environ['CURRENCY_DECIMAL_PLACES'] = '0'
    os.environ['PLATFORM_FEE_RATE'] = '0.05'
    os.environ['WAIVE_PLATFORM_FEE_ON_CANCELLATION'] = 'true'
    os.environ['PROCESSING_FEE_RATE'] = '0.01'


_early_setup_test_environment()

import pytest  # noqa: E402


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        path = str(item.fspath)
        if '/unit/' in path:
            item.add_marker(pytest.mark.unit)
        elif '/integration/' in path:
            item.add_marker(pytest.mark.integration)
