"""
Wire Modules Configuration

Defines the modules that need dependency injection wiring.
Shared between production and test environments.
"""

from types import ModuleType

from src.service.cancellation.app.command import (
    cancel_draft_use_case,
    confirm_cancellation_use_case,
    create_cancellation_use_case,
    process_cancellation_use_case,
    update_compensation_plan_use_case,
)
from src.service.cancellation.app.query import (
    calculate_impact_use_case,
    get_cancellation_use_case,
    preview_notification_use_case,
)
from src.service.cancellation.driving_adapter.http_controller import cancellation_controller


WIRE_MODULES: list[ModuleType] = [
    calculate_impact_use_case,
    get_cancellation_use_case,
    preview_notification_use_case,
    create_cancellation_use_case,
    update_compensation_plan_use_case,
    confirm_cancellation_use_case,
    cancel_draft_use_case,
    process_cancellation_use_case,
    cancellation_controller,
]
