from decimal import Decimal
from typing import Optional

from src.platform.logging.loguru_io import Logger
from src.service.cancellation.domain.enum.compensation_type import (
    CompensationType,
    ProcessingMethod,
)
from src.service.cancellation.domain.errors import InvalidCompensationParametersError
from src.service.cancellation.domain.value_object.cancellation_impact import CancellationImpact
from src.service.cancellation.domain.value_object.compensation_plan import (
    DEFAULT_NOTIFICATION_TEMPLATE,
    CompensationPlan,
)
from src.service.cancellation.domain.value_object.identifiers import EventId
from src.service.cancellation.domain.value_object.money import quantize, to_decimal
from src.service.cancellation.domain.value_object.notification import NOTIFICATION_TEMPLATES


REFUND_PERCENTAGE_RANGE = (Decimal('0.1'), Decimal('1.0'))
CREDIT_MULTIPLIER_RANGE = (Decimal('1.0'), Decimal('1.5'))


def _check_bounds(name: str, value: Optional[Decimal], bounds: tuple[Decimal, Decimal]) -> None:
    if value is None:
        return
    low, high = bounds
    if not low <= value <= high:
        raise InvalidCompensationParametersError(f'{name} must be between {low} and {high}, got {value}')


@Logger.io
def build_plan(
    *,
    event_id: EventId,
    impact: CancellationImpact,
    compensation_type: CompensationType,
    processing_method: ProcessingMethod,
    refund_percentage: Optional[Decimal | float | str] = None,
    credit_multiplier: Optional[Decimal | float | str] = None,
    organizer_note: Optional[str] = None,
    notification_template: str = DEFAULT_NOTIFICATION_TEMPLATE,
) -> CompensationPlan:
    """
    Build the organizer's compensation plan from a computed impact.

    Bounds are checked for any value supplied, whatever the compensation type.
    Only the parameter that belongs to the chosen type is kept on the plan.

    Raises:
        InvalidCompensationParametersError: value out of bounds, missing for
            its own compensation type, unknown template or foreign impact
    """
    if impact.event_id != event_id:
        raise InvalidCompensationParametersError('impact was calculated for another event')
    if notification_template not in NOTIFICATION_TEMPLATES:
        raise InvalidCompensationParametersError(
            f'unknown notification template {notification_template!r}'
        )

    percentage = None if refund_percentage is None else to_decimal(refund_percentage)
    multiplier = None if credit_multiplier is None else to_decimal(credit_multiplier)
    _check_bounds('refund_percentage', percentage, REFUND_PERCENTAGE_RANGE)
    _check_bounds('credit_multiplier', multiplier, CREDIT_MULTIPLIER_RANGE)

    if compensation_type is CompensationType.PARTIAL_REFUND:
        if percentage is None:
            raise InvalidCompensationParametersError('partial refund requires refund_percentage')
        total = quantize(impact.refund_total * percentage, places=impact.decimal_places)
        multiplier = None
    elif compensation_type is CompensationType.EVENT_CREDIT:
        if multiplier is None:
            raise InvalidCompensationParametersError('event credit requires credit_multiplier')
        total = quantize(impact.refund_total * multiplier, places=impact.decimal_places)
        percentage = None
    else:
        total = impact.refund_total
        percentage = multiplier = None

    return CompensationPlan(
        event_id=event_id,
        compensation_type=compensation_type,
        processing_method=processing_method,
        total_refund_amount=total,
        refund_percentage=percentage,
        credit_multiplier=multiplier,
        organizer_note=(organizer_note or '').strip() or None,
        notification_template=notification_template,
    )
