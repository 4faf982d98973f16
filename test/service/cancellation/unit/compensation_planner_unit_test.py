from datetime import datetime, timezone
from decimal import Decimal

import pytest
import uuid_utils

from src.service.cancellation.domain.compensation_planner import build_plan
from src.service.cancellation.domain.enum.compensation_type import (
    CompensationType,
    ProcessingMethod,
)
from src.service.cancellation.domain.errors import InvalidCompensationParametersError
from src.service.cancellation.domain.impact_calculator import calculate_impact
from src.service.cancellation.domain.value_object.identifiers import EventId


@pytest.fixture
def million_impact(make_scenario, policy):
    """refund_total = 1,000,000"""
    scenario = make_scenario(ticket_types=(('General', Decimal(10_000), 100, 200),))
    return calculate_impact(
        event=scenario.event,
        sold_tickets=scenario.tickets,
        policy=policy,
        calculated_at=datetime.now(timezone.utc),
    )


def _plan(impact, compensation_type, **kwargs):
    return build_plan(
        event_id=impact.event_id,
        impact=impact,
        compensation_type=compensation_type,
        processing_method=kwargs.pop('processing_method', ProcessingMethod.AUTOMATIC),
        **kwargs,
    )


class TestPlanTotals:
    def test_full_refund_pays_the_refund_total(self, million_impact):
        plan = _plan(million_impact, CompensationType.FULL_REFUND)

        assert million_impact.refund_total == Decimal(1_000_000)
        assert plan.total_refund_amount == million_impact.refund_total
        assert plan.refund_percentage is None
        assert plan.credit_multiplier is None

    def test_reference_event_full_refund(self, scenario, policy):
        impact = calculate_impact(
            event=scenario.event,
            sold_tickets=scenario.tickets,
            policy=policy,
            calculated_at=datetime.now(timezone.utc),
        )

        plan = _plan(impact, CompensationType.FULL_REFUND)

        assert plan.total_refund_amount == impact.refund_total == Decimal(7_000_000)

    def test_partial_refund_half(self, million_impact):
        plan = _plan(million_impact, CompensationType.PARTIAL_REFUND, refund_percentage=Decimal('0.5'))

        assert plan.total_refund_amount == Decimal(500_000)
        assert plan.refund_percentage == Decimal('0.5')
        assert plan.credit_multiplier is None

    def test_event_credit_with_bonus(self, million_impact):
        plan = _plan(million_impact, CompensationType.EVENT_CREDIT, credit_multiplier=Decimal('1.1'))

        assert plan.total_refund_amount == Decimal(1_100_000)
        assert plan.credit_multiplier == Decimal('1.1')
        assert plan.refund_percentage is None

    def test_float_parameters_are_taken_at_face_value(self, million_impact):
        plan = _plan(million_impact, CompensationType.PARTIAL_REFUND, refund_percentage=0.3)

        assert plan.refund_percentage == Decimal('0.3')
        assert plan.total_refund_amount == Decimal(300_000)

    def test_irrelevant_parameter_is_dropped(self, million_impact):
        plan = _plan(
            million_impact,
            CompensationType.PARTIAL_REFUND,
            refund_percentage=Decimal('0.5'),
            credit_multiplier=Decimal('1.2'),
        )

        assert plan.credit_multiplier is None

    def test_organizer_note_is_trimmed(self, million_impact):
        blank = _plan(million_impact, CompensationType.FULL_REFUND, organizer_note='   ')
        note = _plan(million_impact, CompensationType.FULL_REFUND, organizer_note='  Sorry!  ')

        assert blank.organizer_note is None
        assert note.organizer_note == 'Sorry!'


class TestPlanValidation:
    @pytest.mark.parametrize('percentage', ['0.05', '0', '1.01', '2'])
    def test_refund_percentage_out_of_bounds(self, million_impact, percentage):
        with pytest.raises(InvalidCompensationParametersError):
            _plan(
                million_impact,
                CompensationType.PARTIAL_REFUND,
                refund_percentage=Decimal(percentage),
            )

    @pytest.mark.parametrize('percentage', ['0.1', '1.0'])
    def test_refund_percentage_bounds_are_inclusive(self, million_impact, percentage):
        plan = _plan(
            million_impact, CompensationType.PARTIAL_REFUND, refund_percentage=Decimal(percentage)
        )

        assert plan.refund_percentage == Decimal(percentage)

    @pytest.mark.parametrize('multiplier', ['0.9', '1.51', '3'])
    def test_credit_multiplier_out_of_bounds(self, million_impact, multiplier):
        with pytest.raises(InvalidCompensationParametersError):
            _plan(
                million_impact,
                CompensationType.EVENT_CREDIT,
                credit_multiplier=Decimal(multiplier),
            )

    def test_out_of_bounds_value_rejected_whatever_the_type(self, million_impact):
        with pytest.raises(InvalidCompensationParametersError):
            _plan(million_impact, CompensationType.FULL_REFUND, refund_percentage=Decimal('5'))

    def test_partial_refund_requires_percentage(self, million_impact):
        with pytest.raises(InvalidCompensationParametersError, match='refund_percentage'):
            _plan(million_impact, CompensationType.PARTIAL_REFUND)

    def test_event_credit_requires_multiplier(self, million_impact):
        with pytest.raises(InvalidCompensationParametersError, match='credit_multiplier'):
            _plan(million_impact, CompensationType.EVENT_CREDIT)

    def test_unknown_template(self, million_impact):
        with pytest.raises(InvalidCompensationParametersError, match='template'):
            _plan(million_impact, CompensationType.FULL_REFUND, notification_template='nope')

    def test_impact_of_another_event(self, million_impact):
        with pytest.raises(InvalidCompensationParametersError):
            build_plan(
                event_id=EventId(uuid_utils.uuid7()),
                impact=million_impact,
                compensation_type=CompensationType.FULL_REFUND,
                processing_method=ProcessingMethod.AUTOMATIC,
            )
