"""
Unit tests for the six-step workflow and the confirm-and-process entry point

Walks CancellationWorkflowState from reason to submission the way the
organizer's screen does, then checks resume behaviour of ConfirmAndProcess.
"""

from decimal import Decimal

import attrs
import pytest

from src.service.cancellation.app.dto.cancellation_draft_dto import CancellationDraft
from src.service.cancellation.domain.compensation_planner import build_plan
from src.service.cancellation.domain.enum.cancellation_reason import CancellationReason
from src.service.cancellation.domain.enum.cancellation_status import CancellationStatus
from src.service.cancellation.domain.enum.cancellation_step import CancellationStep
from src.service.cancellation.domain.enum.compensation_type import (
    CompensationType,
    ProcessingMethod,
)
from src.service.cancellation.domain.errors import (
    CancellationErrorMessage,
    CancellationInProgressError,
    InvalidCancellationStateError,
    InvalidConfirmationCodeError,
    PlanAlreadyFinalizedError,
)


@pytest.fixture
def draft(scenario) -> CancellationDraft:
    return CancellationDraft(
        event_id=scenario.event_id,
        reason=CancellationReason.FORCE_MAJEURE,
        initiated_by=scenario.organizer_id,
    )


class TestConfirmAndProcess:
    @pytest.mark.asyncio
    async def test_from_draft_to_completed(self, confirm_and_process_use_case, draft, scenario):
        result = await confirm_and_process_use_case.execute(
            draft=draft, confirmation_code='CONFIRM', confirmed_by=scenario.organizer_id
        )

        assert result.status is CancellationStatus.COMPLETED
        assert result.refunds_processed == 110

    @pytest.mark.asyncio
    async def test_bad_code_creates_nothing(
        self, confirm_and_process_use_case, cancellation_repo, draft, scenario
    ):
        with pytest.raises(InvalidConfirmationCodeError):
            await confirm_and_process_use_case.execute(
                draft=draft, confirmation_code='yes', confirmed_by=scenario.organizer_id
            )

        assert await cancellation_repo.get_by_event(event_id=scenario.event_id) is None

    @pytest.mark.asyncio
    async def test_plan_applied_before_confirming(
        self, confirm_and_process_use_case, create_cancellation_use_case, draft, scenario
    ):
        created = await create_cancellation_use_case.execute(
            event_id=draft.event_id, reason=draft.reason, initiated_by=draft.initiated_by
        )
        plan = build_plan(
            event_id=created.event_id,
            impact=created.impact,
            compensation_type=CompensationType.PARTIAL_REFUND,
            processing_method=ProcessingMethod.AUTOMATIC,
            refund_percentage=Decimal('0.5'),
        )

        result = await confirm_and_process_use_case.execute(
            cancellation_id=created.id,
            plan=plan,
            confirmation_code='CONFIRM',
            confirmed_by=scenario.organizer_id,
        )

        assert result.compensation_plan == plan
        assert result.refunded_amount == Decimal(3_500_000)

    @pytest.mark.asyncio
    async def test_resumes_a_confirmed_cancellation(
        self,
        confirm_and_process_use_case,
        create_cancellation_use_case,
        confirm_cancellation_use_case,
        draft,
        scenario,
    ):
        created = await create_cancellation_use_case.execute(
            event_id=draft.event_id, reason=draft.reason, initiated_by=draft.initiated_by
        )
        await confirm_cancellation_use_case.execute(
            cancellation_id=created.id, confirmation_code='CONFIRM', confirmed_by=scenario.organizer_id
        )

        result = await confirm_and_process_use_case.execute(
            cancellation_id=created.id, confirmation_code='CONFIRM', confirmed_by=scenario.organizer_id
        )

        assert result.status is CancellationStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_other_plan_after_confirming_is_rejected(
        self,
        confirm_and_process_use_case,
        create_cancellation_use_case,
        confirm_cancellation_use_case,
        get_cancellation_use_case,
        payment_ledger,
        draft,
        scenario,
    ):
        created = await create_cancellation_use_case.execute(
            event_id=draft.event_id, reason=draft.reason, initiated_by=draft.initiated_by
        )
        await confirm_cancellation_use_case.execute(
            cancellation_id=created.id, confirmation_code='CONFIRM', confirmed_by=scenario.organizer_id
        )
        half_refund = build_plan(
            event_id=created.event_id,
            impact=created.impact,
            compensation_type=CompensationType.PARTIAL_REFUND,
            processing_method=ProcessingMethod.AUTOMATIC,
            refund_percentage=Decimal('0.5'),
        )

        with pytest.raises(PlanAlreadyFinalizedError):
            await confirm_and_process_use_case.execute(
                cancellation_id=created.id,
                plan=half_refund,
                confirmation_code='CONFIRM',
                confirmed_by=scenario.organizer_id,
            )

        stored = await get_cancellation_use_case.get_cancellation(cancellation_id=created.id)
        assert stored.status is CancellationStatus.CONFIRMED
        assert stored.compensation_plan == created.compensation_plan
        assert not payment_ledger.attempts

    @pytest.mark.asyncio
    async def test_same_plan_after_confirming_resumes(
        self,
        confirm_and_process_use_case,
        create_cancellation_use_case,
        confirm_cancellation_use_case,
        draft,
        scenario,
    ):
        created = await create_cancellation_use_case.execute(
            event_id=draft.event_id, reason=draft.reason, initiated_by=draft.initiated_by
        )
        await confirm_cancellation_use_case.execute(
            cancellation_id=created.id, confirmation_code='CONFIRM', confirmed_by=scenario.organizer_id
        )

        result = await confirm_and_process_use_case.execute(
            cancellation_id=created.id,
            plan=created.compensation_plan,
            confirmation_code='CONFIRM',
            confirmed_by=scenario.organizer_id,
        )

        assert result.status is CancellationStatus.COMPLETED
        assert result.refunded_amount == Decimal(7_000_000)

    @pytest.mark.asyncio
    async def test_completed_cancellation_returned_as_is(
        self, confirm_and_process_use_case, payment_ledger, draft, scenario
    ):
        first = await confirm_and_process_use_case.execute(
            draft=draft, confirmation_code='CONFIRM', confirmed_by=scenario.organizer_id
        )

        again = await confirm_and_process_use_case.execute(
            cancellation_id=first.id, confirmation_code='CONFIRM', confirmed_by=scenario.organizer_id
        )

        assert again == first
        assert set(payment_ledger.attempts.values()) == {1}

    @pytest.mark.asyncio
    async def test_processing_cancellation_is_not_run_twice(
        self, confirm_and_process_use_case, cancellation_repo, create_cancellation_use_case, draft, scenario
    ):
        created = await create_cancellation_use_case.execute(
            event_id=draft.event_id, reason=draft.reason, initiated_by=draft.initiated_by
        )
        processing = created.confirm(
            confirmation_code='CONFIRM', confirmed_by=scenario.organizer_id
        ).start_processing()
        await cancellation_repo.save(cancellation=processing, expected_version=created.version)

        with pytest.raises(CancellationInProgressError):
            await confirm_and_process_use_case.execute(
                cancellation_id=created.id,
                confirmation_code='CONFIRM',
                confirmed_by=scenario.organizer_id,
            )

    @pytest.mark.asyncio
    async def test_needs_an_id_or_a_draft(self, confirm_and_process_use_case, scenario):
        with pytest.raises(InvalidCancellationStateError):
            await confirm_and_process_use_case.execute(
                confirmation_code='CONFIRM', confirmed_by=scenario.organizer_id
            )


class TestWorkflowWalkthrough:
    @pytest.mark.asyncio
    async def test_compensation_without_impact_is_rejected(self, workflow_use_case, scenario):
        started = workflow_use_case.start(event_id=scenario.event_id, initiated_by=scenario.organizer_id)
        skipped_ahead = attrs.evolve(
            started, reason=CancellationReason.VENUE_ISSUE, current_step=CancellationStep.COMPENSATION
        )

        with pytest.raises(InvalidCancellationStateError) as exc_info:
            await workflow_use_case.advance(skipped_ahead)

        assert 'impact must be calculated' in exc_info.value.message

    @pytest.mark.asyncio
    async def test_reason_to_completed(self, workflow_use_case, scenario):
        state = workflow_use_case.start(event_id=scenario.event_id, initiated_by=scenario.organizer_id)

        state = await workflow_use_case.edit(state, reason=CancellationReason.VENUE_ISSUE)
        state = await workflow_use_case.advance(state)
        assert state.current_step is CancellationStep.IMPACT
        assert state.impact.gross_revenue == Decimal(7_000_000)
        assert state.event_title == 'Kampala Jazz Night'

        state = await workflow_use_case.advance(state)
        assert state.current_step is CancellationStep.COMPENSATION

        state = await workflow_use_case.edit(
            state,
            compensation_type=CompensationType.PARTIAL_REFUND,
            refund_percentage=Decimal('0.5'),
        )
        state = await workflow_use_case.advance(state)
        assert state.current_step is CancellationStep.NOTIFICATION
        assert state.plan.total_refund_amount == Decimal(3_500_000)
        assert 'a 50% refund' in state.preview.body

        state = await workflow_use_case.edit(state, custom_message='We will be back')
        assert state.preview.body.endswith('We will be back')

        state = await workflow_use_case.advance(state)
        assert state.current_step is CancellationStep.FINANCIAL

        state = await workflow_use_case.edit(state, acknowledged_financial_impact=True)
        state = await workflow_use_case.advance(state)
        assert state.current_step is CancellationStep.CONFIRM

        state = await workflow_use_case.edit(state, confirmation_text='confirm')
        progress = []
        state = await workflow_use_case.advance(state, on_progress=progress.append)

        assert state.is_submitted
        assert state.error_message is None
        assert state.result.status is CancellationStatus.COMPLETED
        assert state.result.refunded_amount == Decimal(3_500_000)
        assert state.result.compensation_plan.organizer_note == 'We will be back'
        assert progress[-1].is_terminal

    @pytest.mark.asyncio
    async def test_gate_keeps_the_step_and_explains(self, workflow_use_case, scenario):
        state = workflow_use_case.start(event_id=scenario.event_id, initiated_by=scenario.organizer_id)

        blocked = await workflow_use_case.advance(state)

        assert blocked.current_step is CancellationStep.REASON
        assert blocked.error_message == CancellationErrorMessage.REASON_REQUIRED.value

    @pytest.mark.asyncio
    async def test_impact_failure_stays_on_reason(
        self, workflow_use_case, event_catalog, scenario
    ):
        await event_catalog.mark_cancelled(event_id=scenario.event_id)
        state = workflow_use_case.start(event_id=scenario.event_id, initiated_by=scenario.organizer_id)
        state = await workflow_use_case.edit(state, reason=CancellationReason.DUPLICATE)

        state = await workflow_use_case.advance(state)

        assert state.current_step is CancellationStep.REASON
        assert state.error_message == CancellationErrorMessage.EVENT_ALREADY_CANCELLED.value

    @pytest.mark.asyncio
    async def test_invalid_compensation_stays_on_compensation(self, workflow_use_case, scenario):
        state = workflow_use_case.start(event_id=scenario.event_id, initiated_by=scenario.organizer_id)
        state = await workflow_use_case.edit(state, reason=CancellationReason.DUPLICATE)
        state = await workflow_use_case.advance(state)
        state = await workflow_use_case.advance(state)
        state = await workflow_use_case.edit(
            state,
            compensation_type=CompensationType.EVENT_CREDIT,
            credit_multiplier=Decimal('3'),
        )

        state = await workflow_use_case.advance(state)

        assert state.current_step is CancellationStep.COMPENSATION
        assert 'credit_multiplier' in state.error_message

    @pytest.mark.asyncio
    async def test_field_of_another_step_is_rejected(self, workflow_use_case, scenario):
        state = workflow_use_case.start(event_id=scenario.event_id, initiated_by=scenario.organizer_id)

        with pytest.raises(InvalidCancellationStateError):
            await workflow_use_case.edit(state, acknowledged_financial_impact=True)

    @pytest.mark.asyncio
    async def test_go_back(self, workflow_use_case, scenario):
        state = workflow_use_case.start(event_id=scenario.event_id, initiated_by=scenario.organizer_id)
        state = await workflow_use_case.edit(state, reason=CancellationReason.LOW_SALES)
        state = await workflow_use_case.advance(state)

        back = workflow_use_case.go_back(state)

        assert back.current_step is CancellationStep.REASON
        assert back.impact == state.impact
        assert workflow_use_case.go_back(back) is back

    @pytest.mark.asyncio
    async def test_failed_submission_can_be_resubmitted(
        self, workflow_use_case, payment_ledger, scenario
    ):
        payment_ledger.unavailable = True
        state = workflow_use_case.start(event_id=scenario.event_id, initiated_by=scenario.organizer_id)
        state = await workflow_use_case.edit(state, reason=CancellationReason.VENUE_ISSUE)
        for _ in range(4):
            state = await workflow_use_case.advance(state)
        state = await workflow_use_case.edit(state, acknowledged_financial_impact=True)
        state = await workflow_use_case.advance(state)
        state = await workflow_use_case.edit(state, confirmation_text='CONFIRM')

        failed = await workflow_use_case.submit(state)

        assert not failed.is_submitted
        assert failed.cancellation_id is not None
        assert failed.error_message.startswith(
            CancellationErrorMessage.PAYMENT_PROCESSOR_UNAVAILABLE.value
        )

        payment_ledger.unavailable = False
        done = await workflow_use_case.submit(failed)

        assert done.cancellation_id == failed.cancellation_id
        assert done.result.status is CancellationStatus.COMPLETED
        assert done.result.refunds_processed == 110
