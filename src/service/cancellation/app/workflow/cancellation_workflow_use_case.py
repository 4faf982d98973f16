"""
Cancellation Workflow Use Case - drives CancellationWorkflowState step by step

Each call takes a state and returns the next one; nothing is kept here.
Collaborator failures on a step (impact, plan, preview, submission) come back
as state.error_message with the state left on the step that failed.
"""

from typing import Any, Optional, Self

import attrs
from fastapi import Depends

from src.platform.exception.exceptions import CustomBaseError
from src.platform.logging.loguru_io import Logger
from src.service.cancellation.app.command.confirm_and_process_use_case import (
    ConfirmAndProcessUseCase,
)
from src.service.cancellation.app.command.create_cancellation_use_case import (
    CreateCancellationUseCase,
)
from src.service.cancellation.app.command.process_cancellation_use_case import ProgressCallback
from src.service.cancellation.app.query.calculate_impact_use_case import CalculateImpactUseCase
from src.service.cancellation.app.query.preview_notification_use_case import (
    PreviewNotificationUseCase,
)
from src.service.cancellation.domain.cancellation_workflow_state import CancellationWorkflowState
from src.service.cancellation.domain.compensation_planner import build_plan
from src.service.cancellation.domain.enum.cancellation_step import CancellationStep
from src.service.cancellation.domain.errors import (
    CancellationErrorMessage,
    InvalidCancellationStateError,
    InvalidCompensationParametersError,
)
from src.service.cancellation.domain.value_object.identifiers import EventId, UserId


_GATE_MESSAGES = {
    CancellationStep.REASON: CancellationErrorMessage.REASON_REQUIRED.value,
    CancellationStep.IMPACT: 'Impact has not been calculated yet',
    CancellationStep.FINANCIAL: 'Please acknowledge the financial impact to continue',
    CancellationStep.CONFIRM: CancellationErrorMessage.INVALID_CONFIRMATION_CODE.value,
}


class CancellationWorkflowUseCase:
    def __init__(
        self,
        *,
        calculate_impact: CalculateImpactUseCase,
        preview_notification: PreviewNotificationUseCase,
        create_cancellation: CreateCancellationUseCase,
        confirm_and_process: ConfirmAndProcessUseCase,
    ) -> None:
        self.calculate_impact = calculate_impact
        self.preview_notification = preview_notification
        self.create_cancellation = create_cancellation
        self.confirm_and_process = confirm_and_process

    @classmethod
    def depends(
        cls,
        calculate_impact: CalculateImpactUseCase = Depends(CalculateImpactUseCase.depends),
        preview_notification: PreviewNotificationUseCase = Depends(
            PreviewNotificationUseCase.depends
        ),
        create_cancellation: CreateCancellationUseCase = Depends(CreateCancellationUseCase.depends),
        confirm_and_process: ConfirmAndProcessUseCase = Depends(ConfirmAndProcessUseCase.depends),
    ) -> Self:
        return cls(
            calculate_impact=calculate_impact,
            preview_notification=preview_notification,
            create_cancellation=create_cancellation,
            confirm_and_process=confirm_and_process,
        )

    def start(self, *, event_id: EventId, initiated_by: UserId) -> CancellationWorkflowState:
        return CancellationWorkflowState(event_id=event_id, initiated_by=initiated_by)

    @Logger.io
    async def edit(self, state: CancellationWorkflowState, **changes: Any) -> CancellationWorkflowState:
        """
        Raises:
            InvalidCancellationStateError: a field does not belong to the current step
        """
        edited = state.edit(**changes)
        if edited.current_step is CancellationStep.NOTIFICATION:
            return await self._refresh_preview(edited, on_error=edited)
        return edited

    @Logger.io
    async def advance(
        self, state: CancellationWorkflowState, *, on_progress: Optional[ProgressCallback] = None
    ) -> CancellationWorkflowState:
        if state.is_submitted:
            return state
        if not state.can_proceed:
            return state.with_error(_GATE_MESSAGES[state.current_step])

        match state.current_step:
            case CancellationStep.REASON:
                return await self._enter_impact(state)
            case CancellationStep.COMPENSATION:
                entered = state.move_to(CancellationStep.NOTIFICATION)
                return await self._refresh_preview(entered, on_error=state)
            case CancellationStep.CONFIRM:
                return await self.submit(state, on_progress=on_progress)
            case step:
                return state.move_to(step.next)

    def go_back(self, state: CancellationWorkflowState) -> CancellationWorkflowState:
        previous = state.current_step.previous
        if previous is None or state.is_submitted:
            return state
        return state.move_to(previous)

    @Logger.io
    async def submit(
        self, state: CancellationWorkflowState, *, on_progress: Optional[ProgressCallback] = None
    ) -> CancellationWorkflowState:
        if state.is_submitted:
            return state
        if state.current_step is not CancellationStep.CONFIRM or not state.can_proceed:
            return state.with_error(_GATE_MESSAGES[CancellationStep.CONFIRM])

        cancellation_id = state.cancellation_id
        try:
            if cancellation_id is None:
                created = await self.create_cancellation.execute(
                    event_id=state.event_id,
                    reason=state.reason,
                    reason_note=state.reason_note,
                    initiated_by=state.initiated_by,
                )
                cancellation_id = created.id
            result = await self.confirm_and_process.execute(
                cancellation_id=cancellation_id,
                plan=state.plan,
                confirmation_code=state.confirmation_text,
                confirmed_by=state.initiated_by,
                on_progress=on_progress,
            )
        except CustomBaseError as e:
            # Keep the id so a resubmit resumes instead of creating a second cancellation
            return attrs.evolve(state, cancellation_id=cancellation_id, error_message=e.message)

        return attrs.evolve(state, cancellation_id=cancellation_id, result=result, error_message=None)

    async def _enter_impact(self, state: CancellationWorkflowState) -> CancellationWorkflowState:
        try:
            event = await self.calculate_impact.load_event(event_id=state.event_id)
            impact = await self.calculate_impact.execute(event_id=state.event_id)
        except CustomBaseError as e:
            return state.with_error(e.message)
        return state.move_to(
            CancellationStep.IMPACT,
            impact=impact,
            event_title=event.title,
            event_start_date=event.start_date,
        )

    async def _refresh_preview(
        self, state: CancellationWorkflowState, *, on_error: CancellationWorkflowState
    ) -> CancellationWorkflowState:
        """Rebuild plan and preview; on failure return on_error carrying the message"""
        if (
            state.impact is None
            or state.reason is None
            or state.event_title is None
            or state.event_start_date is None
        ):
            raise InvalidCancellationStateError(
                f'impact must be calculated before the {state.current_step.title} step'
            )
        try:
            plan = build_plan(
                event_id=state.event_id,
                impact=state.impact,
                compensation_type=state.compensation_type,
                processing_method=state.processing_method,
                refund_percentage=state.selected_refund_percentage(),
                credit_multiplier=state.selected_credit_multiplier(),
                organizer_note=state.custom_message,
                notification_template=state.notification_template,
            )
            notification = await self.preview_notification.render_for(
                event_id=state.event_id,
                event_title=state.event_title,
                event_date=state.event_start_date,
                reason=state.reason,
                impact=state.impact,
                plan=plan,
            )
        except InvalidCompensationParametersError as e:
            return on_error.with_error(e.message)
        return attrs.evolve(state, plan=plan, preview=notification, error_message=None)
