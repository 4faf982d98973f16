"""
Confirm And Process Use Case

Drives a cancellation from wherever it currently stands to a terminal state:

    (no id) --create--> PENDING --plan--> --confirm--> CONFIRMED --process--> COMPLETED
                                                        FAILED ----process--^

Each step persists before the next starts, so a caller that fails half way
resubmits with the cancellation id and resumes at the step that failed.
Everything before processing can be cancelled; processing itself is shielded.
"""

from typing import Optional, Self

from fastapi import Depends
from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.service.cancellation.app.command.confirm_cancellation_use_case import (
    ConfirmCancellationUseCase,
)
from src.service.cancellation.app.command.create_cancellation_use_case import (
    CreateCancellationUseCase,
)
from src.service.cancellation.app.command.process_cancellation_use_case import (
    ProcessCancellationUseCase,
    ProgressCallback,
)
from src.service.cancellation.app.command.update_compensation_plan_use_case import (
    UpdateCompensationPlanUseCase,
)
from src.service.cancellation.app.dto.cancellation_draft_dto import CancellationDraft
from src.service.cancellation.app.query.get_cancellation_use_case import GetCancellationUseCase
from src.service.cancellation.domain.aggregate.event_cancellation_aggregate import (
    EventCancellation,
)
from src.service.cancellation.domain.confirmation_guard import ensure_confirmation_code
from src.service.cancellation.domain.enum.cancellation_status import CancellationStatus
from src.service.cancellation.domain.errors import (
    CancellationInProgressError,
    InvalidCancellationStateError,
    PlanAlreadyFinalizedError,
)
from src.service.cancellation.domain.value_object.compensation_plan import CompensationPlan
from src.service.cancellation.domain.value_object.identifiers import CancellationId, UserId


class ConfirmAndProcessUseCase:
    def __init__(
        self,
        *,
        create_cancellation: CreateCancellationUseCase,
        update_compensation_plan: UpdateCompensationPlanUseCase,
        confirm_cancellation: ConfirmCancellationUseCase,
        process_cancellation: ProcessCancellationUseCase,
        get_cancellation: GetCancellationUseCase,
    ) -> None:
        self.create_cancellation = create_cancellation
        self.update_compensation_plan = update_compensation_plan
        self.confirm_cancellation = confirm_cancellation
        self.process_cancellation = process_cancellation
        self.get_cancellation = get_cancellation
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    def depends(
        cls,
        create_cancellation: CreateCancellationUseCase = Depends(CreateCancellationUseCase.depends),
        update_compensation_plan: UpdateCompensationPlanUseCase = Depends(
            UpdateCompensationPlanUseCase.depends
        ),
        confirm_cancellation: ConfirmCancellationUseCase = Depends(
            ConfirmCancellationUseCase.depends
        ),
        process_cancellation: ProcessCancellationUseCase = Depends(
            ProcessCancellationUseCase.depends
        ),
        get_cancellation: GetCancellationUseCase = Depends(GetCancellationUseCase.depends),
    ) -> Self:
        return cls(
            create_cancellation=create_cancellation,
            update_compensation_plan=update_compensation_plan,
            confirm_cancellation=confirm_cancellation,
            process_cancellation=process_cancellation,
            get_cancellation=get_cancellation,
        )

    @Logger.io
    async def execute(
        self,
        *,
        confirmation_code: str,
        confirmed_by: UserId,
        cancellation_id: Optional[CancellationId] = None,
        draft: Optional[CancellationDraft] = None,
        plan: Optional[CompensationPlan] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> EventCancellation:
        """
        Args:
            confirmation_code: Text the organizer typed, must read CONFIRM
            confirmed_by: User confirming
            cancellation_id: Resume an existing cancellation
            draft: Create a new one first (when cancellation_id is None)
            plan: Finalized plan, applied while the cancellation is still pending;
                once confirmed it must equal the stored plan
            on_progress: Forwarded to the processor

        Returns:
            The COMPLETED aggregate (has_errors flags partial failure)
        """
        # Fail fast before anything is persisted
        ensure_confirmation_code(confirmation_code)

        with self.tracer.start_as_current_span('use_case.confirm_and_process'):
            if cancellation_id is None:
                if draft is None:
                    raise InvalidCancellationStateError('either cancellation_id or draft is required')
                created = await self.create_cancellation.execute(
                    event_id=draft.event_id,
                    reason=draft.reason,
                    reason_note=draft.reason_note,
                    initiated_by=draft.initiated_by,
                )
                cancellation_id = created.id

            cancellation = await self.get_cancellation.get_cancellation(
                cancellation_id=cancellation_id
            )
            Logger.base.info(
                f'▶️ [CONFIRM+PROCESS] {cancellation_id} resuming from {cancellation.status.value}'
            )

            if (
                cancellation.status is not CancellationStatus.PENDING
                and plan is not None
                and plan != cancellation.compensation_plan
            ):
                # Frozen at confirmation; resuming must not pay different amounts
                raise PlanAlreadyFinalizedError()
            if cancellation.status is CancellationStatus.COMPLETED:
                return cancellation
            if cancellation.status is CancellationStatus.PROCESSING:
                raise CancellationInProgressError()

            if cancellation.status is CancellationStatus.PENDING:
                if plan is not None:
                    await self.update_compensation_plan.execute(
                        cancellation_id=cancellation_id, plan=plan
                    )
                await self.confirm_cancellation.execute(
                    cancellation_id=cancellation_id,
                    confirmation_code=confirmation_code,
                    confirmed_by=confirmed_by,
                )

            return await self.process_cancellation.execute(
                cancellation_id=cancellation_id, on_progress=on_progress
            )
