from collections.abc import AsyncIterator
from typing import List

import anyio
from fastapi import APIRouter, Depends, status
from opentelemetry import trace
import orjson
from sse_starlette.sse import EventSourceResponse

from src.platform.config.di import container
from src.platform.exception.exceptions import CustomBaseError
from src.platform.logging.loguru_io import Logger
from src.platform.types import UtilsUUID7
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
from src.service.cancellation.domain.compensation_planner import build_plan
from src.service.cancellation.domain.enum.cancellation_status import CancellationStatus
from src.service.cancellation.domain.value_object.identifiers import (
    CancellationId,
    EventId,
    UserId,
)
from src.service.cancellation.driving_adapter.http_controller.schema.cancellation_schema import (
    CancellationCreateRequest,
    CancellationImpactResponse,
    CancellationResponse,
    CompensationPlanRequest,
    ConfirmAndProcessRequest,
    ConfirmCancellationRequest,
    NotificationPreviewRequest,
    NotificationPreviewResponse,
    cancellation_response,
    impact_response,
    preview_response,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)


# ============================ Planning ============================


@router.get('/event/{event_id}/impact')
@Logger.io
async def get_cancellation_impact(
    event_id: UtilsUUID7,
    use_case: CalculateImpactUseCase = Depends(CalculateImpactUseCase.depends),
) -> CancellationImpactResponse:
    impact = await use_case.execute(event_id=EventId(event_id))
    return impact_response(impact)


@router.post('/preview')
@Logger.io
async def preview_notification(
    request: NotificationPreviewRequest,
    use_case: PreviewNotificationUseCase = Depends(PreviewNotificationUseCase.depends),
) -> NotificationPreviewResponse:
    preview = await use_case.execute_draft(
        event_id=EventId(request.event_id),
        reason=request.reason,
        compensation_type=request.compensation_type,
        processing_method=request.processing_method,
        refund_percentage=request.refund_percentage,
        credit_multiplier=request.credit_multiplier,
        custom_message=request.organizer_note,
        notification_template=request.notification_template,
    )
    return preview_response(preview)


# ============================ Lifecycle ============================


@router.post('', status_code=status.HTTP_201_CREATED)
@Logger.io
async def create_cancellation(
    request: CancellationCreateRequest,
    use_case: CreateCancellationUseCase = Depends(CreateCancellationUseCase.depends),
) -> CancellationResponse:
    with tracer.start_as_current_span('controller.create_cancellation') as span:
        span.set_attribute('event_id', str(request.event_id))
        cancellation = await use_case.execute(
            event_id=EventId(request.event_id),
            reason=request.reason,
            reason_note=request.reason_note,
            initiated_by=UserId(request.initiated_by),
        )
        span.set_attribute('cancellation.id', str(cancellation.id))
        return cancellation_response(cancellation)


@router.put('/{cancellation_id}/plan')
@Logger.io
async def update_compensation_plan(
    cancellation_id: UtilsUUID7,
    request: CompensationPlanRequest,
    use_case: UpdateCompensationPlanUseCase = Depends(UpdateCompensationPlanUseCase.depends),
) -> CancellationResponse:
    cancellation = await use_case.build_and_apply(
        cancellation_id=CancellationId(cancellation_id),
        compensation_type=request.compensation_type,
        processing_method=request.processing_method,
        refund_percentage=request.refund_percentage,
        credit_multiplier=request.credit_multiplier,
        organizer_note=request.organizer_note,
        notification_template=request.notification_template,
    )
    return cancellation_response(cancellation)


@router.get('/{cancellation_id}/preview')
@Logger.io
async def preview_cancellation_notification(
    cancellation_id: UtilsUUID7,
    use_case: PreviewNotificationUseCase = Depends(PreviewNotificationUseCase.depends),
) -> NotificationPreviewResponse:
    preview = await use_case.execute(cancellation_id=CancellationId(cancellation_id))
    return preview_response(preview)


@router.post('/{cancellation_id}/confirm')
@Logger.io
async def confirm_cancellation(
    cancellation_id: UtilsUUID7,
    request: ConfirmCancellationRequest,
    use_case: ConfirmCancellationUseCase = Depends(ConfirmCancellationUseCase.depends),
) -> CancellationResponse:
    cancellation = await use_case.execute(
        cancellation_id=CancellationId(cancellation_id),
        confirmation_code=request.confirmation_code,
        confirmed_by=UserId(request.confirmed_by),
    )
    return cancellation_response(cancellation)


@router.post('/{cancellation_id}/process')
@Logger.io
async def process_cancellation(
    cancellation_id: UtilsUUID7,
    use_case: ProcessCancellationUseCase = Depends(ProcessCancellationUseCase.depends),
) -> CancellationResponse:
    cancellation = await use_case.execute(cancellation_id=CancellationId(cancellation_id))
    return cancellation_response(cancellation)


@router.post('/{cancellation_id}/confirm-and-process')
@Logger.io
async def confirm_and_process_cancellation(
    cancellation_id: UtilsUUID7,
    request: ConfirmAndProcessRequest,
    get_use_case: GetCancellationUseCase = Depends(GetCancellationUseCase.depends),
    use_case: ConfirmAndProcessUseCase = Depends(ConfirmAndProcessUseCase.depends),
) -> CancellationResponse:
    plan = None
    if request.plan is not None:
        current = await get_use_case.get_cancellation(cancellation_id=CancellationId(cancellation_id))
        plan = build_plan(
            event_id=current.event_id,
            impact=current.impact,
            compensation_type=request.plan.compensation_type,
            processing_method=request.plan.processing_method,
            refund_percentage=request.plan.refund_percentage,
            credit_multiplier=request.plan.credit_multiplier,
            organizer_note=request.plan.organizer_note,
            notification_template=request.plan.notification_template,
        )
    cancellation = await use_case.execute(
        cancellation_id=CancellationId(cancellation_id),
        plan=plan,
        confirmation_code=request.confirmation_code,
        confirmed_by=UserId(request.confirmed_by),
    )
    return cancellation_response(cancellation)


@router.post('/{cancellation_id}/retry')
@Logger.io
async def retry_failed_refunds(
    cancellation_id: UtilsUUID7,
    use_case: RetryFailedRefundsUseCase = Depends(RetryFailedRefundsUseCase.depends),
) -> CancellationResponse:
    cancellation = await use_case.execute(cancellation_id=CancellationId(cancellation_id))
    return cancellation_response(cancellation)


@router.delete('/{cancellation_id}', status_code=status.HTTP_204_NO_CONTENT)
@Logger.io
async def cancel_draft(
    cancellation_id: UtilsUUID7,
    use_case: CancelDraftUseCase = Depends(CancelDraftUseCase.depends),
) -> None:
    await use_case.execute(cancellation_id=CancellationId(cancellation_id))


# ============================ Queries ============================


@router.get('/event/{event_id}')
@Logger.io
async def get_cancellation_for_event(
    event_id: UtilsUUID7,
    use_case: GetCancellationUseCase = Depends(GetCancellationUseCase.depends),
) -> CancellationResponse:
    cancellation = await use_case.get_cancellation_for_event(event_id=EventId(event_id))
    return cancellation_response(cancellation)


@router.get('/organizer/{organizer_id}')
@Logger.io
async def list_organizer_cancellations(
    organizer_id: UtilsUUID7,
    use_case: GetCancellationUseCase = Depends(GetCancellationUseCase.depends),
) -> List[CancellationResponse]:
    cancellations = await use_case.list_organizer_cancellations(organizer_id=UserId(organizer_id))
    return [cancellation_response(c) for c in cancellations]


@router.get('/{cancellation_id}')
@Logger.io
async def get_cancellation(
    cancellation_id: UtilsUUID7,
    use_case: GetCancellationUseCase = Depends(GetCancellationUseCase.depends),
) -> CancellationResponse:
    cancellation = await use_case.get_cancellation(cancellation_id=CancellationId(cancellation_id))
    return cancellation_response(cancellation)


# ============================ SSE Endpoint ============================

# A run is underway or can still start (/process, /retry after an outage, a resubmit)
_STREAMING_STATUSES = frozenset(
    {CancellationStatus.CONFIRMED, CancellationStatus.PROCESSING, CancellationStatus.FAILED}
)


@router.get('/{cancellation_id}/progress/sse', status_code=status.HTTP_200_OK)
@Logger.io
async def stream_cancellation_progress(
    cancellation_id: UtilsUUID7,
    use_case: GetCancellationUseCase = Depends(GetCancellationUseCase.depends),
) -> EventSourceResponse:
    """
    SSE progress of a processing run

    Flow:
    1. Subscribe first, then read the aggregate (no gap between the two)
    2. Pending or completed: send the current snapshot and close
    3. Confirmed, processing or failed: forward every CancellationProgress of the
       next (or current) run until the processor closes the stream, then the snapshot
    """
    target = CancellationId(cancellation_id)
    broadcaster = container.progress_broadcaster()
    stream = await broadcaster.subscribe(cancellation_id=target)
    try:
        cancellation = await use_case.get_cancellation(cancellation_id=target)
    except CustomBaseError:
        await broadcaster.unsubscribe(cancellation_id=target, stream=stream)
        raise
    Logger.base.info(
        f'📡 [SSE] Client subscribing to cancellation {target} ({cancellation.status.value}, '
        f'{broadcaster.subscriber_count(cancellation_id=target)} watching)'
    )

    async def event_generator() -> AsyncIterator[dict[str, str]]:
        try:
            if cancellation.status in _STREAMING_STATUSES:
                async for progress in stream:
                    yield {'event': 'progress', 'data': orjson.dumps(progress.to_dict()).decode()}

            latest = await use_case.get_cancellation(cancellation_id=target)
            yield {
                'event': 'close',
                'data': orjson.dumps(
                    {
                        'status': latest.status.value,
                        'refunds_processed': latest.refunds_processed,
                        'refunds_failed': latest.refunds_failed,
                        'has_errors': latest.has_errors,
                    }
                ).decode(),
            }
        except anyio.get_cancelled_exc_class():
            Logger.base.info(f'🔌 [SSE] Client disconnected: cancellation={target}')
            raise
        finally:
            with anyio.CancelScope(shield=True):
                await broadcaster.unsubscribe(cancellation_id=target, stream=stream)

    return EventSourceResponse(event_generator())
