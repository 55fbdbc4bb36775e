from collections.abc import AsyncGenerator
from typing import Optional

from fastapi import APIRouter, Depends, status
from sse_starlette.sse import EventSourceResponse

from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.query.stream_dashboard_metrics_use_case import (
    DashboardUpdate,
    StreamDashboardMetricsUseCase,
)
from src.service.ticketing.domain.enum.sse_event_type import SseEventType
from src.service.ticketing.driving_adapter.http_controller.auth.identity import (
    get_current_identity,
)
from src.service.ticketing.driving_adapter.schema.dashboard_schema import (
    CheckInSseResponse,
    DashboardSseResponse,
    MetricSnapshotResponse,
    StalledSseResponse,
)


router = APIRouter()


def to_sse_payloads(update: DashboardUpdate) -> list[dict]:
    if update.stalled:
        stalled = StalledSseResponse(event_type=SseEventType.STALLED.value, reason=update.reason)
        return [{'event': SseEventType.STALLED.value, 'data': stalled.model_dump_json()}]

    payloads = []
    if update.snapshot is not None:
        response = DashboardSseResponse(
            event_type=SseEventType.METRICS_SNAPSHOT.value,
            snapshot=MetricSnapshotResponse.from_snapshot(update.snapshot),
        )
        payloads.append(
            {'event': SseEventType.METRICS_SNAPSHOT.value, 'data': response.model_dump_json()}
        )
    for signal in update.check_ins:
        check_in = CheckInSseResponse.from_signal(signal, event_type=SseEventType.CHECK_IN.value)
        payloads.append({'event': SseEventType.CHECK_IN.value, 'data': check_in.model_dump_json()})
    return payloads


@router.get('/sse', status_code=status.HTTP_200_OK)
@Logger.io
async def stream_dashboard(
    current_user_id: Optional[str] = Depends(get_current_identity),
    use_case: StreamDashboardMetricsUseCase = Depends(StreamDashboardMetricsUseCase.depends),
) -> EventSourceResponse:
    """SSE live revenue, attendance and check-in signals for the caller's events."""
    updates = await use_case.subscribe(organizer_id=current_user_id)

    async def event_generator(
        stream: AsyncGenerator[DashboardUpdate, None],
    ) -> AsyncGenerator[dict, None]:
        try:
            async for update in stream:
                for payload in to_sse_payloads(update):
                    yield payload
                if update.stalled:
                    return
        finally:
            await stream.aclose()

    return EventSourceResponse(event_generator(updates))
