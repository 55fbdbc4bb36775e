from collections.abc import AsyncGenerator
from typing import Optional

from fastapi import APIRouter, Depends, status
from sse_starlette.sse import EventSourceResponse

from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.command.publish_notice_use_case import PublishNoticeUseCase
from src.service.ticketing.app.query.stream_notice_feed_use_case import (
    NoticeFeedEvent,
    StreamNoticeFeedUseCase,
)
from src.service.ticketing.domain.enum.sse_event_type import SseEventType
from src.service.ticketing.driving_adapter.http_controller.auth.identity import (
    get_current_identity,
)
from src.service.ticketing.driving_adapter.schema.broadcast_schema import (
    NoticeFeedSseResponse,
    NoticeResponse,
    NoticeSignalSseResponse,
    PublishNoticeRequest,
)


router = APIRouter()


@router.post('/{event_id}/broadcast', status_code=status.HTTP_201_CREATED)
@Logger.io
async def publish_notice(
    event_id: str,
    request: PublishNoticeRequest,
    current_user_id: Optional[str] = Depends(get_current_identity),
    use_case: PublishNoticeUseCase = Depends(PublishNoticeUseCase.depends),
) -> NoticeResponse:
    notice = await use_case.publish(
        event_id=event_id, organizer_id=current_user_id, message=request.message
    )
    return NoticeResponse.from_entity(notice)


def to_sse_payload(event_id: str, feed_event: NoticeFeedEvent) -> dict:
    if feed_event.update is None:
        response: NoticeFeedSseResponse | NoticeSignalSseResponse = NoticeSignalSseResponse(
            event_type=feed_event.type.value, event_id=event_id, reason=feed_event.reason
        )
    else:
        update = feed_event.update
        response = NoticeFeedSseResponse(
            event_type=feed_event.type.value,
            event_id=event_id,
            notices=[NoticeResponse.from_entity(notice) for notice in update.notices],
            new_notice_ids=sorted(update.new_notice_ids),
            is_backlog=update.is_backlog,
            pulse_active=feed_event.pulse_active,
        )
    return {'event': feed_event.type.value, 'data': response.model_dump_json()}


@router.get('/{event_id}/broadcast/sse', status_code=status.HTTP_200_OK)
@Logger.io
async def stream_notice_feed(
    event_id: str,
    use_case: StreamNoticeFeedUseCase = Depends(StreamNoticeFeedUseCase.depends),
) -> EventSourceResponse:
    """SSE live notice feed: backlog first, then new notices with a highlight pulse."""
    feed = await use_case.subscribe(event_id=event_id)

    async def event_generator(
        stream: AsyncGenerator[NoticeFeedEvent, None],
    ) -> AsyncGenerator[dict, None]:
        try:
            async for feed_event in stream:
                yield to_sse_payload(event_id, feed_event)
                if feed_event.type is SseEventType.STALLED:
                    return
        finally:
            await stream.aclose()

    return EventSourceResponse(event_generator(feed))
