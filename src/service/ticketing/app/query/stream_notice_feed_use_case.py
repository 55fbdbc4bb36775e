"""
Broadcast feed for one event.

The first update is the backlog; later ones flag notices never seen before and
start a short highlight pulse. The pulse is bounded: when it runs out with no
further activity the stream emits a pulse_cleared update.
"""

from collections.abc import AsyncGenerator
from typing import Optional, Self

import anyio
from anyio import EndOfStream
import attrs
from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.ticketing_metrics import metrics
from src.service.ticketing.app.interface.i_document_store import IDocumentStore, ILiveQuery
from src.service.ticketing.domain.entity.broadcast_notice_entity import (
    NOTICE_COLLECTION,
    NOTICE_EVENT_FIELD,
    BroadcastNotice,
)
from src.service.ticketing.domain.entity.event_entity import EVENT_COLLECTION
from src.service.ticketing.domain.enum.sse_event_type import SseEventType
from src.service.ticketing.domain.errors import EventNotFoundError
from src.service.ticketing.domain.notice_feed import NoticeFeedTracker, NoticeFeedUpdate


@attrs.frozen
class NoticeFeedEvent:
    type: SseEventType
    update: Optional[NoticeFeedUpdate] = None  # None for pulse_cleared and stalled
    pulse_active: bool = False
    reason: str = ''


class StreamNoticeFeedUseCase:
    def __init__(
        self,
        *,
        document_store: IDocumentStore,
        feed_limit: int = settings.NOTICE_FEED_LIMIT,
        pulse_seconds: float = settings.NOTICE_PULSE_SECONDS,
    ) -> None:
        self.document_store = document_store
        self.feed_limit = feed_limit
        self.pulse_seconds = pulse_seconds

    @classmethod
    @inject
    def depends(
        cls,
        document_store: IDocumentStore = Depends(Provide[Container.document_store]),
    ) -> Self:
        return cls(document_store=document_store)

    @Logger.io
    async def subscribe(self, *, event_id: str) -> AsyncGenerator[NoticeFeedEvent, None]:
        event = await self.document_store.get(collection=EVENT_COLLECTION, document_id=event_id)
        if event is None:
            raise EventNotFoundError(event_id)
        return self._stream(event_id=event_id)

    async def _stream(self, *, event_id: str) -> AsyncGenerator[NoticeFeedEvent, None]:
        metrics.subscription_opened(kind='notice_feed')
        tracker = NoticeFeedTracker(limit=self.feed_limit)
        live_query: Optional[ILiveQuery] = None
        pulse_deadline: Optional[float] = None
        try:
            live_query = await self.document_store.listen(
                collection=NOTICE_COLLECTION, field=NOTICE_EVENT_FIELD, value=event_id
            )
            while True:
                timeout = (
                    None
                    if pulse_deadline is None
                    else max(0.0, pulse_deadline - anyio.current_time())
                )
                try:
                    batch = await live_query.receive(timeout=timeout)
                except EndOfStream:
                    return

                if batch is None:
                    pulse_deadline = None
                    yield NoticeFeedEvent(type=SseEventType.PULSE_CLEARED)
                    continue

                update = tracker.classify(
                    BroadcastNotice.from_document(d.id, d.data) for d in batch.documents
                )
                if update.has_new:
                    pulse_deadline = anyio.current_time() + self.pulse_seconds
                yield NoticeFeedEvent(
                    type=SseEventType.NOTICE_FEED,
                    update=update,
                    pulse_active=pulse_deadline is not None,
                )
        except Exception as e:
            Logger.base.opt(exception=e).warning(
                f'⚠️ [NOTICE_FEED] Live query for event {event_id} stalled: {e}'
            )
            yield NoticeFeedEvent(type=SseEventType.STALLED, reason=str(e))
        finally:
            if live_query is not None:
                await live_query.aclose()
            metrics.subscription_closed(kind='notice_feed')
