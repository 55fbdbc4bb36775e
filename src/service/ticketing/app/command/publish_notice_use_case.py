from typing import Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.ticketing_metrics import metrics
from src.service.ticketing.app.interface.i_document_store import IDocumentStore
from src.service.ticketing.domain.entity.broadcast_notice_entity import (
    NOTICE_COLLECTION,
    NOTICE_CREATED_AT_FIELD,
    BroadcastNotice,
    clean_message,
)
from src.service.ticketing.domain.entity.event_entity import EVENT_COLLECTION, Event
from src.service.ticketing.domain.errors import (
    EventNotFoundError,
    NotAuthenticatedError,
    NotEventOwnerError,
)


class PublishNoticeUseCase:
    """
    Host broadcast: append one urgent notice to an event's feed.

    Notices are immutable once written; every open feed for the event picks
    the new one up through its live query.
    """

    def __init__(
        self,
        *,
        document_store: IDocumentStore,
        max_length: int = settings.NOTICE_MAX_LENGTH,
    ) -> None:
        self.document_store = document_store
        self.max_length = max_length
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        document_store: IDocumentStore = Depends(Provide[Container.document_store]),
    ) -> Self:
        return cls(document_store=document_store)

    @Logger.io
    async def publish(
        self, *, event_id: str, organizer_id: Optional[str], message: Optional[str]
    ) -> BroadcastNotice:
        with self.tracer.start_as_current_span(
            'use_case.publish_notice',
            attributes={'event.id': event_id},
        ):
            if not organizer_id:
                raise NotAuthenticatedError()

            event_document = await self.document_store.get(
                collection=EVENT_COLLECTION, document_id=event_id
            )
            if event_document is None:
                raise EventNotFoundError(event_id)
            event = Event.from_document(event_document.id, event_document.data)
            if not event.is_owned_by(organizer_id):
                raise NotEventOwnerError()

            text = clean_message(message, max_length=self.max_length)

            document = await self.document_store.create(
                collection=NOTICE_COLLECTION,
                data=BroadcastNotice.new_document(
                    event_id=event_id,
                    organizer_id=organizer_id,
                    message=text,
                    event_title=event.title,
                ),
                server_timestamp_field=NOTICE_CREATED_AT_FIELD,
            )
            notice = BroadcastNotice.from_document(document.id, document.data)

            metrics.record_notice_published()
            Logger.base.info(f'📢 [BROADCAST] Notice {notice.id} published to event {event_id}')
            return notice
