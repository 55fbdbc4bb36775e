from datetime import datetime
from typing import Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.interface.i_document_store import IDocumentStore
from src.service.ticketing.domain.entity.event_entity import (
    CREATED_AT_FIELD,
    EVENT_COLLECTION,
    Event,
)
from src.service.ticketing.domain.errors import NotAuthenticatedError


class CreateEventUseCase:
    def __init__(self, *, document_store: IDocumentStore) -> None:
        self.document_store = document_store
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        document_store: IDocumentStore = Depends(Provide[Container.document_store]),
    ) -> Self:
        return cls(document_store=document_store)

    @Logger.io
    async def create_event(
        self,
        *,
        owner_id: Optional[str],
        title: str,
        description: str,
        category: str,
        lat: float,
        lng: float,
        start_time: datetime,
        end_time: datetime,
    ) -> Event:
        with self.tracer.start_as_current_span('use_case.create_event'):
            if not owner_id:
                raise NotAuthenticatedError()

            # Validates fields before anything is written
            event = Event(
                owner_id=owner_id,
                title=title,
                description=description,
                category=category,
                lat=lat,
                lng=lng,
                start_time=start_time,
                end_time=end_time,
            )

            document = await self.document_store.create(
                collection=EVENT_COLLECTION,
                data=event.to_document(),
                server_timestamp_field=CREATED_AT_FIELD,
            )
            created = Event.from_document(document.id, document.data)

            Logger.base.info(f'📅 [CREATE_EVENT] "{created.title}" ({created.id}) by {owner_id}')
            return created
