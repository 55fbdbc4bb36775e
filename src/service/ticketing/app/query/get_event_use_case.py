from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.interface.i_document_store import IDocumentStore
from src.service.ticketing.domain.entity.event_entity import EVENT_COLLECTION, Event
from src.service.ticketing.domain.errors import EventNotFoundError


class GetEventUseCase:
    def __init__(self, *, document_store: IDocumentStore) -> None:
        self.document_store = document_store

    @classmethod
    @inject
    def depends(
        cls,
        document_store: IDocumentStore = Depends(Provide[Container.document_store]),
    ) -> Self:
        return cls(document_store=document_store)

    @Logger.io
    async def get_by_id(self, *, event_id: str) -> Event:
        document = await self.document_store.get(collection=EVENT_COLLECTION, document_id=event_id)
        if document is None:
            raise EventNotFoundError(event_id)
        return Event.from_document(document.id, document.data)
