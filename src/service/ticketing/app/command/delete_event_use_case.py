from typing import Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.interface.i_document_store import IDocumentStore
from src.service.ticketing.domain.entity.event_entity import EVENT_COLLECTION, Event
from src.service.ticketing.domain.errors import NotAuthenticatedError, NotEventOwnerError


class DeleteEventUseCase:
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
    async def delete_event(self, *, event_id: str, owner_id: Optional[str]) -> bool:
        """Owner-only delete. Tickets already issued are left for the owner to revoke."""
        with self.tracer.start_as_current_span(
            'use_case.delete_event',
            attributes={'event.id': event_id},
        ):
            if not owner_id:
                raise NotAuthenticatedError()

            document = await self.document_store.get(
                collection=EVENT_COLLECTION, document_id=event_id
            )
            if document is None:
                return False

            if not Event.from_document(document.id, document.data).is_owned_by(owner_id):
                raise NotEventOwnerError()

            deleted = await self.document_store.delete(
                collection=EVENT_COLLECTION, document_id=event_id
            )
            Logger.base.info(f'🗑️ [DELETE_EVENT] Event {event_id} deleted={deleted}')
            return deleted
