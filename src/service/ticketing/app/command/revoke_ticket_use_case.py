from typing import Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.ticketing_metrics import metrics
from src.service.ticketing.app.interface.i_document_store import IDocumentStore
from src.service.ticketing.domain.entity.ticket_entity import TICKET_COLLECTION, Ticket
from src.service.ticketing.domain.errors import NotAuthenticatedError, NotEventOwnerError


class RevokeTicketUseCase:
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
    async def revoke(self, *, ticket_id: str, organizer_id: Optional[str]) -> bool:
        """Delete a ticket as its organizer. Returns False when it was already gone."""
        with self.tracer.start_as_current_span(
            'use_case.revoke_ticket',
            attributes={'ticket.id': ticket_id},
        ):
            if not organizer_id:
                raise NotAuthenticatedError()

            document = await self.document_store.get(
                collection=TICKET_COLLECTION, document_id=ticket_id
            )
            if document is None:
                return False

            ticket = Ticket.from_document(document.id, document.data)
            if ticket.organizer_id != organizer_id:
                raise NotEventOwnerError()

            deleted = await self.document_store.delete(
                collection=TICKET_COLLECTION, document_id=ticket_id
            )
            if deleted:
                metrics.record_ticket_revoked()
                Logger.base.info(f'🗑️ [REVOKE] Ticket {ticket_id} revoked by {organizer_id}')
            return deleted
