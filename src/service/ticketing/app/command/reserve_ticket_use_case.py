from typing import Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.ticketing_metrics import metrics
from src.service.ticketing.app.interface.i_document_store import IDocumentStore
from src.service.ticketing.domain.entity.event_entity import EVENT_COLLECTION, Event
from src.service.ticketing.domain.entity.ticket_entity import (
    ISSUED_AT_FIELD,
    TICKET_COLLECTION,
    Ticket,
)
from src.service.ticketing.domain.errors import EventNotFoundError, NotAuthenticatedError


class ReserveTicketUseCase:
    """
    Reserve one ticket for the caller.

    Flow:
    1. Reject anonymous callers before touching the store
    2. Resolve the event to copy its owner onto the ticket as organizer
    3. Create the ticket in one write; the store stamps issued_at

    Nothing is written when either check fails.
    """

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
    async def reserve(self, *, holder_id: Optional[str], event_id: str) -> Ticket:
        with self.tracer.start_as_current_span(
            'use_case.reserve_ticket',
            attributes={'event.id': event_id},
        ):
            if not holder_id:
                raise NotAuthenticatedError()

            event_document = await self.document_store.get(
                collection=EVENT_COLLECTION, document_id=event_id
            )
            if event_document is None:
                raise EventNotFoundError(event_id)
            event = Event.from_document(event_document.id, event_document.data)

            document = await self.document_store.create(
                collection=TICKET_COLLECTION,
                data=Ticket.new_document(
                    holder_id=holder_id, event_id=event_id, organizer_id=event.owner_id
                ),
                server_timestamp_field=ISSUED_AT_FIELD,
            )
            ticket = Ticket.from_document(document.id, document.data)

            metrics.record_ticket_reserved()
            Logger.base.info(
                f'🎟️ [RESERVE] Ticket {ticket.id} issued to {holder_id} for event {event_id}'
            )
            return ticket
