from collections.abc import AsyncGenerator
from datetime import datetime, timezone
from typing import Callable, Optional, Self

import anyio
from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.ticketing_metrics import metrics
from src.service.ticketing.app.interface.i_document_store import IDocumentStore
from src.service.ticketing.domain.entity.ticket_entity import (
    EVENT_FIELD,
    HOLDER_FIELD,
    TICKET_COLLECTION,
    Ticket,
)
from src.service.ticketing.domain.errors import (
    NotAuthenticatedError,
    NotTicketHolderError,
    StoreUnavailableError,
    TicketNotFoundError,
)
from src.service.ticketing.domain.timestamp import utc_now
from src.service.ticketing.domain.value_object.ticket_pass import TicketPass
from src.service.ticketing.domain.value_object.verification_token import (
    current_time_window,
    encode,
)


_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class TicketPassUseCase:
    """
    The holder's side of a ticket: look it up and show a rotating token.

    The token is re-encoded every rotation tick even when the time window has
    not rolled over yet, so clients animate on a steady beat.
    """

    def __init__(
        self,
        *,
        document_store: IDocumentStore,
        window_seconds: int = settings.TOKEN_WINDOW_SECONDS,
        rotation_seconds: float = settings.TOKEN_ROTATION_SECONDS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.document_store = document_store
        self.window_seconds = window_seconds
        self.rotation_seconds = rotation_seconds
        self.clock = clock

    @classmethod
    @inject
    def depends(
        cls,
        document_store: IDocumentStore = Depends(Provide[Container.document_store]),
    ) -> Self:
        return cls(document_store=document_store)

    def issue_pass(self, ticket: Ticket) -> TicketPass:
        time_window = current_time_window(self.clock(), self.window_seconds)
        return TicketPass(
            ticket=ticket, token=encode(ticket.id, time_window), time_window=time_window
        )

    @Logger.io
    async def find_my_ticket(self, *, holder_id: Optional[str], event_id: str) -> TicketPass:
        if not holder_id:
            raise NotAuthenticatedError()

        documents = await self.document_store.query(
            collection=TICKET_COLLECTION, field=HOLDER_FIELD, value=holder_id
        )
        tickets = sorted(
            (
                Ticket.from_document(d.id, d.data)
                for d in documents
                if d.data.get(EVENT_FIELD) == event_id
            ),
            key=lambda ticket: (ticket.issued_at or _EPOCH, ticket.id),
        )
        if not tickets:
            raise TicketNotFoundError(f'holder {holder_id} at event {event_id}')
        return self.issue_pass(tickets[0])

    @Logger.io
    async def subscribe_tokens(
        self, *, ticket_id: str, holder_id: Optional[str]
    ) -> AsyncGenerator[TicketPass, None]:
        """Checks access up front, then returns the rotating pass stream"""
        ticket = await self._load_own_ticket(ticket_id=ticket_id, holder_id=holder_id)
        return self._rotate(ticket=ticket)

    async def _load_own_ticket(self, *, ticket_id: str, holder_id: Optional[str]) -> Ticket:
        if not holder_id:
            raise NotAuthenticatedError()
        document = await self.document_store.get(
            collection=TICKET_COLLECTION, document_id=ticket_id
        )
        if document is None:
            raise TicketNotFoundError(ticket_id)
        ticket = Ticket.from_document(document.id, document.data)
        if not ticket.is_held_by(holder_id):
            raise NotTicketHolderError()
        return ticket

    async def _rotate(self, *, ticket: Ticket) -> AsyncGenerator[TicketPass, None]:
        metrics.subscription_opened(kind='token')
        try:
            while True:
                yield self.issue_pass(ticket)
                await anyio.sleep(self.rotation_seconds)

                # Pick up check-in state; stop once the ticket is revoked
                try:
                    document = await self.document_store.get(
                        collection=TICKET_COLLECTION, document_id=ticket.id
                    )
                except StoreUnavailableError as e:
                    Logger.base.warning(f'⚠️ [TICKET_PASS] Ending stream for {ticket.id}: {e}')
                    return
                if document is None:
                    Logger.base.info(f'🛑 [TICKET_PASS] Ticket {ticket.id} revoked, ending stream')
                    return
                ticket = Ticket.from_document(document.id, document.data)
        finally:
            metrics.subscription_closed(kind='token')
