"""Seeding helpers shared by unit and API tests."""

from datetime import datetime, timedelta, timezone
from typing import Any

from src.service.ticketing.app.dto.store_dto import Document
from src.service.ticketing.app.interface.i_document_store import IDocumentStore
from src.service.ticketing.domain.entity.event_entity import (
    CREATED_AT_FIELD,
    EVENT_COLLECTION,
    Event,
)
from src.service.ticketing.domain.entity.ticket_entity import (
    ISSUED_AT_FIELD,
    TICKET_COLLECTION,
    Ticket,
)


HOST_ID = 'host-ada'
OTHER_HOST_ID = 'host-grace'
GUEST_ID = 'guest-linus'
OTHER_GUEST_ID = 'guest-barbara'

EVENT_START = datetime(2026, 11, 20, 19, 0, tzinfo=timezone.utc)


def event_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        'title': 'Riverside Jazz Night',
        'description': 'Open-air set by the old harbour',
        'category': 'Cultural',
        'lat': 25.033,
        'lng': 121.5654,
        'start_time': EVENT_START.isoformat(),
        'end_time': (EVENT_START + timedelta(hours=3)).isoformat(),
    }
    return payload | overrides


async def seed_event(
    store: IDocumentStore, *, owner_id: str = HOST_ID, **overrides: Any
) -> Document:
    event = Event(owner_id=owner_id, **event_payload(**overrides))
    return await store.create(
        collection=EVENT_COLLECTION,
        data=event.to_document(),
        server_timestamp_field=CREATED_AT_FIELD,
    )


async def seed_ticket(
    store: IDocumentStore,
    *,
    event_id: str,
    holder_id: str = GUEST_ID,
    organizer_id: str = HOST_ID,
) -> Document:
    return await store.create(
        collection=TICKET_COLLECTION,
        data=Ticket.new_document(
            holder_id=holder_id, event_id=event_id, organizer_id=organizer_id
        ),
        server_timestamp_field=ISSUED_AT_FIELD,
    )
