from datetime import datetime, timezone
from typing import List, Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.interface.i_document_store import IDocumentStore
from src.service.ticketing.domain.entity.event_entity import (
    CATEGORY_FIELD,
    EVENT_COLLECTION,
    OWNER_FIELD,
    Event,
)


_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _newest_first(events: List[Event]) -> List[Event]:
    return sorted(
        events,
        key=lambda event: (event.created_at or _EPOCH, event.id or ''),
        reverse=True,
    )


class ListEventsUseCase:
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
    async def list_events(self, *, category: Optional[str] = None) -> List[Event]:
        """All events, newest first, optionally narrowed to one category"""
        documents = await self.document_store.query(
            collection=EVENT_COLLECTION,
            field=CATEGORY_FIELD if category else None,
            value=category,
        )
        events = _newest_first([Event.from_document(d.id, d.data) for d in documents])

        Logger.base.info(f'📋 [LIST_EVENTS] Found {len(events)} events (category={category})')
        return events

    @Logger.io
    async def list_hosted_events(self, *, owner_id: str) -> List[Event]:
        documents = await self.document_store.query(
            collection=EVENT_COLLECTION, field=OWNER_FIELD, value=owner_id
        )
        events = _newest_first([Event.from_document(d.id, d.data) for d in documents])

        Logger.base.info(f'📋 [LIST_HOSTED] Found {len(events)} events for owner {owner_id}')
        return events
