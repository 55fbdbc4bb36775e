"""
Live aggregation for the organizer dashboard.

Every batch delivered by the ticket live query triggers a full recompute of
the MetricSnapshot. Updates are only yielded when the numbers actually moved
or a door check-in happened, so a reconnecting listener replaying the same
ticket set publishes nothing new.
"""

from collections.abc import AsyncGenerator
from typing import Optional, Self

import attrs
from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.ticketing_metrics import metrics
from src.service.ticketing.app.dto.store_dto import ChangeType, DocumentChange, QuerySnapshot
from src.service.ticketing.app.interface.i_document_store import IDocumentStore, ILiveQuery
from src.service.ticketing.domain.entity.ticket_entity import (
    CHECKED_IN_AT_FIELD,
    ORGANIZER_FIELD,
    TICKET_COLLECTION,
    Ticket,
)
from src.service.ticketing.domain.errors import NotAuthenticatedError
from src.service.ticketing.domain.metric_aggregator import compute_snapshot
from src.service.ticketing.domain.value_object.metric_snapshot import CheckInSignal, MetricSnapshot


@attrs.frozen
class DashboardUpdate:
    snapshot: Optional[MetricSnapshot]  # None when only check-ins are new
    check_ins: tuple[CheckInSignal, ...] = ()
    stalled: bool = False
    reason: str = ''


def detect_check_ins(changes: tuple[DocumentChange, ...]) -> tuple[CheckInSignal, ...]:
    signals = []
    for change in changes:
        # ADDED is a reservation, never an entry
        if change.type is not ChangeType.MODIFIED:
            continue
        was_checked_in = (
            change.previous is not None
            and change.previous.data.get(CHECKED_IN_AT_FIELD) is not None
        )
        if was_checked_in or change.document.data.get(CHECKED_IN_AT_FIELD) is None:
            continue
        ticket = Ticket.from_document(change.document.id, change.document.data)
        signals.append(
            CheckInSignal(ticket_id=ticket.id, event_id=ticket.event_id, at=ticket.checked_in_at)
        )
    return tuple(signals)


class StreamDashboardMetricsUseCase:
    def __init__(
        self,
        *,
        document_store: IDocumentStore,
        price: int = settings.TICKET_PRICE,
        recent_limit: int = settings.RECENT_TICKETS_LIMIT,
    ) -> None:
        self.document_store = document_store
        self.price = price
        self.recent_limit = recent_limit

    @classmethod
    @inject
    def depends(
        cls,
        document_store: IDocumentStore = Depends(Provide[Container.document_store]),
    ) -> Self:
        return cls(document_store=document_store)

    @Logger.io
    async def subscribe(
        self, *, organizer_id: Optional[str]
    ) -> AsyncGenerator[DashboardUpdate, None]:
        if not organizer_id:
            raise NotAuthenticatedError()
        return self._stream(organizer_id=organizer_id)

    def _to_snapshot(self, batch: QuerySnapshot) -> MetricSnapshot:
        tickets = [Ticket.from_document(d.id, d.data) for d in batch.documents]
        return compute_snapshot(tickets, price=self.price, recent_limit=self.recent_limit)

    async def _stream(self, *, organizer_id: str) -> AsyncGenerator[DashboardUpdate, None]:
        metrics.subscription_opened(kind='dashboard')
        live_query: Optional[ILiveQuery] = None
        published: Optional[MetricSnapshot] = None
        try:
            live_query = await self.document_store.listen(
                collection=TICKET_COLLECTION, field=ORGANIZER_FIELD, value=organizer_id
            )
            async for batch in live_query:
                snapshot = self._to_snapshot(batch)
                check_ins = detect_check_ins(batch.changes)
                changed = snapshot != published

                if not changed and not check_ins:
                    continue
                if changed:
                    published = snapshot
                yield DashboardUpdate(snapshot=snapshot if changed else None, check_ins=check_ins)
        except Exception as e:
            Logger.base.opt(exception=e).warning(
                f'⚠️ [DASHBOARD] Live query for organizer {organizer_id} stalled: {e}'
            )
            yield DashboardUpdate(snapshot=None, stalled=True, reason=str(e))
        finally:
            if live_query is not None:
                await live_query.aclose()
            metrics.subscription_closed(kind='dashboard')
