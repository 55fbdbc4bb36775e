"""
Dashboard metric aggregation.

Pure functions over the full ticket set of one organizer. The snapshot is
always rebuilt from scratch so a missed or duplicated change can never skew it.
"""

from datetime import datetime, timezone
from typing import Iterable

from src.service.ticketing.domain.entity.ticket_entity import Ticket
from src.service.ticketing.domain.value_object.metric_snapshot import MetricSnapshot, RecentTicket


DEFAULT_TICKET_PRICE = 499
DEFAULT_RECENT_LIMIT = 10

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _newest_first_key(ticket: Ticket) -> tuple[bool, datetime, str]:
    # Tickets still waiting for a server timestamp sort after everything else
    return (ticket.issued_at is not None, ticket.issued_at or _EPOCH, ticket.id)


def success_rate(*, checked_in_count: int, ticket_count: int) -> float:
    if not ticket_count:
        return 0.0
    return round(checked_in_count / ticket_count * 100, 1)


def compute_snapshot(
    tickets: Iterable[Ticket],
    *,
    price: int = DEFAULT_TICKET_PRICE,
    recent_limit: int = DEFAULT_RECENT_LIMIT,
) -> MetricSnapshot:
    ordered = sorted(tickets, key=_newest_first_key, reverse=True)
    ticket_count = len(ordered)
    checked_in_count = sum(1 for ticket in ordered if ticket.is_admitted)

    return MetricSnapshot(
        ticket_count=ticket_count,
        checked_in_count=checked_in_count,
        revenue=ticket_count * price,
        success_rate=success_rate(checked_in_count=checked_in_count, ticket_count=ticket_count),
        recent=tuple(
            RecentTicket(
                id=ticket.id,
                holder_id=ticket.holder_id,
                event_id=ticket.event_id,
                issued_at=ticket.issued_at,
                checked_in_at=ticket.checked_in_at,
            )
            for ticket in ordered[:recent_limit]
        ),
    )
