from datetime import datetime
from typing import Optional

import attrs


@attrs.frozen
class RecentTicket:
    id: str
    holder_id: str
    event_id: str
    issued_at: Optional[datetime]
    checked_in_at: Optional[datetime]


@attrs.frozen
class MetricSnapshot:
    """Dashboard numbers for one organizer. Equality is structural."""

    ticket_count: int
    checked_in_count: int
    revenue: int
    success_rate: float
    recent: tuple[RecentTicket, ...] = ()


EMPTY_SNAPSHOT = MetricSnapshot(ticket_count=0, checked_in_count=0, revenue=0, success_rate=0.0)


@attrs.frozen
class CheckInSignal:
    ticket_id: str
    event_id: str
    at: Optional[datetime]
