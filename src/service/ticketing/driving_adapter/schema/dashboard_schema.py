from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from src.service.ticketing.domain.value_object.metric_snapshot import (
    CheckInSignal,
    MetricSnapshot,
)


class RecentTicketResponse(BaseModel):
    id: str
    holder_id: str
    event_id: str
    issued_at: Optional[datetime] = None
    checked_in_at: Optional[datetime] = None


class MetricSnapshotResponse(BaseModel):
    ticket_count: int
    checked_in_count: int
    revenue: int
    success_rate: float
    recent: List[RecentTicketResponse]

    @classmethod
    def from_snapshot(cls, snapshot: MetricSnapshot) -> 'MetricSnapshotResponse':
        return cls(
            ticket_count=snapshot.ticket_count,
            checked_in_count=snapshot.checked_in_count,
            revenue=snapshot.revenue,
            success_rate=snapshot.success_rate,
            recent=[
                RecentTicketResponse(
                    id=ticket.id,
                    holder_id=ticket.holder_id,
                    event_id=ticket.event_id,
                    issued_at=ticket.issued_at,
                    checked_in_at=ticket.checked_in_at,
                )
                for ticket in snapshot.recent
            ],
        )


class CheckInSseResponse(BaseModel):
    event_type: str
    ticket_id: str
    event_id: str
    at: Optional[datetime] = None

    @classmethod
    def from_signal(cls, signal: CheckInSignal, *, event_type: str) -> 'CheckInSseResponse':
        return cls(
            event_type=event_type,
            ticket_id=signal.ticket_id,
            event_id=signal.event_id,
            at=signal.at,
        )


class DashboardSseResponse(BaseModel):
    event_type: str
    snapshot: MetricSnapshotResponse


class StalledSseResponse(BaseModel):
    event_type: str
    reason: str
