from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from src.service.ticketing.domain.entity.event_entity import Event


class EventCreateRequest(BaseModel):
    title: str
    description: str
    category: str
    lat: float
    lng: float
    start_time: datetime
    end_time: datetime

    class Config:
        json_schema_extra = {
            'example': {
                'title': 'Riverside Jazz Night',
                'description': 'Open-air set by the old harbour',
                'category': 'Cultural',
                'lat': 25.0330,
                'lng': 121.5654,
                'start_time': '2026-11-20T19:00:00Z',
                'end_time': '2026-11-20T22:00:00Z',
            }
        }


class EventResponse(BaseModel):
    id: str
    owner_id: str
    title: str
    description: str
    category: str
    lat: float
    lng: float
    start_time: datetime
    end_time: datetime
    created_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, event: Event) -> 'EventResponse':
        return cls(
            id=event.id or '',
            owner_id=event.owner_id,
            title=event.title,
            description=event.description,
            category=event.category,
            lat=event.lat,
            lng=event.lng,
            start_time=event.start_time,
            end_time=event.end_time,
            created_at=event.created_at,
        )
