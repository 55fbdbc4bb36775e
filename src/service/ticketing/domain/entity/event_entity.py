from datetime import datetime
from typing import Any, Mapping, Optional

import attrs

from src.service.ticketing.domain.errors import InvalidEventError
from src.service.ticketing.domain.timestamp import parse_timestamp


EVENT_COLLECTION = 'events'
OWNER_FIELD = 'user_id'
CATEGORY_FIELD = 'category'
CREATED_AT_FIELD = 'created_at'


def _validate_non_empty_string(instance: object, attribute: attrs.Attribute, value: str) -> None:
    if not value or not value.strip():
        raise InvalidEventError(f'{attribute.name} cannot be empty')


def _validate_latitude(instance: object, attribute: attrs.Attribute, value: float) -> None:
    if not -90 <= value <= 90:
        raise InvalidEventError(f'lat must be between -90 and 90, got {value}')


def _validate_longitude(instance: object, attribute: attrs.Attribute, value: float) -> None:
    if not -180 <= value <= 180:
        raise InvalidEventError(f'lng must be between -180 and 180, got {value}')


def _validate_end_time(instance: 'Event', attribute: attrs.Attribute, value: datetime) -> None:
    if value <= instance.start_time:
        raise InvalidEventError('end_time must be after start_time')


@attrs.define
class Event:
    owner_id: str = attrs.field(validator=_validate_non_empty_string)
    title: str = attrs.field(validator=_validate_non_empty_string)
    description: str = attrs.field(validator=_validate_non_empty_string)
    category: str = attrs.field(validator=_validate_non_empty_string)
    lat: float = attrs.field(converter=float, validator=_validate_latitude)
    lng: float = attrs.field(converter=float, validator=_validate_longitude)
    start_time: datetime = attrs.field(converter=parse_timestamp)
    end_time: datetime = attrs.field(converter=parse_timestamp, validator=_validate_end_time)
    id: Optional[str] = None  # None until stored
    created_at: Optional[datetime] = None

    def is_owned_by(self, user_id: Optional[str]) -> bool:
        return bool(user_id) and self.owner_id == user_id

    def to_document(self) -> dict[str, Any]:
        # created_at is stamped by the store
        return {
            OWNER_FIELD: self.owner_id,
            'title': self.title.strip(),
            'description': self.description.strip(),
            CATEGORY_FIELD: self.category.strip(),
            'lat': self.lat,
            'lng': self.lng,
            'start_time': self.start_time.isoformat(),
            'end_time': self.end_time.isoformat(),
        }

    @classmethod
    def from_document(cls, document_id: str, data: Mapping[str, Any]) -> 'Event':
        return cls(
            id=document_id,
            owner_id=data[OWNER_FIELD],
            title=data['title'],
            description=data['description'],
            category=data[CATEGORY_FIELD],
            lat=data['lat'],
            lng=data['lng'],
            start_time=data['start_time'],
            end_time=data['end_time'],
            created_at=parse_timestamp(data.get(CREATED_AT_FIELD)),
        )
