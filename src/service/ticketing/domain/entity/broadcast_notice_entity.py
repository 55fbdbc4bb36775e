from datetime import datetime
from typing import Any, Mapping, Optional

import attrs

from src.service.ticketing.domain.errors import InvalidMessageError
from src.service.ticketing.domain.timestamp import parse_timestamp


NOTICE_COLLECTION = 'broadcasts'
NOTICE_EVENT_FIELD = 'event_id'
NOTICE_CREATED_AT_FIELD = 'created_at'
NOTICE_TYPE = 'urgent'
DEFAULT_MAX_LENGTH = 280


def clean_message(message: Optional[str], *, max_length: int = DEFAULT_MAX_LENGTH) -> str:
    text = (message or '').strip()
    if not text:
        raise InvalidMessageError('Notice message cannot be empty')
    if len(text) > max_length:
        raise InvalidMessageError(f'Notice message exceeds {max_length} characters ({len(text)})')
    return text


@attrs.frozen
class BroadcastNotice:
    id: str
    event_id: str
    organizer_id: str
    message: str
    event_title: str = ''
    created_at: Optional[datetime] = None

    @staticmethod
    def new_document(
        *, event_id: str, organizer_id: str, message: str, event_title: str
    ) -> dict[str, Any]:
        return {
            NOTICE_EVENT_FIELD: event_id,
            'organizer_id': organizer_id,
            'message': message,
            'event_title': event_title,
            'type': NOTICE_TYPE,
        }

    @classmethod
    def from_document(cls, document_id: str, data: Mapping[str, Any]) -> 'BroadcastNotice':
        return cls(
            id=document_id,
            event_id=data[NOTICE_EVENT_FIELD],
            organizer_id=data['organizer_id'],
            message=data['message'],
            event_title=data.get('event_title', ''),
            created_at=parse_timestamp(data.get(NOTICE_CREATED_AT_FIELD)),
        )
