from datetime import datetime
from typing import Any, Mapping, Optional

import attrs

from src.service.ticketing.domain.enum.ticket_state import TicketState
from src.service.ticketing.domain.timestamp import parse_timestamp


TICKET_COLLECTION = 'rsvps'
HOLDER_FIELD = 'user_id'
EVENT_FIELD = 'event_id'
ORGANIZER_FIELD = 'organizer_id'
ISSUED_AT_FIELD = 'created_at'
CHECKED_IN_AT_FIELD = 'checked_in_at'


@attrs.define
class Ticket:
    """
    A reservation for one holder at one event.

    ``checked_in_at`` moves from None to a timestamp exactly once and is never
    reset; the store's conditional update is what enforces that.
    """

    id: str
    holder_id: str
    event_id: str
    organizer_id: str
    issued_at: Optional[datetime] = None
    checked_in_at: Optional[datetime] = None

    @property
    def state(self) -> TicketState:
        return TicketState.ADMITTED if self.checked_in_at is not None else TicketState.RESERVED

    @property
    def is_admitted(self) -> bool:
        return self.checked_in_at is not None

    def is_held_by(self, holder_id: Optional[str]) -> bool:
        return bool(holder_id) and self.holder_id == holder_id

    @staticmethod
    def new_document(*, holder_id: str, event_id: str, organizer_id: str) -> dict[str, Any]:
        # issued_at is stamped by the store
        return {
            HOLDER_FIELD: holder_id,
            EVENT_FIELD: event_id,
            ORGANIZER_FIELD: organizer_id,
            CHECKED_IN_AT_FIELD: None,
        }

    @classmethod
    def from_document(cls, document_id: str, data: Mapping[str, Any]) -> 'Ticket':
        return cls(
            id=document_id,
            holder_id=data[HOLDER_FIELD],
            event_id=data[EVENT_FIELD],
            organizer_id=data[ORGANIZER_FIELD],
            issued_at=parse_timestamp(data.get(ISSUED_AT_FIELD)),
            checked_in_at=parse_timestamp(data.get(CHECKED_IN_AT_FIELD)),
        )
