"""Ticketing Domain Enums"""

from src.service.ticketing.domain.enum.sse_event_type import SseEventType
from src.service.ticketing.domain.enum.ticket_state import TicketState

__all__ = ['SseEventType', 'TicketState']
