import attrs

from src.service.ticketing.domain.entity.ticket_entity import Ticket
from src.service.ticketing.domain.enum.ticket_state import TicketState


@attrs.frozen
class TicketPass:
    ticket: Ticket
    token: str
    time_window: int

    @property
    def state(self) -> TicketState:
        return self.ticket.state
