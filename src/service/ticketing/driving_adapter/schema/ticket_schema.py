from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from src.service.ticketing.domain.entity.ticket_entity import Ticket
from src.service.ticketing.domain.value_object.ticket_pass import TicketPass
from src.service.ticketing.domain.value_object.verification_result import VerificationResult


class ReserveTicketRequest(BaseModel):
    event_id: str


class TicketResponse(BaseModel):
    id: str
    holder_id: str
    event_id: str
    organizer_id: str
    state: str
    issued_at: Optional[datetime] = None
    checked_in_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, ticket: Ticket) -> 'TicketResponse':
        return cls(
            id=ticket.id,
            holder_id=ticket.holder_id,
            event_id=ticket.event_id,
            organizer_id=ticket.organizer_id,
            state=ticket.state.value,
            issued_at=ticket.issued_at,
            checked_in_at=ticket.checked_in_at,
        )


class TicketPassResponse(BaseModel):
    ticket: TicketResponse
    token: str
    time_window: int

    @classmethod
    def from_pass(cls, ticket_pass: TicketPass) -> 'TicketPassResponse':
        return cls(
            ticket=TicketResponse.from_entity(ticket_pass.ticket),
            token=ticket_pass.token,
            time_window=ticket_pass.time_window,
        )


class TokenSseResponse(BaseModel):
    event_type: str
    ticket_id: str
    token: str
    time_window: int
    state: str


class VerifyTicketRequest(BaseModel):
    token: str

    class Config:
        json_schema_extra = {'example': {'token': '0190f5b2-7c1e-7d4a-9f00-3c2b1a0e9d88|29413245'}}


class VerificationResponse(BaseModel):
    outcome: str
    ticket_id: str
    event_title: str
    at: Optional[datetime] = None

    @classmethod
    def from_result(cls, result: VerificationResult) -> 'VerificationResponse':
        return cls(
            outcome=result.outcome.value,
            ticket_id=result.ticket_id,
            event_title=result.event_title,
            at=result.at,
        )
