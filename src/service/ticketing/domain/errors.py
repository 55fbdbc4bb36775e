"""Ticketing domain errors."""

from enum import Enum

from src.platform.exception.exceptions import (
    AuthenticationError,
    DomainError,
    ForbiddenError,
    NotFoundError,
    ServiceUnavailableError,
)


class TicketingErrorMessage(Enum):
    NOT_AUTHENTICATED = 'Sign in required'
    EVENT_NOT_FOUND = 'Event not found'
    TICKET_NOT_FOUND = 'Ticket not found'
    MALFORMED_TOKEN = 'Malformed verification token'
    INVALID_MESSAGE = 'Notice message is empty or too long'
    INVALID_EVENT = 'Invalid event data'
    NOT_EVENT_OWNER = 'Only the event owner can do this'
    NOT_TICKET_HOLDER = 'Only the ticket holder can do this'
    STORE_UNAVAILABLE = 'Ticket store is unavailable, try again'


class NotAuthenticatedError(AuthenticationError):
    error_code = 'NOT_AUTHENTICATED'

    def __init__(self, message: str = TicketingErrorMessage.NOT_AUTHENTICATED.value) -> None:
        super().__init__(message)


class EventNotFoundError(NotFoundError):
    error_code = 'EVENT_NOT_FOUND'

    def __init__(self, event_id: str) -> None:
        self.event_id = event_id
        super().__init__(f'{TicketingErrorMessage.EVENT_NOT_FOUND.value}: {event_id}')


class TicketNotFoundError(NotFoundError):
    error_code = 'TICKET_NOT_FOUND'

    def __init__(self, ticket_id: str) -> None:
        self.ticket_id = ticket_id
        super().__init__(f'{TicketingErrorMessage.TICKET_NOT_FOUND.value}: {ticket_id}')


class MalformedTokenError(DomainError):
    error_code = 'MALFORMED_TOKEN'

    def __init__(self, reason: str) -> None:
        super().__init__(f'{TicketingErrorMessage.MALFORMED_TOKEN.value}: {reason}')


class InvalidMessageError(DomainError):
    error_code = 'INVALID_MESSAGE'

    def __init__(self, reason: str = TicketingErrorMessage.INVALID_MESSAGE.value) -> None:
        super().__init__(reason)


class InvalidEventError(DomainError):
    error_code = 'INVALID_EVENT'

    def __init__(self, reason: str) -> None:
        super().__init__(f'{TicketingErrorMessage.INVALID_EVENT.value}: {reason}')


class NotEventOwnerError(ForbiddenError):
    error_code = 'NOT_EVENT_OWNER'

    def __init__(self) -> None:
        super().__init__(TicketingErrorMessage.NOT_EVENT_OWNER.value)


class NotTicketHolderError(ForbiddenError):
    error_code = 'NOT_TICKET_HOLDER'

    def __init__(self) -> None:
        super().__init__(TicketingErrorMessage.NOT_TICKET_HOLDER.value)


class StoreUnavailableError(ServiceUnavailableError):
    error_code = 'STORE_UNAVAILABLE'

    def __init__(self, reason: str = '') -> None:
        message = TicketingErrorMessage.STORE_UNAVAILABLE.value
        super().__init__(f'{message} ({reason})' if reason else message)
