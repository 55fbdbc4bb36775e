from enum import StrEnum


class TicketState(StrEnum):
    RESERVED = 'reserved'
    ADMITTED = 'admitted'  # terminal
