from datetime import datetime
from enum import StrEnum
from typing import Optional

import attrs


UNKNOWN_EVENT_TITLE = 'Registered Event'


class VerificationOutcome(StrEnum):
    ADMITTED = 'admitted'
    ALREADY_ADMITTED = 'already_admitted'


@attrs.frozen
class VerificationResult:
    outcome: VerificationOutcome
    ticket_id: str
    at: Optional[datetime]  # check-in time; the earlier scan's time for ALREADY_ADMITTED
    event_title: str = UNKNOWN_EVENT_TITLE

    @property
    def is_admitted(self) -> bool:
        return self.outcome is VerificationOutcome.ADMITTED
