"""
Verification token codec.

Wire format: ``<ticket_id>|<time_window>`` where ``time_window`` is the
integer count of ``interval`` second buckets since the Unix epoch. The token
shown on a ticket pass is re-encoded on every rotation tick, so a screenshot
goes stale once the bucket rolls over.
"""

from datetime import datetime
from typing import Optional

import attrs

from src.service.ticketing.domain.errors import MalformedTokenError


TOKEN_DELIMITER = '|'
DEFAULT_WINDOW_SECONDS = 60


def current_time_window(now: datetime, interval: int = DEFAULT_WINDOW_SECONDS) -> int:
    return int(now.timestamp()) // interval


def encode(ticket_id: str, time_window: int) -> str:
    if not ticket_id:
        raise MalformedTokenError('ticket id is empty')
    if TOKEN_DELIMITER in ticket_id:
        raise MalformedTokenError(f'ticket id contains {TOKEN_DELIMITER!r}')
    return f'{ticket_id}{TOKEN_DELIMITER}{time_window}'


def decode(token: str) -> 'VerificationToken':
    ticket_id, delimiter, window = token.partition(TOKEN_DELIMITER)
    if not delimiter:
        raise MalformedTokenError(f'missing {TOKEN_DELIMITER!r} delimiter')
    if not ticket_id:
        raise MalformedTokenError('ticket id is empty')
    try:
        time_window = int(window)
    except ValueError:
        raise MalformedTokenError(f'time window is not an integer: {window!r}') from None
    return VerificationToken(ticket_id=ticket_id, time_window=time_window)


@attrs.frozen
class VerificationToken:
    ticket_id: str
    time_window: int

    def encode(self) -> str:
        return encode(self.ticket_id, self.time_window)

    def is_fresh(
        self,
        *,
        now: datetime,
        max_age_windows: Optional[int],
        interval: int = DEFAULT_WINDOW_SECONDS,
    ) -> bool:
        """
        Whether the token was minted recently enough to be accepted.

        ``max_age_windows=None`` disables the check. Windows in the future are
        tolerated by one bucket to absorb clock skew between phone and scanner.
        """
        if max_age_windows is None:
            return True
        age = current_time_window(now, interval) - self.time_window
        return -1 <= age <= max_age_windows
