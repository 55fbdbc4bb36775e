from datetime import datetime, timezone
from typing import Iterable

import attrs

from src.service.ticketing.domain.entity.broadcast_notice_entity import BroadcastNotice


_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def newest_first(notices: Iterable[BroadcastNotice]) -> list[BroadcastNotice]:
    return sorted(
        notices,
        key=lambda notice: (notice.created_at is not None, notice.created_at or _EPOCH, notice.id),
        reverse=True,
    )


@attrs.frozen
class NoticeFeedUpdate:
    notices: tuple[BroadcastNotice, ...]
    new_notice_ids: frozenset[str]
    is_backlog: bool

    @property
    def has_new(self) -> bool:
        return bool(self.new_notice_ids)


@attrs.define
class NoticeFeedTracker:
    """
    Splits delivered notices into backlog and live ones for a single viewer.

    The first delivery is backlog in its entirety, whatever it contains.
    Afterwards a displayed notice is new the first time its id is seen.
    """

    limit: int = 3
    _initial_delivered: bool = False
    _seen_ids: set[str] = attrs.field(factory=set)

    def classify(self, notices: Iterable[BroadcastNotice]) -> NoticeFeedUpdate:
        current = tuple(newest_first(notices)[: self.limit])
        current_ids = {notice.id for notice in current}

        if not self._initial_delivered:
            self._initial_delivered = True
            self._seen_ids |= current_ids
            return NoticeFeedUpdate(notices=current, new_notice_ids=frozenset(), is_backlog=True)

        new_ids = frozenset(current_ids - self._seen_ids)
        self._seen_ids |= current_ids
        return NoticeFeedUpdate(notices=current, new_notice_ids=new_ids, is_backlog=False)
