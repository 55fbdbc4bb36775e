from datetime import datetime, timedelta, timezone

import pytest

from src.service.ticketing.domain.entity.ticket_entity import Ticket
from src.service.ticketing.domain.metric_aggregator import compute_snapshot, success_rate
from src.service.ticketing.domain.value_object.metric_snapshot import EMPTY_SNAPSHOT


BASE_TIME = datetime(2026, 11, 20, 18, 0, tzinfo=timezone.utc)


def _ticket(index: int, *, checked_in: bool = False, issued: bool = True) -> Ticket:
    issued_at = BASE_TIME + timedelta(minutes=index) if issued else None
    return Ticket(
        id=f't-{index:02d}',
        holder_id=f'guest-{index}',
        event_id='evt-1',
        organizer_id='host',
        issued_at=issued_at,
        checked_in_at=BASE_TIME + timedelta(hours=1) if checked_in else None,
    )


@pytest.mark.unit
class TestSuccessRate:
    def test_zero_tickets_means_zero_rate(self):
        assert success_rate(checked_in_count=0, ticket_count=0) == 0.0

    def test_rounds_to_one_decimal(self):
        assert success_rate(checked_in_count=1, ticket_count=3) == 33.3
        assert success_rate(checked_in_count=2, ticket_count=3) == 66.7


@pytest.mark.unit
class TestComputeSnapshot:
    def test_empty_ticket_set(self):
        assert compute_snapshot([]) == EMPTY_SNAPSHOT

    def test_counts_revenue_and_rate(self):
        tickets = [_ticket(i, checked_in=i < 4) for i in range(10)]

        snapshot = compute_snapshot(tickets, price=499)

        assert snapshot.ticket_count == 10
        assert snapshot.checked_in_count == 4
        assert snapshot.revenue == 4990
        assert snapshot.success_rate == 40.0

    def test_recent_is_newest_first_and_capped(self):
        tickets = [_ticket(i) for i in range(15)]

        snapshot = compute_snapshot(tickets, recent_limit=10)

        assert len(snapshot.recent) == 10
        assert [ticket.id for ticket in snapshot.recent] == [f't-{i:02d}' for i in range(14, 4, -1)]

    def test_tickets_without_issue_time_sort_last(self):
        tickets = [_ticket(0, issued=False), _ticket(1), _ticket(2)]

        snapshot = compute_snapshot(tickets)

        assert [ticket.id for ticket in snapshot.recent] == ['t-02', 't-01', 't-00']

    def test_input_order_does_not_matter(self):
        tickets = [_ticket(i, checked_in=i % 2 == 0) for i in range(6)]

        assert compute_snapshot(tickets) == compute_snapshot(list(reversed(tickets)))
