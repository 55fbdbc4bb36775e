"""
Unit tests for VerifyTicketUseCase

Door check-in must admit a ticket at most once, however many scanners race
on the same token, and must answer within the configured timeout.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import anyio
import pytest

from src.platform.metrics.ticketing_metrics import metrics
from src.service.ticketing.app.command.verify_ticket_use_case import VerifyTicketUseCase
from src.service.ticketing.app.dto.store_dto import UpdateResult, UpdateStatus
from src.service.ticketing.domain.entity.event_entity import EVENT_COLLECTION
from src.service.ticketing.domain.entity.ticket_entity import TICKET_COLLECTION
from src.service.ticketing.domain.errors import (
    MalformedTokenError,
    StoreUnavailableError,
    TicketNotFoundError,
)
from src.service.ticketing.domain.value_object.verification_result import (
    UNKNOWN_EVENT_TITLE,
    VerificationOutcome,
)
from src.service.ticketing.domain.value_object.verification_token import (
    current_time_window,
    encode,
)
from test.helpers import seed_event, seed_ticket


NOW = datetime(2026, 11, 20, 19, 0, 30, tzinfo=timezone.utc)


def _token_for(ticket_id: str, *, at: datetime = NOW) -> str:
    return encode(ticket_id, current_time_window(at, 60))


@pytest.fixture
def verify_use_case(document_store) -> VerifyTicketUseCase:
    return VerifyTicketUseCase(
        document_store=document_store,
        timeout_seconds=1.0,
        max_age_windows=None,
        window_seconds=60,
        clock=lambda: NOW,
    )


@pytest.fixture
async def ticket_id(document_store) -> str:
    event = await seed_event(document_store, title='Riverside Jazz Night')
    ticket = await seed_ticket(document_store, event_id=event.id)
    return ticket.id


@pytest.mark.unit
class TestVerifyTicketUseCase:
    @pytest.mark.asyncio
    async def test_first_scan_admits(self, verify_use_case, document_store, ticket_id):
        result = await verify_use_case.verify(token=_token_for(ticket_id))

        assert result.outcome is VerificationOutcome.ADMITTED
        assert result.event_title == 'Riverside Jazz Night'
        assert result.at is not None

        stored = await document_store.get(collection=TICKET_COLLECTION, document_id=ticket_id)
        assert stored.data['checked_in_at'] is not None

    @pytest.mark.asyncio
    async def test_second_scan_reports_original_check_in(self, verify_use_case, ticket_id):
        first = await verify_use_case.verify(token=_token_for(ticket_id))
        second = await verify_use_case.verify(token=_token_for(ticket_id))

        assert second.outcome is VerificationOutcome.ALREADY_ADMITTED
        assert not second.is_admitted
        assert second.at == first.at

    @pytest.mark.asyncio
    async def test_concurrent_scans_admit_exactly_once(self, verify_use_case, ticket_id):
        outcomes: list[VerificationOutcome] = []

        async def scan() -> None:
            result = await verify_use_case.verify(token=_token_for(ticket_id))
            outcomes.append(result.outcome)

        async with anyio.create_task_group() as tg:
            for _ in range(10):
                tg.start_soon(scan)

        assert outcomes.count(VerificationOutcome.ADMITTED) == 1
        assert outcomes.count(VerificationOutcome.ALREADY_ADMITTED) == 9

    @pytest.mark.asyncio
    async def test_token_window_is_ignored_by_default(self, verify_use_case, ticket_id):
        stale_token = _token_for(ticket_id, at=NOW - timedelta(days=30))

        result = await verify_use_case.verify(token=stale_token)

        assert result.is_admitted

    @pytest.mark.asyncio
    async def test_stale_token_rejected_when_freshness_enabled(self, document_store, ticket_id):
        use_case = VerifyTicketUseCase(
            document_store=document_store,
            max_age_windows=1,
            window_seconds=60,
            clock=lambda: NOW,
        )

        with pytest.raises(MalformedTokenError, match='expired'):
            await use_case.verify(token=_token_for(ticket_id, at=NOW - timedelta(minutes=5)))

        stored = await document_store.get(collection=TICKET_COLLECTION, document_id=ticket_id)
        assert stored.data['checked_in_at'] is None

    @pytest.mark.asyncio
    async def test_malformed_token(self, verify_use_case):
        with pytest.raises(MalformedTokenError):
            await verify_use_case.verify(token='not-a-token')

    @pytest.mark.asyncio
    async def test_unknown_ticket(self, verify_use_case):
        with pytest.raises(TicketNotFoundError):
            await verify_use_case.verify(token=_token_for('0190f5b2-0000-7000-8000-000000000000'))

    @pytest.mark.asyncio
    async def test_missing_event_falls_back_to_default_title(
        self, verify_use_case, document_store, ticket_id
    ):
        ticket = await document_store.get(collection=TICKET_COLLECTION, document_id=ticket_id)
        await document_store.delete(
            collection=EVENT_COLLECTION, document_id=ticket.data['event_id']
        )

        result = await verify_use_case.verify(token=_token_for(ticket_id))

        assert result.is_admitted
        assert result.event_title == UNKNOWN_EVENT_TITLE

    @pytest.mark.asyncio
    async def test_ticket_revoked_mid_check_in(self, document_store, ticket_id):
        store = AsyncMock(wraps=document_store)
        store.update_if = AsyncMock(return_value=UpdateResult(status=UpdateStatus.NOT_FOUND))
        use_case = VerifyTicketUseCase(document_store=store, clock=lambda: NOW)

        with pytest.raises(TicketNotFoundError):
            await use_case.verify(token=_token_for(ticket_id))

    @pytest.mark.asyncio
    async def test_slow_store_times_out_as_unavailable(self, ticket_id):
        async def hang(**kwargs):
            await anyio.sleep(10)

        store = AsyncMock()
        store.get = AsyncMock(side_effect=hang)
        use_case = VerifyTicketUseCase(
            document_store=store, timeout_seconds=0.05, clock=lambda: NOW
        )

        with pytest.raises(StoreUnavailableError) as exc_info:
            await use_case.verify(token=_token_for(ticket_id))

        assert exc_info.value.status_code == 503
        assert exc_info.value.retryable

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ('failure', 'outcome'),
        [
            (StoreUnavailableError('ConnectionError'), 'unavailable'),
            (RuntimeError('corrupt document'), 'error'),
        ],
    )
    async def test_failure_is_counted_under_its_own_outcome(self, ticket_id, failure, outcome):
        store = AsyncMock()
        store.get = AsyncMock(side_effect=failure)
        use_case = VerifyTicketUseCase(document_store=store, clock=lambda: NOW)

        with patch.object(metrics, 'record_verification') as record_verification:
            with pytest.raises(type(failure)):
                await use_case.verify(token=_token_for(ticket_id))

        assert record_verification.call_args.kwargs['outcome'] == outcome
