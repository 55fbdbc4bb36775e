from datetime import datetime, timezone

import pytest

from src.service.ticketing.domain.errors import MalformedTokenError
from src.service.ticketing.domain.value_object.verification_token import (
    VerificationToken,
    current_time_window,
    decode,
    encode,
)


TICKET_ID = '0190f5b2-7c1e-7d4a-9f00-3c2b1a0e9d88'
NOW = datetime(2026, 10, 19, 12, 0, 30, tzinfo=timezone.utc)


@pytest.mark.unit
class TestTokenCodec:
    def test_encode_joins_id_and_window(self):
        assert encode(TICKET_ID, 29413245) == f'{TICKET_ID}|29413245'

    def test_decode_returns_ticket_id_and_window(self):
        token = decode(encode(TICKET_ID, 29413245))

        assert token == VerificationToken(ticket_id=TICKET_ID, time_window=29413245)

    def test_decode_splits_on_first_delimiter_only(self):
        # The window part must then be an integer, so a second '|' is malformed
        with pytest.raises(MalformedTokenError):
            decode(f'{TICKET_ID}|1|2')

    @pytest.mark.parametrize(
        'token',
        ['', 'no-delimiter-here', '|29413245', f'{TICKET_ID}|', f'{TICKET_ID}|soon'],
    )
    def test_decode_rejects_malformed_tokens(self, token):
        with pytest.raises(MalformedTokenError) as exc_info:
            decode(token)

        assert exc_info.value.error_code == 'MALFORMED_TOKEN'
        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize('ticket_id', ['', 'abc|def'])
    def test_encode_rejects_ids_that_cannot_round_trip(self, ticket_id):
        with pytest.raises(MalformedTokenError):
            encode(ticket_id, 1)

    def test_negative_window_is_still_an_integer(self):
        assert decode(f'{TICKET_ID}|-3').time_window == -3


@pytest.mark.unit
class TestTimeWindow:
    def test_window_is_floor_of_epoch_seconds_over_interval(self):
        expected = int(NOW.timestamp()) // 60

        assert current_time_window(NOW) == expected
        assert current_time_window(NOW, 10) == int(NOW.timestamp()) // 10

    def test_same_window_within_one_interval(self):
        start = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)
        end = datetime(2026, 10, 19, 12, 0, 59, tzinfo=timezone.utc)

        assert current_time_window(start) == current_time_window(end)


@pytest.mark.unit
class TestFreshness:
    def test_disabled_check_accepts_any_window(self):
        token = VerificationToken(ticket_id=TICKET_ID, time_window=0)

        assert token.is_fresh(now=NOW, max_age_windows=None)

    def test_current_and_recent_windows_are_fresh(self):
        window = current_time_window(NOW)

        assert VerificationToken(TICKET_ID, window).is_fresh(now=NOW, max_age_windows=1)
        assert VerificationToken(TICKET_ID, window - 1).is_fresh(now=NOW, max_age_windows=1)

    def test_old_window_is_stale(self):
        window = current_time_window(NOW)

        assert not VerificationToken(TICKET_ID, window - 2).is_fresh(now=NOW, max_age_windows=1)

    def test_one_window_of_clock_skew_is_tolerated(self):
        window = current_time_window(NOW)

        assert VerificationToken(TICKET_ID, window + 1).is_fresh(now=NOW, max_age_windows=0)
        assert not VerificationToken(TICKET_ID, window + 2).is_fresh(now=NOW, max_age_windows=0)
