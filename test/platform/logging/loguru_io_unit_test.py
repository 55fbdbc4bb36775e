"""
Unit tests for the @Logger.io decorator and its masking helpers
"""

import pytest

from src.platform.logging.loguru_io import Logger
from src.platform.logging.loguru_io_utils import (
    MAX_CONTENT_LENGTH,
    mask_sensitive,
    should_mask_keyword,
    truncate_content,
)
from src.service.ticketing.domain.errors import EventNotFoundError


@pytest.mark.unit
class TestMasking:
    @pytest.mark.parametrize(
        'raw',
        [
            "{'password': 'hunter2'}",
            'access_token=eyJhbGciOi',
            '"secret": "s3cr3t"',
        ],
    )
    def test_sensitive_values_are_masked(self, raw):
        masked = mask_sensitive(raw)

        assert '********' in masked
        assert 'hunter2' not in masked
        assert 'eyJhbGciOi' not in masked
        assert 's3cr3t' not in masked

    def test_plain_values_are_returned_unchanged(self):
        data = {'event_id': 'evt-1'}

        assert mask_sensitive(data) is data

    def test_keyword_masking(self):
        assert should_mask_keyword('token', 'abc|123') == '********'
        assert should_mask_keyword('event_id', 'evt-1') == 'evt-1'

    def test_long_content_is_truncated(self):
        truncated = truncate_content('x' * (MAX_CONTENT_LENGTH + 20))

        assert truncated.endswith('...(+20)')


class _Service:
    @Logger.io
    async def double(self, *, value: int) -> int:
        return value * 2

    @Logger.io
    async def fail(self, *, event_id: str) -> None:
        raise EventNotFoundError(event_id)

    @Logger.io(reraise=False)
    async def fail_quietly(self) -> None:
        raise RuntimeError('boom')

    @Logger.io
    async def countdown(self, *, start: int):
        for value in range(start, 0, -1):
            yield value

    @Logger.io
    def label(self, name: str) -> str:
        return f'[{name}]'


@pytest.mark.unit
class TestLoggerIo:
    @pytest.mark.asyncio
    async def test_async_return_value_passes_through(self):
        assert await _Service().double(value=21) == 42

    @pytest.mark.asyncio
    async def test_exception_is_reraised_and_marked_logged(self):
        with pytest.raises(EventNotFoundError) as exc_info:
            await _Service().fail(event_id='evt-1')

        assert getattr(exc_info.value, '_has_logged', False)

    @pytest.mark.asyncio
    async def test_reraise_false_swallows_into_none(self):
        assert await _Service().fail_quietly() is None

    @pytest.mark.asyncio
    async def test_async_generator_yields_every_item(self):
        assert [value async for value in _Service().countdown(start=3)] == [3, 2, 1]

    def test_sync_function(self):
        assert _Service().label('door') == '[door]'
