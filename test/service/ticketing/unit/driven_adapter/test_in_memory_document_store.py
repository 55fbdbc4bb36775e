"""
Unit tests for InMemoryDocumentStore

Covers the realtime contract the use cases rely on:
server timestamps, compare-and-set updates, and live query change delivery.
"""

from datetime import datetime

import anyio
from anyio import EndOfStream, fail_after
import pytest

from src.service.ticketing.app.dto.store_dto import ChangeType, UpdateStatus
from src.service.ticketing.domain.errors import StoreUnavailableError
from src.service.ticketing.driven_adapter.store.in_memory_document_store import (
    InMemoryDocumentStore,
)


COLLECTION = 'rsvps'


@pytest.mark.unit
class TestDocumentCrud:
    @pytest.mark.asyncio
    async def test_create_assigns_id_version_and_server_time(self, document_store):
        document = await document_store.create(collection=COLLECTION, data={'user_id': 'u-1'})

        assert document.id
        assert document.version == 1
        assert isinstance(document.data['created_at'], datetime)
        assert document.data['created_at'].tzinfo is not None

    @pytest.mark.asyncio
    async def test_create_without_timestamp_field(self, document_store):
        document = await document_store.create(
            collection=COLLECTION, data={'user_id': 'u-1'}, server_timestamp_field=None
        )

        assert 'created_at' not in document.data

    @pytest.mark.asyncio
    async def test_returned_documents_are_copies(self, document_store):
        created = await document_store.create(collection=COLLECTION, data={'user_id': 'u-1'})
        created.data['user_id'] = 'tampered'

        stored = await document_store.get(collection=COLLECTION, document_id=created.id)

        assert stored.data['user_id'] == 'u-1'

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, document_store):
        assert await document_store.get(collection=COLLECTION, document_id='missing') is None

    @pytest.mark.asyncio
    async def test_query_by_field_and_whole_collection(self, document_store):
        await document_store.create(collection=COLLECTION, data={'user_id': 'u-1'})
        await document_store.create(collection=COLLECTION, data={'user_id': 'u-2'})
        await document_store.create(collection=COLLECTION, data={'user_id': 'u-1'})

        mine = await document_store.query(collection=COLLECTION, field='user_id', value='u-1')
        everything = await document_store.query(collection=COLLECTION)

        assert len(mine) == 2
        assert len(everything) == 3

    @pytest.mark.asyncio
    async def test_delete_reports_whether_document_existed(self, document_store):
        document = await document_store.create(collection=COLLECTION, data={'user_id': 'u-1'})

        assert await document_store.delete(collection=COLLECTION, document_id=document.id)
        assert not await document_store.delete(collection=COLLECTION, document_id=document.id)


@pytest.mark.unit
class TestConditionalUpdate:
    @pytest.mark.asyncio
    async def test_applies_when_condition_holds(self, document_store):
        document = await document_store.create(
            collection=COLLECTION, data={'checked_in_at': None}
        )

        result = await document_store.update_if(
            collection=COLLECTION,
            document_id=document.id,
            field='checked_in_at',
            expected=None,
            changes={'note': 'door A'},
            server_timestamp_fields=('checked_in_at',),
        )

        assert result.applied
        assert result.document.version == 2
        assert result.document.data['note'] == 'door A'
        assert isinstance(result.document.data['checked_in_at'], datetime)

    @pytest.mark.asyncio
    async def test_condition_failed_returns_current_document(self, document_store):
        document = await document_store.create(
            collection=COLLECTION, data={'checked_in_at': 'earlier'}
        )

        result = await document_store.update_if(
            collection=COLLECTION,
            document_id=document.id,
            field='checked_in_at',
            expected=None,
            changes={'checked_in_at': 'later'},
        )

        assert result.status is UpdateStatus.CONDITION_FAILED
        assert result.document.data['checked_in_at'] == 'earlier'

    @pytest.mark.asyncio
    async def test_missing_field_counts_as_none(self, document_store):
        document = await document_store.create(collection=COLLECTION, data={})

        result = await document_store.update_if(
            collection=COLLECTION,
            document_id=document.id,
            field='checked_in_at',
            expected=None,
            changes={'checked_in_at': 'now'},
        )

        assert result.applied

    @pytest.mark.asyncio
    async def test_missing_document(self, document_store):
        result = await document_store.update_if(
            collection=COLLECTION, document_id='missing', field='f', expected=None, changes={}
        )

        assert result.status is UpdateStatus.NOT_FOUND
        assert result.document is None

    @pytest.mark.asyncio
    async def test_concurrent_updates_apply_exactly_once(self, document_store):
        document = await document_store.create(
            collection=COLLECTION, data={'checked_in_at': None}
        )
        statuses: list[UpdateStatus] = []

        async def attempt() -> None:
            result = await document_store.update_if(
                collection=COLLECTION,
                document_id=document.id,
                field='checked_in_at',
                expected=None,
                changes={},
                server_timestamp_fields=('checked_in_at',),
            )
            statuses.append(result.status)

        async with anyio.create_task_group() as tg:
            for _ in range(20):
                tg.start_soon(attempt)

        assert statuses.count(UpdateStatus.APPLIED) == 1
        assert statuses.count(UpdateStatus.CONDITION_FAILED) == 19


@pytest.mark.unit
class TestLiveQuery:
    @pytest.mark.asyncio
    async def test_initial_snapshot_lists_matches_as_added(self, document_store):
        await document_store.create(collection=COLLECTION, data={'organizer_id': 'host'})
        await document_store.create(collection=COLLECTION, data={'organizer_id': 'other'})

        async with await document_store.listen(
            collection=COLLECTION, field='organizer_id', value='host'
        ) as live_query:
            with fail_after(1):
                snapshot = await live_query.receive()

        assert len(snapshot.documents) == 1
        assert [change.type for change in snapshot.changes] == [ChangeType.ADDED]

    @pytest.mark.asyncio
    async def test_delivers_added_modified_and_removed(self, document_store):
        live_query = await document_store.listen(
            collection=COLLECTION, field='organizer_id', value='host'
        )
        try:
            with fail_after(1):
                await live_query.receive()  # empty initial snapshot

                document = await document_store.create(
                    collection=COLLECTION, data={'organizer_id': 'host', 'checked_in_at': None}
                )
                added = await live_query.receive()

                await document_store.update_if(
                    collection=COLLECTION,
                    document_id=document.id,
                    field='checked_in_at',
                    expected=None,
                    changes={},
                    server_timestamp_fields=('checked_in_at',),
                )
                modified = await live_query.receive()

                await document_store.delete(collection=COLLECTION, document_id=document.id)
                removed = await live_query.receive()
        finally:
            await live_query.aclose()

        assert added.changes[0].type is ChangeType.ADDED
        assert len(added.documents) == 1

        change = modified.changes[0]
        assert change.type is ChangeType.MODIFIED
        assert change.previous.data['checked_in_at'] is None
        assert change.document.data['checked_in_at'] is not None

        assert removed.changes[0].type is ChangeType.REMOVED
        assert removed.documents == ()

    @pytest.mark.asyncio
    async def test_document_leaving_the_filter_is_removed(self, document_store):
        document = await document_store.create(
            collection=COLLECTION, data={'organizer_id': 'host'}
        )
        live_query = await document_store.listen(
            collection=COLLECTION, field='organizer_id', value='host'
        )
        try:
            with fail_after(1):
                await live_query.receive()
                await document_store.update_if(
                    collection=COLLECTION,
                    document_id=document.id,
                    field='organizer_id',
                    expected='host',
                    changes={'organizer_id': 'other'},
                )
                snapshot = await live_query.receive()
        finally:
            await live_query.aclose()

        assert snapshot.changes[0].type is ChangeType.REMOVED
        assert snapshot.documents == ()

    @pytest.mark.asyncio
    async def test_unrelated_writes_are_not_delivered(self, document_store):
        live_query = await document_store.listen(
            collection=COLLECTION, field='organizer_id', value='host'
        )
        try:
            await live_query.receive()
            await document_store.create(collection=COLLECTION, data={'organizer_id': 'other'})
            await document_store.create(collection='events', data={'organizer_id': 'host'})

            assert await live_query.receive(timeout=0.05) is None
        finally:
            await live_query.aclose()

    @pytest.mark.asyncio
    async def test_receive_timeout_does_not_lose_snapshots(self, document_store):
        live_query = await document_store.listen(
            collection=COLLECTION, field='organizer_id', value='host'
        )
        try:
            await live_query.receive()
            assert await live_query.receive(timeout=0.01) is None

            await document_store.create(collection=COLLECTION, data={'organizer_id': 'host'})
            with fail_after(1):
                snapshot = await live_query.receive(timeout=0.5)
        finally:
            await live_query.aclose()

        assert snapshot is not None
        assert len(snapshot.documents) == 1

    @pytest.mark.asyncio
    async def test_aclose_ends_iteration(self, document_store):
        live_query = await document_store.listen(
            collection=COLLECTION, field='organizer_id', value='host'
        )
        await live_query.receive()
        await live_query.aclose()

        with pytest.raises(EndOfStream):
            await live_query.receive()
        assert [snapshot async for snapshot in live_query] == []

    @pytest.mark.asyncio
    async def test_slow_listener_is_closed_with_store_unavailable(self):
        store = InMemoryDocumentStore(buffer_size=2)
        live_query = await store.listen(collection=COLLECTION, field='organizer_id', value='host')

        # Initial snapshot occupies one slot; the third write overflows
        for _ in range(3):
            await store.create(collection=COLLECTION, data={'organizer_id': 'host'})

        with pytest.raises(StoreUnavailableError):
            while True:
                with fail_after(1):
                    await live_query.receive()
        await live_query.aclose()
