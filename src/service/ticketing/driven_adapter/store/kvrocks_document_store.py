"""
Kvrocks Document Store Implementation

Documents are JSON blobs ``{id, version, data}`` under
``{prefix}doc:{collection}:{id}``. Top-level string fields are indexed in sets
``{prefix}idx:{collection}:{field}:{value}`` so equality queries avoid scans.
Every write runs in one Lua script that also publishes the change on
``{prefix}changes:{collection}``; live queries subscribe to that channel.

Server timestamps come from the Kvrocks ``TIME`` command and are stored as
epoch seconds.
"""

from collections.abc import Iterable, Mapping
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

import anyio
from anyio import EndOfStream
import orjson
from redis.asyncio import Redis
from redis.asyncio.client import PubSub
from redis.exceptions import (
    ConnectionError as RedisConnectionError,
    TimeoutError as RedisTimeoutError,
)
import uuid_utils

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger
from src.platform.state.kvrocks_client import KvrocksClient
from src.service.ticketing.app.dto.store_dto import (
    ChangeType,
    Document,
    DocumentChange,
    QuerySnapshot,
    UpdateResult,
    UpdateStatus,
)
from src.service.ticketing.app.interface.i_document_store import IDocumentStore, ILiveQuery
from src.service.ticketing.domain.errors import StoreUnavailableError
from src.service.ticketing.driven_adapter.store.lua_script import (
    CREATE_DOCUMENT_SCRIPT,
    DELETE_DOCUMENT_SCRIPT,
    UPDATE_DOCUMENT_IF_SCRIPT,
)


@contextmanager
def _store_errors() -> Iterator[None]:
    try:
        yield
    except (RedisConnectionError, RedisTimeoutError, OSError) as e:
        raise StoreUnavailableError(type(e).__name__) from e


def _decode_document(raw: str | bytes | None) -> Optional[Document]:
    if not raw:
        return None
    payload = orjson.loads(raw)
    return Document(id=payload['id'], data=payload['data'], version=payload['version'])


class KvrocksKeys:
    def __init__(self, *, prefix: str = '') -> None:
        self.prefix = prefix

    def document(self, collection: str, document_id: str) -> str:
        return f'{self.prefix}doc:{collection}:{document_id}'

    def collection(self, collection: str) -> str:
        return f'{self.prefix}col:{collection}'

    def index_prefix(self, collection: str) -> str:
        return f'{self.prefix}idx:{collection}:'

    def index(self, collection: str, field: str, value: str) -> str:
        return f'{self.index_prefix(collection)}{field}:{value}'

    def channel(self, collection: str) -> str:
        return f'{self.prefix}changes:{collection}'


class KvrocksLiveQuery(ILiveQuery):
    """
    Live equality query over one collection.

    Subscribes before reading the initial result set, then drops any published
    change whose version is not newer than the one already applied.
    """

    def __init__(
        self,
        *,
        pubsub: PubSub,
        field: str,
        value: Any,
        initial: list[Document],
    ) -> None:
        self._pubsub = pubsub
        self._field = field
        self._value = value
        self._matching: Dict[str, Document] = {document.id: document for document in initial}
        self._versions: Dict[str, int] = {document.id: document.version for document in initial}
        self._pending: Optional[QuerySnapshot] = QuerySnapshot(
            documents=tuple(initial),
            changes=tuple(DocumentChange(type=ChangeType.ADDED, document=d) for d in initial),
        )
        self._closed = False

    def _matches(self, document: Optional[Document]) -> bool:
        return document is not None and document.data.get(self._field) == self._value

    async def receive(self, *, timeout: Optional[float] = None) -> Optional[QuerySnapshot]:
        if self._pending is not None:
            snapshot, self._pending = self._pending, None
            return snapshot

        # get_message times out on its own, so the pub/sub connection is never cancelled mid-read
        deadline = None if timeout is None else anyio.current_time() + timeout
        while not self._closed:
            remaining = None if deadline is None else max(0.0, deadline - anyio.current_time())
            with _store_errors():
                message = await self._pubsub.get_message(
                    ignore_subscribe_messages=True, timeout=remaining
                )

            if message is not None and message['type'] == 'message':
                change = self._apply(orjson.loads(message['data']))
                if change is not None:
                    return QuerySnapshot(
                        documents=tuple(self._matching.values()), changes=(change,)
                    )
            elif deadline is not None and anyio.current_time() >= deadline:
                return None

        raise EndOfStream

    def _apply(self, payload: dict[str, Any]) -> Optional[DocumentChange]:
        document_id: str = payload['id']
        version: int = payload['version']
        # Versions are only tracked for matching ids so the map stays bounded by the result set
        if document_id in self._versions and version <= self._versions[document_id]:
            return None

        current = (
            Document(
                id=document_id,
                data=payload['document']['data'],
                version=payload['document']['version'],
            )
            if payload.get('document')
            else None
        )
        known = self._matching.get(document_id)

        if self._matches(current):
            assert current is not None
            self._matching[document_id] = current
            self._versions[document_id] = version
            if known is None:
                return DocumentChange(type=ChangeType.ADDED, document=current)
            return DocumentChange(type=ChangeType.MODIFIED, document=current, previous=known)

        if known is not None:
            del self._matching[document_id]
            del self._versions[document_id]
            return DocumentChange(type=ChangeType.REMOVED, document=known, previous=known)
        return None

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        # Release the pub/sub connection even when the caller is being cancelled
        with anyio.CancelScope(shield=True):
            try:
                await self._pubsub.unsubscribe()
            except (RedisConnectionError, RedisTimeoutError, OSError) as e:
                Logger.base.warning(f'⚠️ [KVROCKS-STORE] Unsubscribe failed: {e}')
            finally:
                await self._pubsub.aclose()


class KvrocksDocumentStore(IDocumentStore):
    def __init__(
        self, *, kvrocks: KvrocksClient, key_prefix: str = settings.KVROCKS_KEY_PREFIX
    ) -> None:
        self._kvrocks = kvrocks
        self.keys = KvrocksKeys(prefix=key_prefix)
        self._scripts: Dict[str, Any] = {}

    @property
    def _client(self) -> Redis:
        return self._kvrocks.get_client()

    def _script(self, name: str, source: str) -> Any:
        # register_script reloads the script on NOSCRIPT by itself
        if name not in self._scripts:
            self._scripts[name] = self._client.register_script(source)
        return self._scripts[name]

    async def create(
        self,
        *,
        collection: str,
        data: Mapping[str, Any],
        server_timestamp_field: Optional[str] = 'created_at',
    ) -> Document:
        document_id = str(uuid_utils.uuid7())
        with _store_errors():
            raw = await self._script('create', CREATE_DOCUMENT_SCRIPT)(
                keys=[self.keys.document(collection, document_id), self.keys.collection(collection)],
                args=[
                    document_id,
                    orjson.dumps(dict(data)),
                    server_timestamp_field or '',
                    self.keys.index_prefix(collection),
                    self.keys.channel(collection),
                ],
            )
        document = _decode_document(raw)
        assert document is not None
        return document

    async def get(self, *, collection: str, document_id: str) -> Optional[Document]:
        with _store_errors():
            raw = await self._client.get(self.keys.document(collection, document_id))
        return _decode_document(raw)

    async def query(
        self, *, collection: str, field: Optional[str] = None, value: Any = None
    ) -> list[Document]:
        with _store_errors():
            if field is not None and isinstance(value, str):
                ids = await self._client.smembers(self.keys.index(collection, field, value))
            else:
                ids = await self._client.smembers(self.keys.collection(collection))
            if not ids:
                return []
            raws = await self._client.mget(
                [self.keys.document(collection, document_id) for document_id in sorted(ids)]
            )

        documents = [document for document in map(_decode_document, raws) if document]
        if field is None:
            return documents
        return [document for document in documents if document.data.get(field) == value]

    async def listen(self, *, collection: str, field: str, value: Any) -> ILiveQuery:
        pubsub = self._kvrocks.create_pubsub()
        try:
            with _store_errors():
                await pubsub.subscribe(self.keys.channel(collection))
            initial = await self.query(collection=collection, field=field, value=value)
        except BaseException:
            with anyio.CancelScope(shield=True):
                await pubsub.aclose()
            raise

        Logger.base.debug(
            f'📡 [KVROCKS-STORE] Listening on {collection} where {field} == {value!r} '
            f'({len(initial)} initial)'
        )
        return KvrocksLiveQuery(pubsub=pubsub, field=field, value=value, initial=initial)

    async def update_if(
        self,
        *,
        collection: str,
        document_id: str,
        field: str,
        expected: Any,
        changes: Mapping[str, Any],
        server_timestamp_fields: Iterable[str] = (),
    ) -> UpdateResult:
        with _store_errors():
            status, raw = await self._script('update_if', UPDATE_DOCUMENT_IF_SCRIPT)(
                keys=[self.keys.document(collection, document_id)],
                args=[
                    field,
                    orjson.dumps({'v': expected}),
                    orjson.dumps(dict(changes)),
                    orjson.dumps(list(server_timestamp_fields)),
                    self.keys.index_prefix(collection),
                    self.keys.channel(collection),
                ],
            )
        if isinstance(status, bytes):
            status = status.decode()
        return UpdateResult(status=UpdateStatus(status), document=_decode_document(raw))

    async def delete(self, *, collection: str, document_id: str) -> bool:
        with _store_errors():
            deleted = await self._script('delete', DELETE_DOCUMENT_SCRIPT)(
                keys=[self.keys.document(collection, document_id), self.keys.collection(collection)],
                args=[self.keys.index_prefix(collection), self.keys.channel(collection)],
            )
        return bool(deleted)
