"""
In-memory Document Store Implementation

Single-process realtime store used by default and in tests.

Architecture:
- collection → {document_id → Document}, insertion ordered
- Every write runs under one anyio.Lock, so update_if is a true compare-and-set
- Each live query owns a bounded memory object stream; a listener whose buffer
  fills up is closed and its iterator raises StoreUnavailableError
"""

from collections.abc import Iterable, Mapping
import copy
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import anyio
from anyio import EndOfStream, WouldBlock, create_memory_object_stream
from anyio.lowlevel import checkpoint
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream
import attrs
import uuid_utils

from src.platform.logging.loguru_io import Logger
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


@attrs.define(eq=False)
class _Listener:
    collection: str
    field: str
    value: Any
    send_stream: MemoryObjectSendStream[QuerySnapshot]
    receive_stream: MemoryObjectReceiveStream[QuerySnapshot]
    matching: Dict[str, Document] = attrs.field(factory=dict)
    overflowed: bool = False

    def matches(self, document: Optional[Document]) -> bool:
        return document is not None and document.data.get(self.field) == self.value


class InMemoryLiveQuery(ILiveQuery):
    def __init__(self, *, store: 'InMemoryDocumentStore', listener: _Listener) -> None:
        self._store = store
        self._listener = listener

    async def receive(self, *, timeout: Optional[float] = None) -> Optional[QuerySnapshot]:
        try:
            if timeout is None:
                return await self._listener.receive_stream.receive()
            with anyio.move_on_after(timeout):
                return await self._listener.receive_stream.receive()
            return None
        except (EndOfStream, anyio.ClosedResourceError):
            if self._listener.overflowed:
                raise StoreUnavailableError('live query fell behind') from None
            raise EndOfStream from None

    async def aclose(self) -> None:
        # No checkpoints here: this must also work from a cancelled scope
        self._store.detach(self._listener)


class InMemoryDocumentStore(IDocumentStore):
    def __init__(self, *, buffer_size: int = 100) -> None:
        self._collections: Dict[str, Dict[str, Document]] = {}
        self._listeners: Dict[str, List[_Listener]] = {}
        self._buffer_size = max(1, buffer_size)
        self._lock = anyio.Lock()

    @staticmethod
    def _server_now() -> datetime:
        return datetime.now(timezone.utc)

    def _documents(self, collection: str) -> Dict[str, Document]:
        return self._collections.setdefault(collection, {})

    async def create(
        self,
        *,
        collection: str,
        data: Mapping[str, Any],
        server_timestamp_field: Optional[str] = 'created_at',
    ) -> Document:
        async with self._lock:
            body = copy.deepcopy(dict(data))
            if server_timestamp_field:
                body[server_timestamp_field] = self._server_now()
            document = Document(id=str(uuid_utils.uuid7()), data=body, version=1)
            self._documents(collection)[document.id] = document
            self._notify(collection=collection, previous=None, current=document)
            return copy.deepcopy(document)

    async def get(self, *, collection: str, document_id: str) -> Optional[Document]:
        await checkpoint()
        document = self._documents(collection).get(document_id)
        return copy.deepcopy(document) if document else None

    async def query(
        self, *, collection: str, field: Optional[str] = None, value: Any = None
    ) -> list[Document]:
        await checkpoint()
        return [
            copy.deepcopy(document)
            for document in self._documents(collection).values()
            if field is None or document.data.get(field) == value
        ]

    async def listen(self, *, collection: str, field: str, value: Any) -> ILiveQuery:
        send_stream, receive_stream = create_memory_object_stream[QuerySnapshot](
            max_buffer_size=self._buffer_size
        )
        listener = _Listener(
            collection=collection,
            field=field,
            value=value,
            send_stream=send_stream,
            receive_stream=receive_stream,
        )
        async with self._lock:
            listener.matching = {
                document.id: document
                for document in self._documents(collection).values()
                if listener.matches(document)
            }
            initial = QuerySnapshot(
                documents=tuple(copy.deepcopy(list(listener.matching.values()))),
                changes=tuple(
                    DocumentChange(type=ChangeType.ADDED, document=copy.deepcopy(document))
                    for document in listener.matching.values()
                ),
            )
            send_stream.send_nowait(initial)
            self._listeners.setdefault(collection, []).append(listener)

        Logger.base.debug(
            f'📡 [MEMORY-STORE] Listening on {collection} where {field} == {value!r} '
            f'(listeners: {len(self._listeners[collection])})'
        )
        return InMemoryLiveQuery(store=self, listener=listener)

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
        async with self._lock:
            previous = self._documents(collection).get(document_id)
            if previous is None:
                return UpdateResult(status=UpdateStatus.NOT_FOUND)

            # Yield while holding the lock so racing writers really queue up
            await checkpoint()

            if previous.data.get(field) != expected:
                return UpdateResult(
                    status=UpdateStatus.CONDITION_FAILED, document=copy.deepcopy(previous)
                )

            body = copy.deepcopy(previous.data) | copy.deepcopy(dict(changes))
            now = self._server_now()
            for timestamp_field in server_timestamp_fields:
                body[timestamp_field] = now
            current = Document(id=document_id, data=body, version=previous.version + 1)
            self._documents(collection)[document_id] = current
            self._notify(collection=collection, previous=previous, current=current)
            return UpdateResult(status=UpdateStatus.APPLIED, document=copy.deepcopy(current))

    async def delete(self, *, collection: str, document_id: str) -> bool:
        async with self._lock:
            previous = self._documents(collection).pop(document_id, None)
            if previous is None:
                return False
            self._notify(collection=collection, previous=previous, current=None)
            return True

    def detach(self, listener: _Listener) -> None:
        listeners = self._listeners.get(listener.collection, [])
        if listener in listeners:
            listeners.remove(listener)
        if not listeners:
            self._listeners.pop(listener.collection, None)
        listener.send_stream.close()
        listener.receive_stream.close()

    def _notify(
        self, *, collection: str, previous: Optional[Document], current: Optional[Document]
    ) -> None:
        for listener in list(self._listeners.get(collection, [])):
            change = self._diff(listener, previous=previous, current=current)
            if change is None:
                continue

            snapshot = QuerySnapshot(
                documents=tuple(copy.deepcopy(list(listener.matching.values()))),
                changes=(copy.deepcopy(change),),
            )
            try:
                listener.send_stream.send_nowait(snapshot)
            except WouldBlock:
                # Slow consumer: end its live query instead of dropping changes
                Logger.base.warning(
                    f'⚠️ [MEMORY-STORE] Listener on {collection} where '
                    f'{listener.field} == {listener.value!r} fell behind, closing it'
                )
                listener.overflowed = True
                self._listeners[collection].remove(listener)
                listener.send_stream.close()
            except anyio.BrokenResourceError:
                self._listeners[collection].remove(listener)

        if collection in self._listeners and not self._listeners[collection]:
            del self._listeners[collection]

    @staticmethod
    def _diff(
        listener: _Listener, *, previous: Optional[Document], current: Optional[Document]
    ) -> Optional[DocumentChange]:
        document_id = (current or previous).id  # type: ignore[union-attr]
        known = listener.matching.get(document_id)

        if listener.matches(current):
            assert current is not None
            listener.matching[document_id] = current
            if known is None:
                return DocumentChange(type=ChangeType.ADDED, document=current)
            return DocumentChange(type=ChangeType.MODIFIED, document=current, previous=known)

        if known is not None:
            del listener.matching[document_id]
            return DocumentChange(type=ChangeType.REMOVED, document=known, previous=known)
        return None
