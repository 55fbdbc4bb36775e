"""
Document Store Interface

Port for the realtime document store holding events, tickets and notices.
Use cases receive an implementation through the DI container; adapters live
under driven_adapter/store.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from types import TracebackType
from typing import Any, Optional, Self

from anyio import EndOfStream

from src.service.ticketing.app.dto.store_dto import Document, QuerySnapshot, UpdateResult


class ILiveQuery(ABC):
    """
    Cancelable async iterator of QuerySnapshot.

    The first snapshot lists every matching document as ADDED. Iteration ends
    after aclose(); a listener that can no longer keep up raises
    StoreUnavailableError instead of silently skipping changes.
    """

    @abstractmethod
    async def receive(self, *, timeout: Optional[float] = None) -> Optional[QuerySnapshot]:
        """
        Next snapshot, or None when timeout seconds pass without one.

        Raises anyio.EndOfStream once the live query is closed. A timeout never
        loses a snapshot.
        """
        pass

    @abstractmethod
    async def aclose(self) -> None:
        pass

    def __aiter__(self) -> Self:
        return self

    async def __anext__(self) -> QuerySnapshot:
        try:
            snapshot = await self.receive()
        except EndOfStream:
            raise StopAsyncIteration from None
        assert snapshot is not None
        return snapshot

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()


class IDocumentStore(ABC):
    @abstractmethod
    async def create(
        self,
        *,
        collection: str,
        data: Mapping[str, Any],
        server_timestamp_field: Optional[str] = 'created_at',
    ) -> Document:
        """Assign a UUID7 id and stamp server time into server_timestamp_field, in one write"""
        pass

    @abstractmethod
    async def get(self, *, collection: str, document_id: str) -> Optional[Document]:
        pass

    @abstractmethod
    async def query(
        self, *, collection: str, field: Optional[str] = None, value: Any = None
    ) -> list[Document]:
        """Equality query; field=None returns the whole collection"""
        pass

    @abstractmethod
    async def listen(self, *, collection: str, field: str, value: Any) -> ILiveQuery:
        pass

    @abstractmethod
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
        """
        Apply changes only while document[field] == expected (missing counts as None).

        Fields in server_timestamp_fields are set to the store's clock at the
        moment the condition is checked.
        """
        pass

    @abstractmethod
    async def delete(self, *, collection: str, document_id: str) -> bool:
        """Returns whether a document existed"""
        pass
