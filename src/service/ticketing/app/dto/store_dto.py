"""Document store DTOs shared by the store port and its adapters."""

from enum import StrEnum
from typing import Any, Optional

import attrs


class ChangeType(StrEnum):
    ADDED = 'added'
    MODIFIED = 'modified'
    REMOVED = 'removed'


class UpdateStatus(StrEnum):
    APPLIED = 'applied'
    CONDITION_FAILED = 'condition_failed'
    NOT_FOUND = 'not_found'


@attrs.frozen
class Document:
    id: str
    data: dict[str, Any]
    version: int = 1  # bumped on every write


@attrs.frozen
class DocumentChange:
    type: ChangeType
    document: Document
    previous: Optional[Document] = None  # set for MODIFIED and REMOVED


@attrs.frozen
class QuerySnapshot:
    """Full result set of a live query plus what changed since the last delivery."""

    documents: tuple[Document, ...]
    changes: tuple[DocumentChange, ...] = ()


@attrs.frozen
class UpdateResult:
    status: UpdateStatus
    document: Optional[Document] = None  # current document, whichever way the condition went

    @property
    def applied(self) -> bool:
        return self.status is UpdateStatus.APPLIED
