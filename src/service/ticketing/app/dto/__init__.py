"""Application layer DTOs"""

from src.service.ticketing.app.dto.store_dto import (
    ChangeType,
    Document,
    DocumentChange,
    QuerySnapshot,
    UpdateResult,
    UpdateStatus,
)

__all__ = [
    'ChangeType',
    'Document',
    'DocumentChange',
    'QuerySnapshot',
    'UpdateResult',
    'UpdateStatus',
]
