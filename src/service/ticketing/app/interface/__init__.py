"""Application layer interfaces (Ports)"""

from src.service.ticketing.app.interface.i_document_store import IDocumentStore, ILiveQuery

__all__ = ['IDocumentStore', 'ILiveQuery']
